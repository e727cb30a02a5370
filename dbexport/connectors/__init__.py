from dbexport.connectors.base import ConnectionProvider, ReadOnlyConnection, ResultCursor
from dbexport.connectors.sqlalchemy_provider import SqlAlchemyConnectionProvider

__all__ = [
    "ConnectionProvider",
    "ReadOnlyConnection",
    "ResultCursor",
    "SqlAlchemyConnectionProvider",
]
