"""Pytest configuration for dbexport tests."""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine, text

from dbexport.config import ExportConfig
from dbexport.connectors.base import ConnectionProvider, ReadOnlyConnection, ResultCursor
from dbexport.export.filenames import FilenamePolicy

FIXED_NOW = datetime(2024, 1, 15, 10, 30, 45)


class FakeCursor(ResultCursor):
    """Cursor over an in-memory row iterable; rows are consumed lazily."""

    def __init__(self, columns: List[str], rows: Iterable[Sequence[Any]], error=None):
        self._columns = columns
        self._rows = rows
        self._error = error
        self.executed = False
        self.closed = False

    def execute(self) -> None:
        if self._error is not None:
            raise self._error
        self.executed = True

    def column_names(self) -> List[str]:
        return list(self._columns)

    def __iter__(self):
        return iter(self._rows)

    def close(self) -> None:
        self.closed = True


class FakeConnection(ReadOnlyConnection):
    def __init__(self, provider: "FakeConnectionProvider"):
        self._provider = provider

    def prepare(self, sql: str, fetch_size: int, timeout_seconds: Optional[int] = None):
        self._provider.prepared.append(
            {"sql": sql, "fetch_size": fetch_size, "timeout_seconds": timeout_seconds}
        )
        cursor = FakeCursor(
            self._provider.columns, self._provider.rows_factory(), self._provider.error
        )
        self._provider.cursors.append(cursor)
        return cursor


class FakeConnectionProvider(ConnectionProvider):
    """Connection provider double that counts acquisitions and releases."""

    def __init__(self, columns=None, rows=None, error=None, tables=None, dialect=None):
        self.columns = columns or ["id"]
        self._rows = rows if rows is not None else []
        self.error = error
        self.tables = tables or []
        self.dialect = dialect
        self.acquire_count = 0
        self.release_count = 0
        self.prepared: List[dict] = []
        self.cursors: List[FakeCursor] = []

    @property
    def dialect_name(self) -> Optional[str]:
        return self.dialect

    def rows_factory(self):
        return self._rows() if callable(self._rows) else self._rows

    @contextmanager
    def acquire(self):
        self.acquire_count += 1
        try:
            yield FakeConnection(self)
        finally:
            self.release_count += 1

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        self.listed_schema = schema
        return list(self.tables)


@pytest.fixture
def output_dir(tmp_path) -> str:
    return str(tmp_path / "reports")


@pytest.fixture
def export_config(output_dir) -> ExportConfig:
    """Small batch and split sizes so tests exercise file rotation."""
    return ExportConfig(
        output_directory=output_dir,
        default_schema="app",
        dialect="mysql",
        batch_size=2,
        max_rows_per_file=3,
        statement_timeout_seconds=30,
    )


@pytest.fixture
def fixed_policy() -> FilenamePolicy:
    return FilenamePolicy(clock=lambda: FIXED_NOW)


@pytest.fixture
def fake_provider_factory():
    return FakeConnectionProvider


@pytest.fixture
def sqlite_engine(tmp_path):
    """File-backed SQLite database with an ``orders`` table and an empty table."""
    engine = create_engine(f"sqlite:///{tmp_path / 'source.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, "
                "amount REAL, order_date TEXT)"
            )
        )
        connection.execute(text("CREATE TABLE empty_table (id INTEGER)"))
        connection.execute(
            text(
                "INSERT INTO orders (id, customer, amount, order_date) "
                "VALUES (:id, :customer, :amount, :order_date)"
            ),
            [
                {"id": 1, "customer": "Alice", "amount": 10.5, "order_date": "2023-12-01"},
                {"id": 2, "customer": "Bob, Jr.", "amount": 20.0, "order_date": "2023-12-05"},
                {"id": 3, "customer": 'Carol "CJ"', "amount": None, "order_date": "2023-12-10"},
                {"id": 4, "customer": "Dan\nSmith", "amount": 5.25, "order_date": "2023-12-15"},
                {"id": 5, "customer": "Eve", "amount": 7.0, "order_date": "2023-12-20"},
                {"id": 6, "customer": "Frank", "amount": 1.0, "order_date": "2023-11-03"},
            ],
        )
    yield engine
    engine.dispose()
