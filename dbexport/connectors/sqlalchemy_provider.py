"""Read-only connection provider backed by a SQLAlchemy engine.

Exports run on the engine's raw DBAPI connection so rows can be streamed
through a forward-only cursor: a named server-side cursor on PostgreSQL,
an unbuffered cursor on MySQL and the native cursor on SQLite.
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Sequence

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.pool import StaticPool

from dbexport.config import ConnectionSettings
from dbexport.connectors.base import ConnectionProvider, ReadOnlyConnection, ResultCursor
from dbexport.exceptions import ExportExecutionError
from dbexport.logging import get_logger

logger = get_logger(__name__)

# SQLite progress handler granularity, in virtual machine instructions
_SQLITE_PROGRESS_STEPS = 10000


class SqlAlchemyResultCursor(ResultCursor):
    """Streams the rows of one statement in ``fetch_size`` batches."""

    def __init__(
        self,
        connection: "SqlAlchemyReadOnlyConnection",
        sql: str,
        fetch_size: int,
        timeout_seconds: Optional[int] = None,
    ):
        self._connection = connection
        self.sql = sql
        self.fetch_size = fetch_size
        self.timeout_seconds = timeout_seconds
        self._cursor = None
        self._first_batch: List[Sequence[Any]] = []
        self._columns: List[str] = []

    def execute(self) -> None:
        self._cursor = self._connection.open_cursor(self.fetch_size, self.timeout_seconds)
        logger.debug(
            f"Executing statement with fetch_size={self.fetch_size}, "
            f"timeout={self.timeout_seconds}s"
        )
        self._cursor.execute(self.sql)

        # Server-side cursors only report a description after the first fetch
        self._first_batch = self._cursor.fetchmany(self.fetch_size)
        if self._cursor.description is None:
            raise ExportExecutionError("Statement did not return a result set")
        self._columns = [desc[0] for desc in self._cursor.description]

    def column_names(self) -> List[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[Sequence[Any]]:
        if self._cursor is None:
            raise ExportExecutionError("Cursor has not been executed")

        batch, self._first_batch = self._first_batch, []
        while batch:
            yield from batch
            batch = self._cursor.fetchmany(self.fetch_size)

    def close(self) -> None:
        if self._cursor is not None:
            try:
                self._cursor.close()
            finally:
                self._cursor = None
                self._connection.clear_timeout()


class SqlAlchemyReadOnlyConnection(ReadOnlyConnection):
    """Raw DBAPI connection switched to read-only mode for its lifetime."""

    def __init__(self, raw_connection, dialect_name: str):
        self._raw = raw_connection
        self.dialect_name = dialect_name

    def prepare(
        self, sql: str, fetch_size: int, timeout_seconds: Optional[int] = None
    ) -> ResultCursor:
        return SqlAlchemyResultCursor(self, sql, fetch_size, timeout_seconds)

    @property
    def driver_connection(self):
        return self._raw.driver_connection

    def begin_read_only(self) -> None:
        """Put the session into read-only, non-autocommit mode."""
        if self.dialect_name == "postgresql":
            self.driver_connection.autocommit = False
            self._run("SET TRANSACTION READ ONLY")
        elif self.dialect_name == "mysql":
            self._run("SET SESSION TRANSACTION READ ONLY")
            self._run("START TRANSACTION READ ONLY")
        elif self.dialect_name == "sqlite":
            self._run("PRAGMA query_only = ON")
        else:
            logger.warning(
                f"No read-only mode known for dialect '{self.dialect_name}'; "
                "relying on database permissions"
            )

    def end_read_only(self) -> None:
        """Discard the transaction and undo session-level settings before pooling."""
        self._raw.rollback()
        if self.dialect_name == "mysql":
            self._run("SET SESSION TRANSACTION READ WRITE")
            self._run("SET SESSION MAX_EXECUTION_TIME = 0")
        elif self.dialect_name == "sqlite":
            self._run("PRAGMA query_only = OFF")

    def open_cursor(self, fetch_size: int, timeout_seconds: Optional[int]):
        if timeout_seconds:
            self._apply_timeout(timeout_seconds)

        if self.dialect_name == "postgresql":
            cursor = self._raw.cursor(name=f"dbexport_{uuid.uuid4().hex[:12]}")
            cursor.itersize = fetch_size
            return cursor
        if self.dialect_name == "mysql":
            return self._unbuffered_mysql_cursor()
        cursor = self._raw.cursor()
        cursor.arraysize = fetch_size
        return cursor

    def clear_timeout(self) -> None:
        if self.dialect_name == "sqlite":
            self.driver_connection.set_progress_handler(None, 0)

    def _apply_timeout(self, timeout_seconds: int) -> None:
        milliseconds = int(timeout_seconds) * 1000
        if self.dialect_name == "postgresql":
            self._run(f"SET LOCAL statement_timeout = {milliseconds:d}")
        elif self.dialect_name == "mysql":
            self._run(f"SET SESSION MAX_EXECUTION_TIME = {milliseconds:d}")
        elif self.dialect_name == "sqlite":
            deadline = time.monotonic() + timeout_seconds

            def _interrupt_after_deadline() -> int:
                return 1 if time.monotonic() > deadline else 0

            self.driver_connection.set_progress_handler(
                _interrupt_after_deadline, _SQLITE_PROGRESS_STEPS
            )

    def _unbuffered_mysql_cursor(self):
        # Only the PyMySQL driver is supported for streaming MySQL reads
        from pymysql.cursors import SSCursor

        return self._raw.cursor(SSCursor)

    def _run(self, statement: str) -> None:
        cursor = self._raw.cursor()
        try:
            cursor.execute(statement)
        finally:
            cursor.close()


class SqlAlchemyConnectionProvider(ConnectionProvider):
    """Hands out pooled connections in read-only mode, one per export."""

    def __init__(
        self,
        settings: Optional[ConnectionSettings] = None,
        engine: Optional[Engine] = None,
        default_schema: Optional[str] = None,
    ):
        if settings is None and engine is None:
            raise ValueError("SqlAlchemyConnectionProvider needs settings or an engine")
        self.settings = settings
        self.default_schema = default_schema
        self._engine = engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            url = self._build_url()
            options = {"pool_pre_ping": True, "echo": False}
            if url.get_backend_name() == "sqlite":
                if url.database in (None, "", ":memory:"):
                    options["poolclass"] = StaticPool
                options["connect_args"] = {"check_same_thread": False}
            elif url.get_backend_name() == "postgresql":
                options["connect_args"] = {
                    "application_name": "dbexport",
                    "connect_timeout": self.settings.connect_timeout,
                }
            self._engine = create_engine(url, **options)
            logger.debug(
                f"Created engine for {url.render_as_string(hide_password=True)}"
            )
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def _build_url(self) -> URL:
        if self.settings.url:
            return make_url(self.settings.url)
        return URL.create(
            drivername=self.settings.driver,
            username=self.settings.username,
            password=self.settings.password,
            host=self.settings.host,
            port=self.settings.port,
            database=self.settings.database,
        )

    @contextmanager
    def acquire(self) -> Iterator[ReadOnlyConnection]:
        try:
            raw_connection = self.engine.raw_connection()
        except Exception as e:
            raise ExportExecutionError(
                f"Failed to acquire database connection: {e}"
            ) from e

        connection = SqlAlchemyReadOnlyConnection(raw_connection, self.dialect_name)
        try:
            connection.begin_read_only()
            yield connection
        finally:
            try:
                connection.end_read_only()
            except Exception as e:
                logger.warning(f"Failed to reset connection before release: {e}")
                raw_connection.invalidate()
            raw_connection.close()

    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        target_schema = schema or self.default_schema
        inspector = inspect(self.engine)
        tables = inspector.get_table_names(schema=target_schema)
        return sorted(name for name in tables if name and name.strip())
