from abc import ABC, abstractmethod
from typing import Any, ContextManager, Iterator, List, Optional, Sequence


class ResultCursor(ABC):
    """Forward-only, read-only cursor over one statement's result rows."""

    @abstractmethod
    def execute(self) -> None:
        """Run the prepared statement.

        Raises
        ------
            ExportExecutionError: If the database rejects or times out the statement

        """

    @abstractmethod
    def column_names(self) -> List[str]:
        """Result column names, in select-list order."""

    @abstractmethod
    def __iter__(self) -> Iterator[Sequence[Any]]:
        """Yield rows one at a time, pulling from the server in batches."""

    @abstractmethod
    def close(self) -> None:
        """Release the cursor."""

    def __enter__(self) -> "ResultCursor":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class ReadOnlyConnection(ABC):
    """A connection in read-only, non-autocommit mode owned by one export."""

    @abstractmethod
    def prepare(
        self, sql: str, fetch_size: int, timeout_seconds: Optional[int] = None
    ) -> ResultCursor:
        """Prepare ``sql`` for streaming execution.

        Args:
        ----
            sql: SELECT statement
            fetch_size: Rows fetched from the server per round-trip
            timeout_seconds: Statement timeout; None disables it

        Returns:
        -------
            A cursor that has not been executed yet

        """


class ConnectionProvider(ABC):
    """Source of read-only database connections."""

    @property
    def dialect_name(self) -> Optional[str]:
        """SQL dialect of the database behind this provider; None when unknown."""
        return None

    @abstractmethod
    def acquire(self) -> ContextManager[ReadOnlyConnection]:
        """Scoped connection: released on every exit path, including errors."""

    @abstractmethod
    def list_tables(self, schema: Optional[str] = None) -> List[str]:
        """Names of the tables in ``schema`` (the provider's default when None)."""
