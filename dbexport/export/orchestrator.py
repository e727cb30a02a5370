"""End-to-end CSV export: validate, build or accept a query, stream, split.

Both entry points (windowed table exports and custom SQL exports) run
through one execution core and produce an ``ExportResult``. The windowed
entry points unwrap that result, returning file paths or raising the
carried ``ExportError``; the custom-query entry points hand the result back
as-is and never raise.
"""

import os
import time
from datetime import date
from typing import List, Optional, Tuple

from dbexport.config import ExportConfig, resolve_dialect
from dbexport.connectors.base import ConnectionProvider
from dbexport.exceptions import ExportError, ExportExecutionError, ExportValidationError
from dbexport.export.csv_writer import StreamingCsvWriter
from dbexport.export.filenames import ExportKind, FilenamePolicy
from dbexport.export.query_builder import ExportQuery, QueryBuilder
from dbexport.export.query_validator import QueryValidator, ValidationResult
from dbexport.export.result import ExportResult
from dbexport.export.window import DayRange, Month, TimeWindowSpec, Week
from dbexport.logging import get_logger

logger = get_logger(__name__)

SQL_FILE_EXTENSIONS = (".sql", ".txt")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class ExportOrchestrator:
    """Runs windowed and custom-query CSV exports against one connection provider."""

    def __init__(
        self,
        config: ExportConfig,
        connection_provider: ConnectionProvider,
        validator: Optional[QueryValidator] = None,
        filename_policy: Optional[FilenamePolicy] = None,
    ):
        self.config = config
        self.connection_provider = connection_provider
        self.validator = validator or QueryValidator()
        self.filename_policy = filename_policy or FilenamePolicy()
        self.dialect = resolve_dialect(config.dialect, connection_provider.dialect_name)
        self.query_builder = QueryBuilder(config.default_schema, self.dialect)

    # ------------------------------------------------------------------
    # Windowed exports
    # ------------------------------------------------------------------

    def export_windowed(
        self,
        table_name: str,
        start_day: Optional[int] = None,
        end_day: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        date_column: Optional[str] = None,
    ) -> List[str]:
        """Export ``table_name`` rows whose date falls in a day range or month.

        A day range is used when ``start_day``/``end_day`` are given;
        otherwise ``month`` selects a whole calendar month.

        Returns:
            Paths of the generated CSV files

        Raises:
            ExportValidationError: If the window or identifiers are invalid
            ExportExecutionError: If the query or the file writes fail
        """
        if start_day is not None or end_day is not None:
            window: TimeWindowSpec = DayRange(start_day, end_day, month, year)
        elif month is not None:
            window = Month(month, year)
        else:
            raise ExportValidationError(
                "A day range (start_day and end_day) or a month is required"
            )
        return self.run_windowed(table_name, window, date_column).unwrap()

    def export_weekly(
        self,
        table_name: str,
        week_number: int,
        year: Optional[int] = None,
        date_column: Optional[str] = None,
    ) -> List[str]:
        """Export the rows of one week of the year; defaults to the current year."""
        target_year = year if year is not None else date.today().year
        return self.run_windowed(
            table_name, Week(week_number, target_year), date_column
        ).unwrap()

    def export_monthly(
        self,
        table_name: str,
        month: Optional[int] = None,
        year: Optional[int] = None,
        date_column: Optional[str] = None,
    ) -> List[str]:
        """Export the rows of one calendar month; defaults to the current month and year."""
        today = date.today()
        target_month = month if month is not None else today.month
        target_year = year if year is not None else today.year
        return self.run_windowed(
            table_name, Month(target_month, target_year), date_column
        ).unwrap()

    def run_windowed(
        self,
        table_name: str,
        window: TimeWindowSpec,
        date_column: Optional[str] = None,
    ) -> ExportResult:
        """Windowed export returning an ``ExportResult`` instead of raising."""
        started = time.monotonic()
        logger.info(
            f"Starting CSV export for table: {table_name} with window: {window}"
        )
        try:
            query = self.query_builder.build(table_name, window, date_column)
        except ExportError as e:
            logger.error(f"Rejected windowed export for table '{table_name}': {e.message}")
            return ExportResult.failed(
                e, execution_time_ms=_elapsed_ms(started), export_name=table_name
            )

        logger.info(f"Executing query: {query.sql}")
        base_name = self.filename_policy.base_name(ExportKind.WINDOWED, table_name, window)
        return self._run(
            query,
            base_name,
            timeout_seconds=self.config.statement_timeout_seconds,
            export_name=table_name,
            started=started,
        )

    # ------------------------------------------------------------------
    # Custom-query exports
    # ------------------------------------------------------------------

    def validate_only(self, sql_text: Optional[str]) -> ValidationResult:
        """Pre-flight check of ``sql_text`` without touching the database."""
        return self.validator.validate(sql_text)

    def export_custom_query(self, sql_text: str, export_name: str) -> ExportResult:
        """Export the result of caller-supplied SQL.

        The SQL is validated first; a rejected query never reaches the
        connection provider. Failures are reported in the returned result.
        """
        started = time.monotonic()
        query_length = len(sql_text) if sql_text is not None else 0
        logger.info(f"Starting custom SQL query export with name: {export_name}")
        logger.debug(f"Custom query: {sql_text}")

        verdict = self.validator.validate(sql_text)
        if not verdict:
            logger.error(f"Custom query '{export_name}' rejected: {verdict.reason}")
            return ExportResult.failed(
                ExportValidationError(verdict.reason, {"export_name": export_name}),
                execution_time_ms=_elapsed_ms(started),
                export_name=export_name,
                query_length=query_length,
            )

        if not export_name or not export_name.strip():
            return ExportResult.failed(
                ExportValidationError("Export name cannot be empty"),
                execution_time_ms=_elapsed_ms(started),
                export_name=export_name,
                query_length=query_length,
            )

        export_name = export_name.strip()
        base_name = self.filename_policy.base_name(ExportKind.CUSTOM, export_name)
        return self._run(
            ExportQuery(sql=sql_text),
            base_name,
            timeout_seconds=self.config.custom_query_timeout_seconds,
            export_name=export_name,
            started=started,
            query_length=query_length,
        )

    def export_custom_query_file(self, sql_path: str, export_name: str) -> ExportResult:
        """Read a SELECT statement from ``sql_path`` and export its result."""
        if not sql_path.lower().endswith(SQL_FILE_EXTENSIONS):
            logger.warning(f"SQL file with unexpected extension: {sql_path}")

        try:
            with open(sql_path, "r", encoding="utf-8") as f:
                sql_text = f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            return ExportResult.failed(
                ExportValidationError(f"Failed to read SQL file: {e}"),
                export_name=export_name,
            )

        if not sql_text:
            return ExportResult.failed(
                ExportValidationError("SQL file content cannot be empty"),
                export_name=export_name,
            )

        logger.info(f"SQL read from file {sql_path} - {len(sql_text)} characters")
        return self.export_custom_query(sql_text, export_name)

    def list_tables(self) -> List[str]:
        """Tables of the default schema that can be exported, sorted by name."""
        return sorted(self.connection_provider.list_tables(self.config.default_schema))

    # ------------------------------------------------------------------
    # Shared execution core
    # ------------------------------------------------------------------

    def _run(
        self,
        query: ExportQuery,
        base_name: str,
        timeout_seconds: int,
        export_name: str,
        started: float,
        query_length: int = 0,
    ) -> ExportResult:
        writer = StreamingCsvWriter(
            self.config.output_directory,
            max_rows_per_file=self.config.max_rows_per_file,
            progress_interval=self.config.batch_size * 10,
        )
        try:
            file_paths, column_names = self._execute(
                query, base_name, timeout_seconds, writer
            )
        except ExportError as e:
            elapsed = _elapsed_ms(started)
            logger.error(
                f"Export '{export_name}' failed after {writer.row_count} records "
                f"and {elapsed} ms: {e.message}"
            )
            return ExportResult.failed(
                e,
                execution_time_ms=elapsed,
                export_name=export_name,
                query_length=query_length,
            )

        elapsed = _elapsed_ms(started)
        logger.info(
            f"Export '{export_name}' completed in {elapsed} ms. Generated "
            f"{len(file_paths)} files with {writer.row_count} records"
        )
        return ExportResult.ok(
            file_paths,
            record_count=writer.row_count,
            column_names=column_names,
            execution_time_ms=elapsed,
            export_name=export_name,
            query_length=query_length,
        )

    def _execute(
        self,
        query: ExportQuery,
        base_name: str,
        timeout_seconds: int,
        writer: StreamingCsvWriter,
    ) -> Tuple[List[str], List[str]]:
        context = {"query": query.sql, "table": query.table_name}
        try:
            os.makedirs(self.config.output_directory, exist_ok=True)
            with self.connection_provider.acquire() as connection:
                with connection.prepare(
                    query.sql,
                    fetch_size=self.config.batch_size,
                    timeout_seconds=timeout_seconds,
                ) as cursor:
                    logger.info(f"Executing query with timeout: {timeout_seconds} seconds")
                    cursor.execute()
                    column_names = cursor.column_names()
                    file_paths = writer.write_all(cursor, column_names, base_name)
            return file_paths, column_names
        except ExportExecutionError as e:
            e.context.update(context)
            e.rows_written = writer.row_count
            raise
        except ExportError:
            raise
        except Exception as e:
            raise ExportExecutionError(
                str(e), context=context, rows_written=writer.row_count
            ) from e
