#!/usr/bin/env python3
"""dbexport CLI.

Typer application exposing windowed table exports, custom-query exports,
query validation and table listing. Exit codes: 0 on success, 1 for
configuration or execution failures, 2 for rejected input.
"""

from typing import List, Optional

import typer
from rich.console import Console

from dbexport.cli.display import (
    display_error,
    display_export_result,
    display_file_list,
    display_json_output,
    display_tables,
    display_validation_result,
)
from dbexport.cli.factories import create_orchestrator_for_command
from dbexport.exceptions import ExportError, ExportValidationError
from dbexport.export.query_validator import QueryValidator
from dbexport.export.result import ERROR_KIND_VALIDATION
from dbexport.logging import get_logger

logger = get_logger(__name__)
console = Console()

EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2

app = typer.Typer(
    name="dbexport",
    help="dbexport - stream database tables and SELECT queries to CSV",
    add_completion=False,
)
export_app = typer.Typer(
    name="export",
    help="Export table data or query results to CSV files",
)
app.add_typer(export_app, name="export")

PROFILE_OPTION = typer.Option("dev", "--profile", "-p", help="Profile to use")
FORMAT_OPTION = typer.Option("table", "--format", help="Output format: table or json")
DATE_COLUMN_OPTION = typer.Option(
    None, "--date-column", "-c", help="Date column the window applies to"
)
YEAR_OPTION = typer.Option(None, "--year", help="Year (1900-2100)")


def _version_callback(value: bool) -> None:
    if value:
        from dbexport import __version__

        console.print(f"dbexport v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show warnings and errors"),
) -> None:
    """dbexport - stream database tables and SELECT queries to CSV.

    Examples:
        dbexport export days orders --start-day 1 --end-day 15 --month 12 --year 2023 -c order_date
        dbexport export query --sql "SELECT * FROM users" --name users
        dbexport validate "SELECT id FROM users"
    """
    _setup_environment(verbose, quiet)


def _setup_environment(verbose: bool = False, quiet: bool = False) -> None:
    from dbexport.logging import configure_logging, suppress_third_party_loggers
    from dbexport.utils.env import setup_environment

    env_loaded = setup_environment()
    configure_logging(verbose=verbose, quiet=quiet)
    suppress_third_party_loggers()
    if verbose and env_loaded:
        console.print("✓ [dim]Environment variables loaded from .env file[/dim]")


def _exit_for_error(error: ExportError) -> None:
    display_error(error.message)
    if isinstance(error, ExportValidationError):
        raise typer.Exit(EXIT_INVALID_INPUT)
    raise typer.Exit(EXIT_FAILURE)


def _report_files(file_paths: List[str], format: str) -> None:
    if format == "json":
        display_json_output({"success": True, "file_paths": file_paths})
    else:
        display_file_list(file_paths)


@export_app.command("days")
def export_days(
    table: str = typer.Argument(..., help="Table to export, optionally schema-qualified"),
    start_day: int = typer.Option(..., "--start-day", help="First day of month (1-31)"),
    end_day: int = typer.Option(..., "--end-day", help="Last day of month (1-31)"),
    month: Optional[int] = typer.Option(None, "--month", help="Month (1-12)"),
    year: Optional[int] = YEAR_OPTION,
    date_column: Optional[str] = DATE_COLUMN_OPTION,
    profile: str = PROFILE_OPTION,
    format: str = FORMAT_OPTION,
) -> None:
    """Export rows whose date falls within a day-of-month range."""
    try:
        orchestrator = create_orchestrator_for_command(profile)
        file_paths = orchestrator.export_windowed(
            table, start_day, end_day, month, year, date_column
        )
    except ExportError as e:
        _exit_for_error(e)
    _report_files(file_paths, format)


@export_app.command("week")
def export_week(
    table: str = typer.Argument(..., help="Table to export, optionally schema-qualified"),
    week: int = typer.Option(..., "--week", "-w", help="Week of the year (1-52)"),
    year: Optional[int] = YEAR_OPTION,
    date_column: Optional[str] = DATE_COLUMN_OPTION,
    profile: str = PROFILE_OPTION,
    format: str = FORMAT_OPTION,
) -> None:
    """Export the rows of one week of the year."""
    try:
        orchestrator = create_orchestrator_for_command(profile)
        file_paths = orchestrator.export_weekly(table, week, year, date_column)
    except ExportError as e:
        _exit_for_error(e)
    _report_files(file_paths, format)


@export_app.command("month")
def export_month(
    table: str = typer.Argument(..., help="Table to export, optionally schema-qualified"),
    month: Optional[int] = typer.Option(
        None, "--month", "-m", help="Month (1-12), defaults to the current month"
    ),
    year: Optional[int] = YEAR_OPTION,
    date_column: Optional[str] = DATE_COLUMN_OPTION,
    profile: str = PROFILE_OPTION,
    format: str = FORMAT_OPTION,
) -> None:
    """Export the rows of one calendar month."""
    try:
        orchestrator = create_orchestrator_for_command(profile)
        file_paths = orchestrator.export_monthly(table, month, year, date_column)
    except ExportError as e:
        _exit_for_error(e)
    _report_files(file_paths, format)


@export_app.command("query")
def export_query(
    name: str = typer.Option(..., "--name", "-n", help="Export name used in file names"),
    sql: Optional[str] = typer.Option(None, "--sql", help="SELECT statement to export"),
    file: Optional[str] = typer.Option(
        None, "--file", "-f", help="File containing the SELECT statement"
    ),
    profile: str = PROFILE_OPTION,
    format: str = FORMAT_OPTION,
) -> None:
    """Export the result of a custom SELECT query."""
    if (sql is None) == (file is None):
        display_error("Provide exactly one of --sql or --file")
        raise typer.Exit(EXIT_INVALID_INPUT)

    try:
        orchestrator = create_orchestrator_for_command(profile)
    except ExportError as e:
        _exit_for_error(e)

    if file is not None:
        result = orchestrator.export_custom_query_file(file, name)
    else:
        result = orchestrator.export_custom_query(sql, name)

    if format == "json":
        display_json_output(result.to_dict())
    else:
        display_export_result(result)

    if not result.success:
        raise typer.Exit(
            EXIT_INVALID_INPUT if result.error_kind == ERROR_KIND_VALIDATION else EXIT_FAILURE
        )


@app.command()
def validate(
    sql: str = typer.Argument(..., help="SQL text to check"),
    format: str = FORMAT_OPTION,
) -> None:
    """Check a query against the export safety rules without running it."""
    result = QueryValidator().validate(sql)
    if format == "json":
        display_json_output(
            {
                "valid": result.valid,
                "error": result.reason,
                "query_length": result.query_length,
                "estimated_complexity": result.estimated_complexity,
            }
        )
    else:
        display_validation_result(result)

    if not result.valid:
        raise typer.Exit(EXIT_INVALID_INPUT)


@app.command()
def tables(
    profile: str = PROFILE_OPTION,
    format: str = FORMAT_OPTION,
) -> None:
    """List the tables available for export in the default schema."""
    try:
        orchestrator = create_orchestrator_for_command(profile)
        names = orchestrator.list_tables()
    except ExportError as e:
        _exit_for_error(e)
    except Exception as e:
        logger.error(f"Failed to list tables: {e}")
        display_error(f"Failed to retrieve available tables: {e}")
        raise typer.Exit(EXIT_FAILURE)

    schema = orchestrator.config.default_schema or "default"
    if format == "json":
        display_json_output({"schema": schema, "table_count": len(names), "tables": names})
    else:
        display_tables(names, schema)


def cli() -> None:
    """Entry point for the CLI application."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n⚠️  [yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(130)


if __name__ == "__main__":
    cli()
