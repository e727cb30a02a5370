"""Rich display functions for the dbexport CLI."""

import json
from typing import Any, List

from rich.console import Console
from rich.table import Table

from dbexport.export.query_validator import ValidationResult
from dbexport.export.result import ExportResult

console = Console()


def display_success(message: str) -> None:
    console.print(f"✅ [bold green]{message}[/bold green]")


def display_error(message: str) -> None:
    console.print(f"❌ [bold red]{message}[/bold red]")


def display_warning(message: str) -> None:
    console.print(f"⚠️  [bold yellow]{message}[/bold yellow]")


def display_json_output(data: Any) -> None:
    """Display JSON output with proper formatting.

    Args:
        data: Data to display as JSON
    """
    try:
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
        # Plain print so the output stays machine-readable
        console.print(json_str, markup=False, highlight=False, soft_wrap=True)
    except (TypeError, ValueError) as e:
        console.print(f"❌ [red]Error formatting JSON output: {e}[/red]")


def display_file_list(file_paths: List[str]) -> None:
    display_success(f"Export completed: {len(file_paths)} file(s) generated")
    for path in file_paths:
        console.print(f"  📄 {path}", markup=False)


def display_export_result(result: ExportResult) -> None:
    """Display a custom-query export result as a property table."""
    if not result.success:
        display_error(f"Export failed: {result.error}")
        return

    display_success("Custom query export completed successfully")

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Property", style="cyan", width=14)
    table.add_column("Value", style="white")

    table.add_row("Export", result.export_name or "")
    table.add_row("Files", str(result.files_generated))
    table.add_row("Records", str(result.record_count))
    table.add_row("Columns", ", ".join(result.column_names))
    table.add_row("Time", f"{result.execution_time_ms} ms")

    console.print(table)
    for path in result.file_paths:
        console.print(f"  📄 {path}", markup=False)


def display_validation_result(result: ValidationResult) -> None:
    if result.valid:
        display_success("Query validation passed")
        console.print(f"Length: [cyan]{result.query_length}[/cyan]")
        console.print(f"Estimated complexity: [cyan]{result.estimated_complexity}[/cyan]")
    else:
        display_error(f"Query rejected: {result.reason}")


def display_tables(tables: List[str], schema: str) -> None:
    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Table", style="cyan")
    for name in tables:
        table.add_row(name)

    console.print(f"📋 [bold blue]{len(tables)} tables in schema '{schema}'[/bold blue]")
    console.print(table)
