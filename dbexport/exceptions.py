"""Exception hierarchy for dbexport."""

from typing import Any, Dict, Optional


class ExportError(Exception):
    """Base exception for export-related errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ExportValidationError(ExportError):
    """Input rejected before any database round-trip.

    Raised for out-of-range time windows, unsafe identifiers and SQL text
    refused by the query validator.
    """


class ExportExecutionError(ExportError):
    """Connection, statement or write failure while an export was running."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        rows_written: int = 0,
    ):
        self.rows_written = rows_written
        super().__init__(message, context)


class ConfigurationError(ExportError):
    """Invalid or missing configuration values."""
