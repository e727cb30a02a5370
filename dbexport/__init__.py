"""dbexport - streaming CSV exports of relational tables and ad-hoc SELECT queries."""

__version__ = "0.1.0"
__package_name__ = "dbexport"

from dbexport.config import ConnectionSettings, ExportConfig, load_config
from dbexport.exceptions import (
    ConfigurationError,
    ExportError,
    ExportExecutionError,
    ExportValidationError,
)
from dbexport.export.orchestrator import ExportOrchestrator
from dbexport.export.result import ExportResult
from dbexport.export.window import DayRange, Month, Week

__all__ = [
    "ConfigurationError",
    "ConnectionSettings",
    "DayRange",
    "ExportConfig",
    "ExportError",
    "ExportExecutionError",
    "ExportOrchestrator",
    "ExportResult",
    "ExportValidationError",
    "Month",
    "Week",
    "load_config",
]
