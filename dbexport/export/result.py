"""Outcome of one export run, returned by every orchestrator entry point."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dbexport.exceptions import ExportError, ExportExecutionError, ExportValidationError

ERROR_KIND_VALIDATION = "validation"
ERROR_KIND_EXECUTION = "execution"


@dataclass(frozen=True)
class ExportResult:
    """Terminal value of one export invocation, successful or not."""

    success: bool
    file_paths: Tuple[str, ...] = ()
    record_count: Optional[int] = None
    column_names: Tuple[str, ...] = ()
    execution_time_ms: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None
    export_name: Optional[str] = None
    query_length: int = 0
    exception: Optional[ExportError] = field(default=None, repr=False, compare=False)

    @property
    def files_generated(self) -> int:
        return len(self.file_paths)

    @classmethod
    def ok(
        cls,
        file_paths: List[str],
        record_count: int,
        column_names: List[str],
        execution_time_ms: int,
        export_name: Optional[str] = None,
        query_length: int = 0,
    ) -> "ExportResult":
        return cls(
            success=True,
            file_paths=tuple(file_paths),
            record_count=record_count,
            column_names=tuple(column_names),
            execution_time_ms=execution_time_ms,
            export_name=export_name,
            query_length=query_length,
        )

    @classmethod
    def failed(
        cls,
        exception: ExportError,
        execution_time_ms: int = 0,
        export_name: Optional[str] = None,
        query_length: int = 0,
    ) -> "ExportResult":
        kind = (
            ERROR_KIND_VALIDATION
            if isinstance(exception, ExportValidationError)
            else ERROR_KIND_EXECUTION
        )
        return cls(
            success=False,
            execution_time_ms=execution_time_ms,
            error=exception.message,
            error_kind=kind,
            export_name=export_name,
            query_length=query_length,
            exception=exception,
        )

    def unwrap(self) -> List[str]:
        """Return the file paths, or raise the error this result carries."""
        if self.success:
            return list(self.file_paths)
        if self.exception is not None:
            raise self.exception
        raise ExportExecutionError(self.error or "Export failed")

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error,
            "error_kind": self.error_kind,
            "export_name": self.export_name,
            "files_generated": self.files_generated,
            "file_paths": list(self.file_paths),
            "record_count": self.record_count,
            "column_names": list(self.column_names),
            "execution_time_ms": self.execution_time_ms,
            "query_length": self.query_length,
        }
