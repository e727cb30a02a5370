"""Deterministic, collision-resistant names for export files."""

import re
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from dbexport.export.window import TimeWindowSpec

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
MAX_NAME_LENGTH = 50
CSV_EXTENSION = ".csv"

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_-]")


class ExportKind(Enum):
    """What produced an export; decides the filename prefix."""

    WINDOWED = "export"
    CUSTOM = "export_custom"


def sanitize_name(name: Optional[str]) -> str:
    """Replace anything outside ``[A-Za-z0-9_-]`` with ``_`` and cap at 50 characters."""
    if not name:
        return ""
    return _UNSAFE_CHARACTERS.sub("_", name)[:MAX_NAME_LENGTH]


class FilenamePolicy:
    """Builds base names and numbered split names for one export run."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def timestamp(self) -> str:
        return self._clock().strftime(TIMESTAMP_FORMAT)

    def base_name(
        self,
        kind: ExportKind,
        name: str,
        window: Optional[TimeWindowSpec] = None,
    ) -> str:
        """Return the extension-less base name for an export.

        Args:
            kind: Windowed or custom export
            name: Table name or caller-supplied export name
            window: Time window for windowed exports

        Returns:
            ``<prefix>_<name>[_days_<s>-<e>][_month_<m>][_year_<y>]_<timestamp>``
        """
        parts = [kind.value, sanitize_name(name)]
        if window is not None:
            start_day, end_day, month, year = window.day_span()
            parts.append(f"days_{start_day}-{end_day}")
            if month is not None:
                parts.append(f"month_{month}")
            if year is not None:
                parts.append(f"year_{year}")
        parts.append(self.timestamp())
        return "_".join(parts)

    @staticmethod
    def split_name(base: str, file_number: int) -> str:
        """Name of the ``file_number``-th file (1-based) of an export, without extension."""
        if file_number < 1:
            raise ValueError(f"file_number must be >= 1, got {file_number}")
        if file_number == 1:
            return base
        return f"{base}_part{file_number:03d}"

    @classmethod
    def split_file_name(cls, base: str, file_number: int) -> str:
        return cls.split_name(base, file_number) + CSV_EXTENSION
