"""Calendar time windows used to filter windowed exports.

A window is one of three immutable shapes: an explicit day-of-month range,
a week-of-year number or a calendar month. Bounds are checked when the
window is constructed, so a window that exists is always valid.
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Tuple, Union

from dbexport.exceptions import ExportValidationError

MIN_YEAR = 1900
MAX_YEAR = 2100


def _check_range(value: Optional[int], low: int, high: int, label: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise ExportValidationError(f"{label} must be an integer, got {value!r}")
    if value < low or value > high:
        raise ExportValidationError(f"{label} must be between {low} and {high}")


@dataclass(frozen=True)
class DayRange:
    """Rows whose day-of-month falls within [start_day, end_day]."""

    start_day: int
    end_day: int
    month: Optional[int] = None
    year: Optional[int] = None

    def __post_init__(self):
        if self.start_day is None or self.end_day is None:
            raise ExportValidationError("Start day and end day are both required")
        _check_range(self.start_day, 1, 31, "Start day")
        _check_range(self.end_day, 1, 31, "End day")
        if self.start_day > self.end_day:
            raise ExportValidationError("Start day cannot be greater than end day")
        _check_range(self.month, 1, 12, "Month")
        _check_range(self.year, MIN_YEAR, MAX_YEAR, "Year")

    def day_span(self) -> Tuple[int, int, Optional[int], Optional[int]]:
        return self.start_day, self.end_day, self.month, self.year


@dataclass(frozen=True)
class Week:
    """Rows whose week-of-year equals ``week_number``."""

    week_number: int
    year: Optional[int] = None

    def __post_init__(self):
        if self.week_number is None:
            raise ExportValidationError("Week number is required")
        _check_range(self.week_number, 1, 52, "Week number")
        _check_range(self.year, MIN_YEAR, MAX_YEAR, "Year")

    def day_span(self) -> Tuple[int, int, Optional[int], Optional[int]]:
        """Return (first day, last day, month, year) of the week.

        Weeks are counted in whole 7-day steps from January 1st. A missing
        year resolves to the current year.
        """
        year = self.year if self.year is not None else date.today().year
        start = date(year, 1, 1) + timedelta(weeks=self.week_number - 1)
        end = start + timedelta(days=6)
        return start.day, end.day, start.month, year


@dataclass(frozen=True)
class Month:
    """Rows whose month-of-year equals ``month``."""

    month: int
    year: Optional[int] = None

    def __post_init__(self):
        if self.month is None:
            raise ExportValidationError("Month is required")
        _check_range(self.month, 1, 12, "Month")
        _check_range(self.year, MIN_YEAR, MAX_YEAR, "Year")

    def day_span(self) -> Tuple[int, int, Optional[int], Optional[int]]:
        year = self.year if self.year is not None else date.today().year
        last_day = calendar.monthrange(year, self.month)[1]
        return 1, last_day, self.month, year


TimeWindowSpec = Union[DayRange, Week, Month]
