"""Builds the SELECT statement for a windowed table export."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from dbexport.exceptions import ExportValidationError
from dbexport.export.window import DayRange, Month, TimeWindowSpec, Week
from dbexport.logging import get_logger
from dbexport.utils.sql_security import qualify_table_name, validate_identifier

logger = get_logger(__name__)

# Date-part expressions per dialect; {column} is a validated identifier
DATE_PART_TEMPLATES: Dict[str, Dict[str, str]] = {
    "mysql": {
        "day": "DAYOFMONTH({column})",
        "week": "WEEK({column})",
        "month": "MONTH({column})",
        "year": "YEAR({column})",
    },
    "postgresql": {
        "day": "EXTRACT(DAY FROM {column})",
        "week": "EXTRACT(WEEK FROM {column})",
        "month": "EXTRACT(MONTH FROM {column})",
        "year": "EXTRACT(YEAR FROM {column})",
    },
    "sqlite": {
        "day": "CAST(strftime('%d', {column}) AS INTEGER)",
        "week": "CAST(strftime('%W', {column}) AS INTEGER)",
        "month": "CAST(strftime('%m', {column}) AS INTEGER)",
        "year": "CAST(strftime('%Y', {column}) AS INTEGER)",
    },
}

SUPPORTED_DIALECTS = tuple(DATE_PART_TEMPLATES)


@dataclass(frozen=True)
class ExportQuery:
    """A complete SELECT statement plus what it was built from."""

    sql: str
    window: Optional[TimeWindowSpec] = None
    table_name: Optional[str] = None


class QueryBuilder:
    """Turns a table name and a time window into ``SELECT * ... ORDER BY ...``.

    Projection is always ``*``. Without a date column the statement has no
    WHERE clause and is ordered by the first column, so rows carry no
    temporal ordering in that case.
    """

    def __init__(self, default_schema: Optional[str] = None, dialect: str = "mysql"):
        dialect = dialect.lower()
        if dialect == "postgres":
            dialect = "postgresql"
        if dialect not in DATE_PART_TEMPLATES:
            raise ExportValidationError(
                f"Unsupported SQL dialect '{dialect}'. "
                f"Supported: {', '.join(SUPPORTED_DIALECTS)}"
            )
        self.default_schema = default_schema
        self.dialect = dialect
        self._templates = DATE_PART_TEMPLATES[dialect]

    def build(
        self,
        table_name: str,
        window: TimeWindowSpec,
        date_column: Optional[str] = None,
    ) -> ExportQuery:
        """Build the export statement for ``table_name`` filtered by ``window``.

        Args:
            table_name: ``table`` or ``schema.table``
            window: DayRange, Week or Month
            date_column: Column the window applies to; no filter when omitted

        Returns:
            ExportQuery

        Raises:
            ExportValidationError: If the table or column name is not a plain identifier
        """
        qualified = qualify_table_name(table_name, self.default_schema)

        column = None
        if date_column is not None and date_column.strip():
            column = validate_identifier(date_column, "date column")

        sql = f"SELECT * FROM {qualified}"
        if column is not None:
            predicates = self._window_predicates(window, column)
            if predicates:
                sql += " WHERE " + " AND ".join(predicates)
        sql += f" ORDER BY {column or '1'}"

        logger.debug(f"Built export query: {sql}")
        return ExportQuery(sql=sql, window=window, table_name=qualified)

    def _part(self, part: str, column: str) -> str:
        return self._templates[part].format(column=column)

    def _window_predicates(self, window: TimeWindowSpec, column: str) -> List[str]:
        predicates = []
        if isinstance(window, DayRange):
            predicates.append(
                f"{self._part('day', column)} BETWEEN {window.start_day:d} "
                f"AND {window.end_day:d}"
            )
            if window.month is not None:
                predicates.append(f"{self._part('month', column)} = {window.month:d}")
        elif isinstance(window, Week):
            predicates.append(f"{self._part('week', column)} = {window.week_number:d}")
        elif isinstance(window, Month):
            predicates.append(f"{self._part('month', column)} = {window.month:d}")
        else:
            raise ExportValidationError(
                f"Unsupported time window: {type(window).__name__}"
            )

        if window.year is not None:
            predicates.append(f"{self._part('year', column)} = {window.year:d}")
        return predicates
