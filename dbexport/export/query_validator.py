"""
Textual safety gate for caller-supplied SQL.

The validator accepts a single read-only SELECT statement and rejects
everything else before a connection is ever acquired. It is a keyword
filter, not a SQL parser: a SELECT that reaches a dangerous function
through comments, encodings or vendor-specific syntax can still get
through. Pair it with a read-only database account.
"""

import re
from dataclasses import dataclass
from typing import Optional

from dbexport.logging import get_logger

logger = get_logger(__name__)

MAX_QUERY_LENGTH = 10000

EMPTY_QUERY = "empty query"
NOT_SELECT = "only SELECT queries are allowed"
PROHIBITED_KEYWORD = "prohibited keyword found"
QUERY_TOO_LONG = "query too long"
MULTIPLE_STATEMENTS = "multiple statements not allowed"

SELECT_PATTERN = re.compile(r"^\s*SELECT\b", re.IGNORECASE)
DANGEROUS_KEYWORDS = re.compile(
    r"\b(INSERT|UPDATE|DELETE|DROP|CREATE|ALTER|EXEC|EXECUTE|CALL|DECLARE"
    r"|TRUNCATE|MERGE|REPLACE)\b",
    re.IGNORECASE,
)

# Weighted markers used for the complexity estimate
_COMPLEX_FUNCTIONS = ("SUM(", "COUNT(", "AVG(", "MAX(", "MIN(", "DISTINCT")


@dataclass(frozen=True)
class ValidationResult:
    """Verdict for one SQL text."""

    valid: bool
    reason: Optional[str] = None
    query_length: int = 0
    estimated_complexity: Optional[str] = None

    def __bool__(self) -> bool:
        """Returns True if validation passed."""
        return self.valid


class QueryValidator:
    """Accepts or rejects SQL text; rules run in order and the first failure wins."""

    def __init__(self, max_length: int = MAX_QUERY_LENGTH):
        self.max_length = max_length

    def validate(self, sql_text: Optional[str]) -> ValidationResult:
        """Check ``sql_text`` and return the verdict.

        Args:
            sql_text: Candidate statement

        Returns:
            ValidationResult; ``reason`` is set when the query was rejected
        """
        length = len(sql_text) if sql_text is not None else 0
        reason = self._first_violation(sql_text)
        if reason is not None:
            logger.debug(f"SQL query rejected ({reason}), length {length}")
            return ValidationResult(valid=False, reason=reason, query_length=length)

        logger.debug(f"SQL query validation passed for {length} characters")
        return ValidationResult(
            valid=True,
            query_length=length,
            estimated_complexity=estimate_complexity(sql_text),
        )

    def _first_violation(self, sql_text: Optional[str]) -> Optional[str]:
        if sql_text is None or not sql_text.strip():
            return EMPTY_QUERY

        if not SELECT_PATTERN.match(sql_text):
            return NOT_SELECT

        keyword = DANGEROUS_KEYWORDS.search(sql_text)
        if keyword:
            return f"{PROHIBITED_KEYWORD}: {keyword.group(1).upper()}"

        if len(sql_text) > self.max_length:
            return f"{QUERY_TOO_LONG} (maximum {self.max_length} characters)"

        # A single trailing terminator is allowed
        segments = sql_text.strip().split(";")
        if any(segment.strip() for segment in segments[1:]):
            return MULTIPLE_STATEMENTS

        return None


def estimate_complexity(sql_text: Optional[str]) -> str:
    """Rough LOW / MEDIUM / HIGH / VERY_HIGH rating of a SELECT statement."""
    if sql_text is None:
        return "UNKNOWN"

    upper = sql_text.upper()
    score = upper.count("JOIN") * 2
    score += max(upper.count("SELECT") - 1, 0)
    score += upper.count("GROUP BY")
    score += upper.count("ORDER BY")
    score += upper.count("HAVING")
    score += sum(upper.count(function) for function in _COMPLEX_FUNCTIONS)

    if score <= 2:
        return "LOW"
    elif score <= 5:
        return "MEDIUM"
    elif score <= 10:
        return "HIGH"
    return "VERY_HIGH"
