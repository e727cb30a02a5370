"""
SQL identifier safety checks.

Table and column names reach generated SQL by string interpolation, so they
are restricted to plain identifiers before any statement is built.
"""

import re
from typing import Optional, Tuple

from dbexport.exceptions import ExportValidationError


class SQLIdentifierValidator:
    """Validator for SQL identifiers to prevent injection."""

    # Valid SQL identifier pattern: letters, numbers, underscores, no special chars
    VALID_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")

    # Identifiers that are nothing but a dangerous keyword
    DANGEROUS_KEYWORDS = {
        "DROP",
        "DELETE",
        "INSERT",
        "UPDATE",
        "ALTER",
        "CREATE",
        "TRUNCATE",
        "GRANT",
        "REVOKE",
        "COMMIT",
        "ROLLBACK",
        "EXEC",
        "EXECUTE",
    }

    @classmethod
    def is_valid_identifier(cls, identifier: str) -> bool:
        """
        Check if an identifier is valid and safe to use in SQL.

        Args:
            identifier: The identifier to validate

        Returns:
            True if the identifier is safe, False otherwise
        """
        if not identifier or not isinstance(identifier, str):
            return False

        # Only flag if the identifier IS the keyword, not if it contains it
        if identifier.upper() in cls.DANGEROUS_KEYWORDS:
            return False

        return bool(cls.VALID_IDENTIFIER_PATTERN.match(identifier))

    @classmethod
    def is_valid_qualified_name(cls, name: str) -> bool:
        """Check a ``table`` or ``schema.table`` reference."""
        if not name or not isinstance(name, str):
            return False
        parts = name.split(".")
        if len(parts) > 2:
            return False
        return all(cls.is_valid_identifier(part) for part in parts)


def validate_identifier(identifier: str, label: str = "identifier") -> str:
    """
    Validate an SQL identifier and raise an exception if invalid.

    Args:
        identifier: The identifier to validate
        label: What the identifier names, used in the error message

    Returns:
        The identifier, stripped of surrounding whitespace

    Raises:
        ExportValidationError: If the identifier is invalid
    """
    candidate = identifier.strip() if isinstance(identifier, str) else identifier
    if not SQLIdentifierValidator.is_valid_identifier(candidate):
        raise ExportValidationError(f"Invalid SQL {label}: {identifier!r}")
    return candidate


def split_qualified_name(name: str) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` into its parts; the schema is None when absent."""
    candidate = name.strip() if isinstance(name, str) else name
    if not SQLIdentifierValidator.is_valid_qualified_name(candidate):
        raise ExportValidationError(f"Invalid SQL table name: {name!r}")
    if "." in candidate:
        schema, table = candidate.split(".")
        return schema, table
    return None, candidate


def qualify_table_name(name: str, default_schema: Optional[str] = None) -> str:
    """
    Prefix ``name`` with ``default_schema`` when it carries no schema.

    Args:
        name: ``table`` or ``schema.table``
        default_schema: Schema applied to unqualified names

    Returns:
        Qualified table reference

    Raises:
        ExportValidationError: If either part is not a plain identifier
    """
    schema, table = split_qualified_name(name)
    if schema is None and default_schema:
        schema = validate_identifier(default_schema, "schema name")
    return f"{schema}.{table}" if schema else table
