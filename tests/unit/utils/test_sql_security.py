"""Tests for SQL identifier validation."""

import pytest

from dbexport.exceptions import ExportValidationError
from dbexport.utils.sql_security import (
    SQLIdentifierValidator,
    qualify_table_name,
    split_qualified_name,
    validate_identifier,
)


class TestSQLIdentifierValidator:
    @pytest.mark.parametrize("name", ["orders", "_tmp", "Order_Items2", "col$1", "created_at"])
    def test_valid_identifiers(self, name):
        assert SQLIdentifierValidator.is_valid_identifier(name)

    @pytest.mark.parametrize(
        "name", ["", None, "1abc", "a-b", "a b", "a;", "drop", "Delete", "x'--", "a.b"]
    )
    def test_invalid_identifiers(self, name):
        assert not SQLIdentifierValidator.is_valid_identifier(name)

    def test_keyword_inside_identifier_is_allowed(self):
        assert SQLIdentifierValidator.is_valid_identifier("drop_log")

    @pytest.mark.parametrize("name", ["orders", "sales.orders"])
    def test_valid_qualified_names(self, name):
        assert SQLIdentifierValidator.is_valid_qualified_name(name)

    @pytest.mark.parametrize("name", ["a.b.c", ".orders", "sales.", "sales.drop"])
    def test_invalid_qualified_names(self, name):
        assert not SQLIdentifierValidator.is_valid_qualified_name(name)


def test_validate_identifier_strips_whitespace():
    assert validate_identifier("  order_date ", "date column") == "order_date"


def test_validate_identifier_error_names_the_label():
    with pytest.raises(ExportValidationError, match="Invalid SQL date column"):
        validate_identifier("x;", "date column")


def test_split_qualified_name():
    assert split_qualified_name("sales.orders") == ("sales", "orders")
    assert split_qualified_name("orders") == (None, "orders")


class TestQualifyTableName:
    def test_applies_default_schema(self):
        assert qualify_table_name("orders", "sales") == "sales.orders"

    def test_keeps_explicit_schema(self):
        assert qualify_table_name("archive.orders", "sales") == "archive.orders"

    def test_no_schema(self):
        assert qualify_table_name("orders") == "orders"

    def test_rejects_unsafe_default_schema(self):
        with pytest.raises(ExportValidationError, match="schema name"):
            qualify_table_name("orders", "sales; --")
