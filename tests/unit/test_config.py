"""Tests for profile loading and export configuration."""

import pytest

from dbexport.config import (
    ConnectionSettings,
    ExportConfig,
    load_config,
    load_profile,
    resolve_dialect,
    substitute_env_vars,
)
from dbexport.exceptions import ConfigurationError


class TestExportConfig:
    def test_defaults(self):
        config = ExportConfig()
        assert config.output_directory == "./reports"
        assert config.batch_size == 10000
        assert config.max_rows_per_file == 100000
        assert config.statement_timeout_seconds == 300
        assert config.custom_query_timeout_seconds == 600
        assert config.dialect is None

    @pytest.mark.parametrize("field", ["batch_size", "max_rows_per_file", "statement_timeout_seconds"])
    @pytest.mark.parametrize("value", [0, -1, "10", True])
    def test_rejects_non_positive_integers(self, field, value):
        with pytest.raises(ConfigurationError, match=field):
            ExportConfig(**{field: value})

    def test_dialect_is_normalized(self):
        assert ExportConfig(dialect="Postgres").dialect == "postgresql"
        assert ExportConfig(dialect="SQLITE").dialect == "sqlite"

    def test_mariadb_maps_to_mysql(self):
        assert ExportConfig(dialect="MariaDB").dialect == "mysql"

    def test_unknown_dialect(self):
        with pytest.raises(ConfigurationError, match="Unsupported dialect"):
            ExportConfig(dialect="oracle")

    def test_from_dict(self):
        config = ExportConfig.from_dict(
            {
                "connection": {"url": "sqlite:///x.db"},
                "export": {
                    "output_directory": "/tmp/out",
                    "default_schema": "sales",
                    "batch_size": "500",
                    "max_rows_per_file": 1000,
                    "custom_query_timeout_multiplier": 3,
                },
            }
        )
        assert config.output_directory == "/tmp/out"
        assert config.default_schema == "sales"
        assert config.batch_size == 500
        assert config.max_rows_per_file == 1000
        assert config.custom_query_timeout_seconds == 900
        assert config.connection.url == "sqlite:///x.db"

    def test_from_dict_without_sections(self):
        assert ExportConfig.from_dict({}) == ExportConfig()

    def test_unknown_export_setting(self):
        with pytest.raises(ConfigurationError, match="Unknown export settings: chunk"):
            ExportConfig.from_dict({"export": {"chunk": 1}})

    def test_non_numeric_string(self):
        with pytest.raises(ConfigurationError, match="batch_size"):
            ExportConfig.from_dict({"export": {"batch_size": "lots"}})


class TestResolveDialect:
    @pytest.mark.parametrize(
        "configured,engine,expected",
        [
            (None, "sqlite", "sqlite"),
            (None, "postgresql", "postgresql"),
            (None, "mariadb", "mysql"),
            ("postgresql", "postgresql", "postgresql"),
            ("sqlite", None, "sqlite"),
            (None, None, "mysql"),
        ],
    )
    def test_resolves(self, configured, engine, expected):
        assert resolve_dialect(configured, engine) == expected

    def test_mismatch(self):
        with pytest.raises(ConfigurationError, match="does not match"):
            resolve_dialect("mysql", "sqlite")

    def test_unsupported_database(self):
        with pytest.raises(ConfigurationError, match="Unsupported database dialect"):
            resolve_dialect(None, "mssql")

    def test_host_only_profile_leaves_dialect_to_the_database(self):
        config = ExportConfig.from_dict({"connection": {"host": "db", "database": "app"}})
        assert config.dialect is None
        assert config.connection.driver == "postgresql+psycopg2"
        assert resolve_dialect(config.dialect, "postgresql") == "postgresql"


class TestConnectionSettings:
    def test_aliases(self):
        settings = ConnectionSettings.from_dict(
            {"host": "db", "dbname": "app", "user": "reader", "port": 5432}
        )
        assert settings.database == "app"
        assert settings.username == "reader"

    def test_requires_url_or_host_and_database(self):
        with pytest.raises(ConfigurationError, match="requires either"):
            ConnectionSettings.from_dict({"host": "db"})

    def test_unknown_parameter(self):
        with pytest.raises(ConfigurationError, match="Unknown connection parameters: sslmode"):
            ConnectionSettings.from_dict({"url": "sqlite://", "sslmode": "require"})

    def test_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            ConnectionSettings.from_dict(["url"])


class TestSubstituteEnvVars:
    def test_nested_substitution(self):
        data = {"a": "${USER_X}", "b": ["x-${PORT_X|5432}"], "c": 3}
        result = substitute_env_vars(data, {"USER_X": "reader"})
        assert result == {"a": "reader", "b": ["x-5432"], "c": 3}

    def test_environment_wins_over_default(self):
        assert substitute_env_vars("${P|1}", {"P": "2"}) == "2"

    def test_empty_default(self):
        assert substitute_env_vars("${P|}", {}) == ""

    def test_missing_variable_left_in_place(self, caplog):
        with caplog.at_level("WARNING", logger="dbexport.config"):
            assert substitute_env_vars("${NOPE}", {}) == "${NOPE}"
        assert "NOPE" in caplog.text


class TestProfiles:
    def test_load_profile(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DBEXPORT_TEST_DIR", str(tmp_path / "out"))
        (tmp_path / "dev.yml").write_text(
            "connection:\n"
            "  url: sqlite:///db.sqlite\n"
            "export:\n"
            "  output_directory: ${DBEXPORT_TEST_DIR}\n"
            "  max_rows_per_file: ${DBEXPORT_TEST_ROWS|250}\n",
            encoding="utf-8",
        )
        config = load_config(str(tmp_path), "dev")
        assert config.output_directory == str(tmp_path / "out")
        assert config.max_rows_per_file == 250

    def test_missing_profile(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Profile file not found"):
            load_profile(str(tmp_path), "prod")

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "dev.yml").write_text("export: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_profile(str(tmp_path))

    def test_empty_profile(self, tmp_path):
        (tmp_path / "dev.yml").write_text("", encoding="utf-8")
        assert load_profile(str(tmp_path)) == {}

    def test_profile_must_be_mapping(self, tmp_path):
        (tmp_path / "dev.yml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_profile(str(tmp_path))
