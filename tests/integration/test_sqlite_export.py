"""End-to-end exports from a SQLite database through the SQLAlchemy provider."""

import csv

import pytest

from dbexport.config import ExportConfig
from dbexport.connectors.sqlalchemy_provider import SqlAlchemyConnectionProvider
from dbexport.export.orchestrator import ExportOrchestrator
from dbexport.export.window import Month


def _read_csv(path):
    with open(path, "r", encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


@pytest.fixture
def orchestrator(sqlite_engine, output_dir, fixed_policy):
    config = ExportConfig(
        output_directory=output_dir,
        dialect="sqlite",
        batch_size=2,
        max_rows_per_file=3,
    )
    provider = SqlAlchemyConnectionProvider(engine=sqlite_engine)
    return ExportOrchestrator(config, provider, filename_policy=fixed_policy)


def test_windowed_export_of_december(orchestrator):
    paths = orchestrator.export_windowed("orders", 1, 15, 12, 2023, "order_date")

    assert len(paths) == 2
    first, second = (_read_csv(path) for path in paths)
    header = ["id", "customer", "amount", "order_date"]
    assert first == [
        header,
        ["1", "Alice", "10.5", "2023-12-01"],
        ["2", "Bob, Jr.", "20.0", "2023-12-05"],
        ['3', 'Carol "CJ"', "", "2023-12-10"],
    ]
    assert second == [header, ["4", "Dan\nSmith", "5.25", "2023-12-15"]]


def test_whole_month(orchestrator):
    result = orchestrator.run_windowed("orders", Month(11, 2023), "order_date")
    assert result.success
    assert result.record_count == 1
    assert _read_csv(result.file_paths[0])[1][0] == "6"


def test_custom_query_with_empty_result(orchestrator):
    result = orchestrator.export_custom_query("SELECT id FROM empty_table", "nothing")
    assert result.success
    assert result.record_count == 0
    assert _read_csv(result.file_paths[0]) == [["id"]]


def test_custom_query_aggregate(orchestrator):
    result = orchestrator.export_custom_query(
        "SELECT substr(order_date, 1, 7) AS period, COUNT(*) AS orders "
        "FROM orders GROUP BY period ORDER BY period",
        "per month",
    )
    assert result.success
    assert _read_csv(result.file_paths[0]) == [
        ["period", "orders"],
        ["2023-11", "1"],
        ["2023-12", "5"],
    ]


def test_custom_query_with_subquery(orchestrator):
    result = orchestrator.export_custom_query(
        "SELECT * FROM orders WHERE id IN (SELECT id FROM orders)", "safe"
    )
    assert result.success
    assert result.record_count == 6


def test_list_tables(orchestrator):
    assert orchestrator.list_tables() == ["empty_table", "orders"]

def test_profile_without_dialect_uses_connected_database(sqlite_engine, output_dir):
    config = ExportConfig.from_dict(
        {
            "connection": {"url": f"sqlite:///{sqlite_engine.url.database}"},
            "export": {"output_directory": output_dir, "max_rows_per_file": 10},
        }
    )
    provider = SqlAlchemyConnectionProvider(engine=sqlite_engine)
    orchestrator = ExportOrchestrator(config, provider)

    paths = orchestrator.export_windowed("orders", 1, 15, 12, 2023, "order_date")

    assert orchestrator.dialect == "sqlite"
    assert [row[0] for row in _read_csv(paths[0])[1:]] == ["1", "2", "3", "4"]
