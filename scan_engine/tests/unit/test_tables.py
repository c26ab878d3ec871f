"""Unit tests for scan_engine.tables."""

from __future__ import annotations

import csv
import json
import threading

import pytest
from pydantic import ValidationError

from scan_engine.tables import ColumnUsedRow, DatabaseColumnsUsed, DatabaseQueries, Operation, QueryRow


def _row(column: str | None = "state") -> ColumnUsedRow:
    return ColumnUsedRow(
        source_path="update.sql",
        line_number=1,
        commit_hash="abc",
        operation=Operation.UPDATE,
        table="user_update_jobs",
        column=column,
    )


class TestRows:
    def test_operation_from_string(self):
        row = ColumnUsedRow(operation="DELETE", table="users")
        assert row.operation is Operation.DELETE
        assert row.column is None

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValidationError):
            ColumnUsedRow(operation="MERGE", table="users")

    def test_rows_are_frozen(self):
        with pytest.raises(ValidationError):
            _row().table = "other"  # type: ignore[misc]

    def test_field_titles(self):
        assert ColumnUsedRow.model_fields["commit_hash"].title == "Commit hash"
        assert QueryRow.model_fields["query"].title == "Query"


class TestDataTable:
    def test_table_metadata(self):
        assert DatabaseColumnsUsed().name == "Database columns used"
        assert DatabaseQueries().name == "SQL queries"

    def test_insert_and_snapshot(self):
        table = DatabaseColumnsUsed()
        table.insert_row(_row())
        snapshot = table.rows()
        table.insert_row(_row("job_id"))
        assert len(snapshot) == 1
        assert len(table) == 2
        assert [r.column for r in table.rows()] == ["state", "job_id"]

    def test_wrong_row_type_rejected(self):
        with pytest.raises(TypeError, match="ColumnUsedRow"):
            DatabaseColumnsUsed().insert_row(QueryRow(query="SELECT 1"))  # type: ignore[arg-type]

    def test_concurrent_inserts(self):
        table = DatabaseQueries()

        def _insert() -> None:
            for i in range(100):
                table.insert_row(QueryRow(query=f"SELECT {i}"))

        threads = [threading.Thread(target=_insert) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(table) == 800


class TestExport:
    def test_to_csv(self, tmp_path):
        table = DatabaseColumnsUsed()
        table.insert_row(_row())
        table.insert_row(_row(None))

        path = tmp_path / "out" / "columns.csv"
        assert table.to_csv(path) == 2

        with path.open(encoding="utf-8", newline="") as fh:
            records = list(csv.DictReader(fh))
        assert list(records[0]) == ["source_path", "line_number", "commit_hash", "operation", "table", "column"]
        assert records[0]["operation"] == "UPDATE"
        assert records[0]["column"] == "state"
        assert records[1]["column"] == ""

    def test_to_jsonl(self, tmp_path):
        table = DatabaseQueries()
        table.insert_row(QueryRow(source_path="a.sql", query="SELECT a\nFROM t"))

        path = tmp_path / "queries.jsonl"
        assert table.to_jsonl(path) == 1
        (line,) = path.read_text(encoding="utf-8").splitlines()
        assert json.loads(line) == {"source_path": "a.sql", "query": "SELECT a\nFROM t"}
