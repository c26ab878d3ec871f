"""Unit tests for scan_engine.detection.usage -- usage and query rows."""

from __future__ import annotations

from scan_engine.detection import QueryView, SourceLocation, extract_usage_rows, query_text_row
from scan_engine.tables import ColumnUsedRow, Operation

_SELECT_SQL = (
    "SELECT distinct(first_name) FROM users WHERE user_id = :userId AND :user_type = ANY (user_types)"
)
_UPDATE_SQL = (
    "UPDATE user_update_jobs SET state = 'CANCELED' "
    "WHERE state IN ('QUEUED', 'ORPHANED', 'PROCESSING') AND job_id = :jobId"
)
_DELETE_SQL = "DELETE FROM users WHERE email = :email"


def _facts(sql: str) -> list[tuple[Operation, str, str | None]]:
    return [(r.operation, r.table, r.column) for r in extract_usage_rows(QueryView.parse(sql))]


class TestExtractUsageRows:
    def test_select_distinct_column(self):
        assert _facts(_SELECT_SQL) == [(Operation.SELECT, "users", "first_name")]

    def test_update_set_column(self):
        assert _facts(_UPDATE_SQL) == [(Operation.UPDATE, "user_update_jobs", "state")]

    def test_delete_whole_row(self):
        assert _facts(_DELETE_SQL) == [(Operation.DELETE, "users", None)]

    def test_insert_columns(self):
        assert _facts("INSERT INTO audit (actor, action) VALUES ('a', 'b')") == [
            (Operation.INSERT, "audit", "actor"),
            (Operation.INSERT, "audit", "action"),
        ]

    def test_other_statement_yields_nothing(self):
        assert _facts("SELECT a FROM t UNION SELECT a FROM u") == []

    def test_location_copied_to_rows(self):
        location = SourceLocation(source_path="app/jobs.py", line_number=12, commit_hash="abc123")
        rows = list(extract_usage_rows(QueryView.parse(_DELETE_SQL), location))
        assert rows == [
            ColumnUsedRow(
                source_path="app/jobs.py",
                line_number=12,
                commit_hash="abc123",
                operation=Operation.DELETE,
                table="users",
                column=None,
            )
        ]

    def test_location_defaults_to_empty(self):
        (row,) = extract_usage_rows(QueryView.parse(_DELETE_SQL))
        assert row.source_path is None
        assert row.line_number is None
        assert row.commit_hash is None

    def test_repeated_extraction_is_identical(self):
        view = QueryView.parse(_UPDATE_SQL)
        assert list(extract_usage_rows(view)) == list(extract_usage_rows(view))


class TestQueryTextRow:
    def test_full_text_kept(self):
        sql = "SELECT a\nFROM t\n"
        row = query_text_row(QueryView.parse(sql), "q.sql")
        assert row.query == sql
        assert row.source_path == "q.sql"

    def test_source_path_optional(self):
        assert query_text_row(QueryView.parse("SELECT a FROM t")).source_path is None
