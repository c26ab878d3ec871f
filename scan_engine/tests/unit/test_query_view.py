"""Unit tests for scan_engine.detection.query_view."""

from __future__ import annotations

import dataclasses

import pytest

from scan_engine.detection import DetectionFailure, NotApplicable, QueryView, view_of, view_of_text
from scan_engine.hosts import HostNode, HostNodeKind
from scan_engine.sql_toolkit import Dialect, SqlParseError, StatementKind

# ---------------------------------------------------------------------------
# view_of_text
# ---------------------------------------------------------------------------


class TestViewOfText:
    def test_non_sql_is_not_applicable(self):
        result = view_of_text("n1", "hello world")
        assert isinstance(result, NotApplicable)
        assert result.node_id == "n1"

    def test_none_is_not_applicable(self):
        assert isinstance(view_of_text("n1", None), NotApplicable)

    def test_keyword_but_unparseable_is_detection_failure(self):
        result = view_of_text("n1", "Selection")
        assert isinstance(result, DetectionFailure)
        assert result.node_id == "n1"
        assert result.message

    def test_sql_in_prose_is_detection_failure(self):
        assert isinstance(view_of_text("n1", "please select (((one"), DetectionFailure)

    @pytest.mark.parametrize("text", ["Select", "select", "SELECT;"])
    def test_select_without_projection_is_detection_failure(self, text):
        result = view_of_text("n1", text)
        assert isinstance(result, DetectionFailure)
        assert "projection" in result.message

    def test_query_view_binds_node_and_text(self):
        result = view_of_text("n1", "SELECT a FROM t")
        assert isinstance(result, QueryView)
        assert result.node_id == "n1"
        assert result.sql == "SELECT a FROM t"
        assert result.kind == StatementKind.SELECT
        assert result.dialect == Dialect.GENERIC

    def test_dialect_passed_through(self):
        result = view_of_text("n1", "SELECT a FROM t", dialect=Dialect.POSTGRES)
        assert isinstance(result, QueryView)
        assert result.dialect == Dialect.POSTGRES


# ---------------------------------------------------------------------------
# view_of over host node kinds
# ---------------------------------------------------------------------------


class TestViewOf:
    @pytest.mark.parametrize("kind", list(HostNodeKind))
    def test_every_kind_detects_sql(self, kind):
        node = HostNode(kind=kind, value="DELETE FROM users WHERE email = :email")
        result = view_of(node)
        assert isinstance(result, QueryView)
        assert result.node_id == node.id

    def test_non_string_scalar_is_not_applicable(self):
        node = HostNode(kind=HostNodeKind.DOCUMENT_SCALAR, value=42)
        result = view_of(node)
        assert isinstance(result, NotApplicable)
        assert "document_scalar" in result.reason

    def test_empty_plain_text_is_not_applicable(self):
        assert isinstance(view_of(HostNode(kind=HostNodeKind.PLAIN_TEXT, value="")), NotApplicable)

    def test_node_is_not_modified(self):
        node = HostNode(kind=HostNodeKind.STRING_LITERAL, value="SELECT a FROM t")
        view_of(node)
        assert node.matched is False


# ---------------------------------------------------------------------------
# QueryView
# ---------------------------------------------------------------------------


class TestQueryView:
    def test_parse_classmethod(self):
        view = QueryView.parse("UPDATE t SET a = 1", node_id="x")
        assert view.kind == StatementKind.UPDATE
        assert view.node_id == "x"

    def test_parse_raises_on_bad_sql(self):
        with pytest.raises(SqlParseError):
            QueryView.parse("SELECT 1; SELECT 2")

    def test_view_is_immutable(self):
        view = QueryView.parse("SELECT a FROM t")
        with pytest.raises(dataclasses.FrozenInstanceError):
            view.sql = "SELECT b FROM t"  # type: ignore[misc]

    def test_column_usages_cached_and_stable(self):
        view = QueryView.parse("SELECT a, b FROM t")
        first = view.column_usages()
        assert first is view.column_usages()
        assert [u.column for u in first] == ["a", "b"]
