"""Unit tests for scan_engine.hosts.sources -- scanners and file discovery."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from scan_engine.config import Settings
from scan_engine.hosts import (
    HostNodeKind,
    ScanError,
    iter_files,
    iter_source_nodes,
    plain_text_node,
    python_string_nodes,
    yaml_scalar_nodes,
)

_PYTHON_SOURCE = '''\
import db


def cancel(job_id):
    db.execute(
        "UPDATE jobs SET state = 'CANCELED' WHERE job_id = :jobId",
        job_id=job_id,
    )
'''

_YAML_SOURCE = """\
foo: bar
query: >
    SELECT distinct(first_name)
    FROM users
    WHERE user_id = :userId
    AND :user_type = ANY (user_types)
"""


# ---------------------------------------------------------------------------
# Per-format producers
# ---------------------------------------------------------------------------


class TestPythonStringNodes:
    def test_literals_with_lines(self):
        nodes = list(python_string_nodes(_PYTHON_SOURCE, "jobs.py"))
        sql_nodes = [n for n in nodes if n.value.startswith("UPDATE")]
        assert len(sql_nodes) == 1
        node = sql_nodes[0]
        assert node.kind == HostNodeKind.STRING_LITERAL
        assert node.line_number == 6
        assert node.source_path == "jobs.py"
        assert node.value_source == '"UPDATE jobs SET state = \'CANCELED\' WHERE job_id = :jobId"'

    def test_non_string_constants_ignored(self):
        assert list(python_string_nodes("x = 1\ny = None\n")) == []

    def test_syntax_error_propagates(self):
        with pytest.raises(SyntaxError):
            list(python_string_nodes("def broken(:\n"))


class TestYamlScalarNodes:
    def test_folded_scalar_line(self):
        nodes = list(yaml_scalar_nodes(_YAML_SOURCE, "q.yml"))
        assert [n.line_number for n in nodes] == [1, 2]
        query = nodes[1]
        assert query.kind == HostNodeKind.DOCUMENT_SCALAR
        assert query.value.startswith("SELECT distinct(first_name) FROM users")

    def test_keys_not_yielded(self):
        assert [n.value for n in yaml_scalar_nodes("select: update\n")] == ["update"]

    def test_nested_and_multiple_documents(self):
        source = "a:\n  - SELECT 1\n  - b: DELETE FROM t\n---\nc: 3\n"
        assert [n.value for n in yaml_scalar_nodes(source)] == ["SELECT 1", "DELETE FROM t", 3]

    def test_empty_document(self):
        assert list(yaml_scalar_nodes("")) == []


class TestPlainTextNode:
    def test_whole_file_is_one_node(self):
        node = plain_text_node("DELETE FROM users\nWHERE email = :email\n", "delete.sql")
        assert node.kind == HostNodeKind.PLAIN_TEXT
        assert node.line_number == 1
        assert node.value.endswith("\n")


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    (tmp_path / "app").mkdir()
    (tmp_path / "app" / "jobs.py").write_text(_PYTHON_SOURCE)
    (tmp_path / "conf.yaml").write_text(_YAML_SOURCE)
    (tmp_path / "delete.sql").write_text("DELETE FROM users WHERE email = :email\n")
    (tmp_path / "README.md").write_text("SELECT nothing\n")
    (tmp_path / ".venv").mkdir()
    (tmp_path / ".venv" / "lib.py").write_text("'SELECT 1'\n")
    return tmp_path


class TestIterFiles:
    def test_sorted_filtered_and_pruned(self, tree):
        files = [p.relative_to(tree).as_posix() for p in iter_files(tree, Settings())]
        assert files == ["conf.yaml", "delete.sql", "app/jobs.py"]

    def test_single_file_root(self, tree):
        assert list(iter_files(tree / "delete.sql", Settings())) == [tree / "delete.sql"]

    def test_unscannable_single_file(self, tree):
        assert list(iter_files(tree / "README.md", Settings())) == []

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(ScanError):
            list(iter_files(tmp_path / "nope", Settings()))


class TestIterSourceNodes:
    def test_dispatch_by_suffix(self, tree):
        settings = Settings()
        assert {n.kind for n in iter_source_nodes(tree / "conf.yaml", settings)} == {HostNodeKind.DOCUMENT_SCALAR}
        assert [n.kind for n in iter_source_nodes(tree / "delete.sql", settings)] == [HostNodeKind.PLAIN_TEXT]

    def test_recorded_source_path_override(self, tree):
        nodes = list(iter_source_nodes(tree / "delete.sql", Settings(), source_path="delete.sql"))
        assert nodes[0].source_path == "delete.sql"

    def test_unparseable_file_skipped_with_warning(self, tmp_path, caplog):
        bad = tmp_path / "bad.py"
        bad.write_text("def broken(:\n")
        with caplog.at_level(logging.WARNING, logger="scan_engine.hosts.sources"):
            assert list(iter_source_nodes(bad, Settings())) == []
        assert "could not parse" in caplog.text

    def test_oversized_file_skipped(self, tmp_path, caplog):
        big = tmp_path / "big.sql"
        big.write_text("SELECT 1\n" * 10)
        with caplog.at_level(logging.WARNING, logger="scan_engine.hosts.sources"):
            assert list(iter_source_nodes(big, Settings(max_file_bytes=5))) == []
        assert "larger than" in caplog.text

    def test_undecodable_file_skipped(self, tmp_path):
        binary = tmp_path / "blob.txt"
        binary.write_bytes(b"\xff\xfe\x00SELECT")
        assert list(iter_source_nodes(binary, Settings())) == []
