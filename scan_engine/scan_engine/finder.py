"""Drive detection over host nodes and files, filling the reporting tables.

The finder is the outer loop of a scan: it walks files, turns each file into
host nodes, asks :func:`view_of` whether a node holds SQL, and writes one
:class:`QueryRow` plus every :class:`ColumnUsedRow` for each detected query.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from scan_engine.config import Settings
from scan_engine.detection import (
    DetectionFailure,
    QueryView,
    SourceLocation,
    ViewResult,
    extract_usage_rows,
    query_text_row,
    try_render,
    view_of,
)
from scan_engine.git import GitClientError, find_repo_root, get_current_sha
from scan_engine.hosts import HostNode, iter_files, iter_source_nodes, mark_matched, plain_text_node
from scan_engine.sql_toolkit import ExpressionRewrite
from scan_engine.tables import DatabaseColumnsUsed, DatabaseQueries

logger = logging.getLogger(__name__)

RewriteFactory = Callable[[QueryView], ExpressionRewrite | None]


@dataclass(frozen=True)
class FindResult:
    """The outcome of visiting one host node."""

    node: HostNode
    result: ViewResult

    @property
    def matched(self) -> bool:
        return isinstance(self.result, QueryView)


@dataclass
class ScanSummary:
    """Aggregate counts for one scan."""

    files: int = 0
    nodes: int = 0
    matched: int = 0
    detection_failures: int = 0
    commit_hashes: dict[str, str | None] = field(default_factory=dict)


class SqlFinder:
    """Find SQL in host artifacts and record what it touches.

    Parameters
    ----------
    settings:
        Scan configuration (dialect, suffixes, exclusions).
    columns_used:
        Sink for per-column usage rows.  A fresh table is created if omitted.
    queries:
        Sink for query text rows.  A fresh table is created if omitted.
    """

    def __init__(
        self,
        settings: Settings,
        columns_used: DatabaseColumnsUsed | None = None,
        queries: DatabaseQueries | None = None,
    ) -> None:
        self.settings = settings
        self.columns_used = columns_used if columns_used is not None else DatabaseColumnsUsed()
        self.queries = queries if queries is not None else DatabaseQueries()

    # ------------------------------------------------------------------
    # Single node
    # ------------------------------------------------------------------

    def visit(self, node: HostNode, commit_hash: str | None = None) -> FindResult:
        """Detect SQL in *node* and record it.

        Nodes without SQL, or whose SQL does not parse, come back untouched
        and write nothing.
        """
        result = view_of(node, dialect=self.settings.dialect)
        if not isinstance(result, QueryView):
            return FindResult(node=node, result=result)

        location = SourceLocation(
            source_path=node.source_path,
            line_number=node.line_number,
            commit_hash=commit_hash,
        )
        self.queries.insert_row(query_text_row(result, node.source_path))
        for row in extract_usage_rows(result, location):
            self.columns_used.insert_row(row)

        return FindResult(node=mark_matched(node), result=result)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @staticmethod
    def _recorded_path(path: Path, repo_root: Path | None) -> str:
        """Return *path* relative to the repository root when it lies inside one."""
        if repo_root is None:
            return str(path)
        try:
            return path.resolve().relative_to(repo_root.resolve()).as_posix()
        except ValueError:
            return str(path)

    def _commit_hash(self, root: Path) -> str | None:
        try:
            return get_current_sha(root)
        except GitClientError as exc:
            logger.debug("No commit provenance for %s: %s", root, exc)
            return None

    def scan(self, paths: Iterable[Path]) -> ScanSummary:
        """Scan every file under *paths*.

        The commit hash is resolved once per root and attached to every row
        found beneath it.  Files inside a git repository are recorded by
        their repository-relative path.

        Raises
        ------
        ScanError
            If one of *paths* does not exist.
        """
        summary = ScanSummary()
        for root in paths:
            commit_hash = self._commit_hash(root)
            repo_root = find_repo_root(root)
            summary.commit_hashes[str(root)] = commit_hash

            for path in iter_files(root, self.settings):
                summary.files += 1
                recorded = self._recorded_path(path, repo_root)
                for node in iter_source_nodes(path, self.settings, source_path=recorded):
                    summary.nodes += 1
                    found = self.visit(node, commit_hash)
                    if found.matched:
                        summary.matched += 1
                    elif isinstance(found.result, DetectionFailure):
                        summary.detection_failures += 1

        logger.info(
            "Scanned %d files, %d nodes: %d queries, %d detection failures",
            summary.files,
            summary.nodes,
            summary.matched,
            summary.detection_failures,
        )
        return summary

    # ------------------------------------------------------------------
    # Rewriting
    # ------------------------------------------------------------------

    def rewrite_plain_text(self, path: Path, rewrite_factory: RewriteFactory, *, dry_run: bool = False) -> bool:
        """Rewrite the SQL held in a plain-text file.

        *rewrite_factory* is called with the file's query view and returns
        the rewrite to apply, or ``None`` to leave the file alone.  The file
        is written only when the rendered text differs from the original, and
        line endings are kept as they are on disk.

        Returns ``True`` when the text changed (whether or not it was written).
        """
        with path.open(encoding="utf-8", newline="") as fh:
            text = fh.read()
        node = plain_text_node(text, str(path))
        result = view_of(node, dialect=self.settings.dialect)
        if not isinstance(result, QueryView):
            logger.info("No SQL detected in %s", path)
            return False

        report = try_render(result, rewrite_factory(result))
        if not report.changed:
            return False

        if not dry_run:
            with path.open("w", encoding="utf-8", newline="") as fh:
                fh.write(report.sql)
            logger.info("Rewrote %s", path)
        return True
