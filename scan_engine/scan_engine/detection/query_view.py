"""Query views: detected-and-parsed SQL bound to one host node.

:func:`view_of` is the single entry point for host nodes.  It returns one of
three outcomes:

* :class:`NotApplicable`: the heuristic rejected the text (the common case);
* :class:`DetectionFailure`: the text looked like SQL but did not parse;
* :class:`QueryView`: an immutable view over the parsed statement.

Neither failure outcome is an error; callers simply stop processing the node.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Union

from scan_engine.detection.heuristic import probably_sql
from scan_engine.hosts.nodes import HostNode, extract_text
from scan_engine.sql_toolkit import (
    ColumnUsage,
    Dialect,
    ParsedStatement,
    ParseFailure,
    SqlParseError,
    StatementKind,
    get_sql_toolkit,
)
from scan_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotApplicable:
    """The node's text is not a SQL candidate."""

    node_id: str
    reason: str = "text does not look like SQL"


@dataclass(frozen=True)
class DetectionFailure:
    """The node's text looked like SQL but the parser rejected it."""

    node_id: str
    message: str


@dataclass(frozen=True)
class QueryView:
    """An immutable view over the SQL held by one host node.

    ``statement`` is always the successful parse of ``sql``; views are only
    built by :func:`view_of_text` / :func:`view_of` or :meth:`parse`.
    """

    node_id: str
    sql: str
    statement: ParsedStatement = field(repr=False)

    @property
    def kind(self) -> StatementKind:
        return self.statement.kind

    @property
    def dialect(self) -> Dialect:
        return self.statement.dialect

    @functools.cached_property
    def _usages(self) -> tuple[ColumnUsage, ...]:
        return tuple(get_sql_toolkit().usage_extractor.extract_usage(self.statement))

    def column_usages(self) -> tuple[ColumnUsage, ...]:
        """Return the (operation, table, column) facts of this query, in statement order."""
        return self._usages

    @classmethod
    def parse(cls, sql: str, *, node_id: str = "", dialect: Dialect = Dialect.GENERIC) -> QueryView:
        """Build a view directly from SQL text, skipping the heuristic.

        Raises
        ------
        SqlParseError
            If *sql* does not parse as a single statement.
        """
        parsed = get_sql_toolkit().parser.parse_statement(sql, dialect)
        if isinstance(parsed, ParseFailure):
            raise SqlParseError(parsed.message)
        return cls(node_id=node_id, sql=sql, statement=parsed)


ViewResult = Union[QueryView, NotApplicable, DetectionFailure]


def view_of_text(
    node_id: str,
    text: str | None,
    *,
    dialect: Dialect = Dialect.GENERIC,
) -> ViewResult:
    """Detect and parse the SQL in *text* on behalf of node *node_id*."""
    if text is None or not probably_sql(text):
        return NotApplicable(node_id=node_id)

    parsed = get_sql_toolkit().parser.parse_statement(text, dialect)
    if isinstance(parsed, ParseFailure):
        logger.debug("Node %s resembled SQL but did not parse: %s", node_id, parsed.message)
        return DetectionFailure(node_id=node_id, message=parsed.message)

    return QueryView(node_id=node_id, sql=text, statement=parsed)


@profile_operation("detection.view_of")
def view_of(node: HostNode, *, dialect: Dialect = Dialect.GENERIC) -> ViewResult:
    """Detect and parse the SQL carried by a host node, whatever its kind."""
    text = extract_text(node)
    if text is None:
        return NotApplicable(node_id=node.id, reason=f"{node.kind.value} carries no text")
    return view_of_text(node.id, text, dialect=dialect)
