"""SQL toolkit shared types.

Every type here is implementation-agnostic.  Consumer code operates on these
types exclusively; the backing implementation (SQLGlot today) converts
to/from its native types internally.

ZERO dependency on any SQL parsing library.
"""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Dialect
# ---------------------------------------------------------------------------


class Dialect(str, enum.Enum):
    """SQL dialects the parser can read.

    ``GENERIC`` is the parser's permissive default grammar and is what the
    scanner uses unless configured otherwise.
    """

    GENERIC = "generic"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    TSQL = "tsql"
    ORACLE = "oracle"
    DATABRICKS = "databricks"
    DUCKDB = "duckdb"
    REDSHIFT = "redshift"


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class StatementKind(str, enum.Enum):
    """Top-level kind of a parsed statement.

    Only the four data-manipulation kinds are reported on; every other
    statement that parses (DDL, set operations, MERGE, ...) is ``OTHER``.
    """

    SELECT = "SELECT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    INSERT = "INSERT"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class ParsedStatement:
    """A successfully parsed SQL statement.

    ``raw`` holds the implementation-specific AST (e.g. a
    ``sqlglot.exp.Expression``) and is excluded from equality so two parses
    of the same text compare equal.  It must be treated as read-only.
    """

    kind: StatementKind
    sql: str
    dialect: Dialect = Dialect.GENERIC
    raw: Any = field(default=None, repr=False, compare=False, hash=False)


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """The parser rejected the text.  Carries the parser's diagnostic."""

    message: str
    sql: str = field(default="", repr=False)


# ---------------------------------------------------------------------------
# Usage facts
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnUsage:
    """One (operation, table, column) fact read from a statement.

    ``column`` is ``None`` when the operation has no column-level list
    (a DELETE, or an INSERT without explicit columns).
    """

    operation: StatementKind
    table: str
    column: str | None = None


# ---------------------------------------------------------------------------
# Change tracking
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExpressionRewrite:
    """Replace exactly one expression of a statement when rendering.

    ``predicate`` is evaluated against the nodes of the *original* AST in
    pre-order; the first node it accepts is the target.  ``replacement`` is
    SQL text, an implementation expression, or a callable receiving the
    matched node and returning either.
    """

    predicate: Callable[[Any], bool]
    replacement: Any
    description: str = ""

    @classmethod
    def of(cls, target: Any, replacement: Any) -> ExpressionRewrite:
        """Target a specific node taken from ``ParsedStatement.raw`` (by identity)."""
        return cls(
            predicate=lambda node: node is target,
            replacement=replacement,
            description=f"replace {type(target).__name__}",
        )

    def resolve_replacement(self, node: Any) -> Any:
        """Return the replacement for the matched *node*."""
        if callable(self.replacement):
            return self.replacement(node)
        return self.replacement


@dataclass(frozen=True, slots=True)
class Rendered:
    """Render succeeded.

    ``span`` is the ``(start, end)`` range of ``sql`` that differs from the
    original text; it is empty (``start == end``) when nothing changed.
    """

    sql: str
    span: tuple[int, int] = (0, 0)


@dataclass(frozen=True, slots=True)
class RenderFailure:
    """Render could not produce a trustworthy result."""

    reason: str


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SqlToolkitError(Exception):
    """Base exception for all sql_toolkit errors."""


class SqlParseError(SqlToolkitError):
    """SQL could not be parsed."""


class SqlRenderError(SqlToolkitError):
    """A statement could not be re-serialized."""
