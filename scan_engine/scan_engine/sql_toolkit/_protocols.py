"""SQL toolkit protocol definitions.

These define the interface contract that ANY implementation must satisfy.
Consumer code depends on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from ._types import (
    ColumnUsage,
    Dialect,
    ExpressionRewrite,
    ParsedStatement,
    ParseFailure,
    Rendered,
    RenderFailure,
)

# ---------------------------------------------------------------------------
# Individual Capability Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlParser(Protocol):
    """Parse SQL strings into statements."""

    def parse_statement(
        self,
        sql: str,
        dialect: Dialect = Dialect.GENERIC,
    ) -> ParsedStatement | ParseFailure:
        """Parse exactly one SQL statement.

        Never raises for bad input: any parser error, an empty parse, more
        than one statement, or a root that is not a statement is reported
        as a :class:`ParseFailure` carrying the diagnostic message.
        """
        ...


@runtime_checkable
class SqlUsageExtractor(Protocol):
    """Read table/column usage facts out of a parsed statement."""

    def extract_usage(self, statement: ParsedStatement) -> Iterator[ColumnUsage]:
        """Yield one :class:`ColumnUsage` per distinct referenced column.

        SELECT reports projected columns, UPDATE its SET targets, INSERT
        its listed columns; DELETE (and INSERT without a column list)
        yields a single fact with ``column=None``.  Other statements yield
        nothing.  Predicate (WHERE) columns are never reported.
        """
        ...


@runtime_checkable
class SqlChangeRenderer(Protocol):
    """Re-serialize a statement with one expression replaced."""

    def render_change(
        self,
        statement: ParsedStatement,
        original_sql: str,
        rewrite: ExpressionRewrite,
    ) -> Rendered | RenderFailure:
        """Render *statement* with *rewrite* applied, spliced into *original_sql*.

        Only the characters of the rewritten expression change; everything
        else in *original_sql* is preserved byte-for-byte.  Any failure is
        returned as :class:`RenderFailure`, never raised.
        """
        ...

    def string_literal_rewrite(self, old_value: str, new_value: str) -> ExpressionRewrite:
        """Build a rewrite replacing the first string literal equal to *old_value*."""
        ...


# ---------------------------------------------------------------------------
# Composite Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class SqlToolkit(Protocol):
    """Composite protocol: a complete SQL toolkit implementation.

    This is what consumer code receives from the factory.
    """

    @property
    def parser(self) -> SqlParser:
        ...

    @property
    def usage_extractor(self) -> SqlUsageExtractor:
        ...

    @property
    def change_renderer(self) -> SqlChangeRenderer:
        ...
