"""SQLGlot-backed implementation of the SQL toolkit protocols.

This is the ONLY file in the codebase that imports ``sqlglot`` directly.
All consumer code goes through the protocol interfaces defined in
:mod:`scan_engine.sql_toolkit._protocols`.
"""

from __future__ import annotations

import difflib
import functools
import logging
import types
from collections.abc import Iterator
from typing import Any

import sqlglot
from sqlglot import exp
from sqlglot.dialects.dialect import Dialect as SqlGlotDialect
from sqlglot.errors import SqlglotError
from sqlglot.generator import Generator

from .._splice import apply_change, changed_span, replace_span
from .._types import (
    ColumnUsage,
    Dialect,
    ExpressionRewrite,
    ParsedStatement,
    ParseFailure,
    Rendered,
    RenderFailure,
    SqlRenderError,
    StatementKind,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Internal: SQLGlot expression → StatementKind mapping
# ---------------------------------------------------------------------------

_STATEMENT_KIND_MAP: dict[str, StatementKind] = {
    "Select": StatementKind.SELECT,
    "Update": StatementKind.UPDATE,
    "Delete": StatementKind.DELETE,
    "Insert": StatementKind.INSERT,
}

# Roots that parse but are reported as OTHER.  Resolved by name; names the
# installed sqlglot does not define are ignored.
_OTHER_STATEMENT_NAMES: tuple[str, ...] = (
    "Union",
    "Intersect",
    "Except",
    "Subquery",
    "Create",
    "Drop",
    "Alter",
    "AlterTable",
    "TruncateTable",
    "Merge",
    "Grant",
    "Revoke",
    "Use",
    "Set",
    "Describe",
    "Pragma",
    "Transaction",
    "Commit",
    "Rollback",
    "Copy",
    "Cache",
    "Uncache",
    "Analyze",
)
_OTHER_STATEMENT_TYPES: tuple[type, ...] = tuple(
    getattr(exp, name) for name in _OTHER_STATEMENT_NAMES if hasattr(exp, name)
)

# Private-use code points bracketing the tracked fragment in generated SQL.
_OPEN_MARK = "\ue000"
_CLOSE_MARK = "\ue001"


def _dialect_value(dialect: Dialect) -> str | None:
    """Return the sqlglot dialect name, ``None`` for the generic grammar."""
    if dialect is Dialect.GENERIC:
        return None
    return dialect.value


def _get_dialect(dialect: Dialect) -> SqlGlotDialect:
    return SqlGlotDialect.get_or_raise(_dialect_value(dialect))


def _classify_statement(node: exp.Expression) -> StatementKind | None:
    """Map a parsed root to a :class:`StatementKind`, ``None`` if not a statement."""
    kind = _STATEMENT_KIND_MAP.get(type(node).__name__)
    if kind is not None:
        return kind
    if isinstance(node, _OTHER_STATEMENT_TYPES):
        return StatementKind.OTHER
    return None


def _preorder(node: exp.Expression) -> Iterator[exp.Expression]:
    """Yield *node* and its descendants depth-first, parents before children."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(current.iter_expressions())))


# ---------------------------------------------------------------------------
# SqlGlotParser
# ---------------------------------------------------------------------------


class SqlGlotParser:
    """SQLGlot-backed :class:`SqlParser` implementation."""

    def parse_statement(
        self,
        sql: str,
        dialect: Dialect = Dialect.GENERIC,
    ) -> ParsedStatement | ParseFailure:
        """Parse exactly one SQL statement."""
        try:
            asts = sqlglot.parse(sql, read=_dialect_value(dialect))
        except SqlglotError as exc:
            return ParseFailure(message=f"Failed to parse SQL: {exc}", sql=sql)
        except Exception as exc:
            logger.warning("Unexpected sqlglot error while parsing: %s", exc)
            return ParseFailure(message=f"Failed to parse SQL: {exc}", sql=sql)

        statements = [ast for ast in asts if ast is not None]
        if not statements:
            return ParseFailure(message="Failed to parse SQL: no statement found", sql=sql)
        if len(statements) > 1:
            return ParseFailure(
                message=f"Failed to parse SQL: expected one statement, found {len(statements)}",
                sql=sql,
            )

        ast = statements[0]
        kind = _classify_statement(ast)
        if kind is None:
            return ParseFailure(
                message=f"Failed to parse SQL: not a statement ({type(ast).__name__})",
                sql=sql,
            )
        if isinstance(ast, exp.Select) and not ast.expressions:
            return ParseFailure(message="Failed to parse SQL: SELECT has no projection list", sql=sql)

        return ParsedStatement(kind=kind, sql=sql, dialect=dialect, raw=ast)


# ---------------------------------------------------------------------------
# SqlGlotUsageExtractor
# ---------------------------------------------------------------------------


def _table_name(node: exp.Expression | None) -> str | None:
    """Return the unqualified name of a table node, ``None`` for anything else."""
    if isinstance(node, exp.Schema):
        node = node.this
    if isinstance(node, exp.Table) and node.name:
        return node.name
    return None


def _projected_column(item: exp.Expression) -> str | None:
    """Resolve one SELECT-list item to a column name.

    A bare column resolves to itself.  A parenthesised column or a function
    whose only argument is a bare column resolves to that column; deeper
    nesting and multi-argument calls do not resolve.
    """
    if isinstance(item, exp.Alias):
        item = item.this

    if isinstance(item, exp.Column):
        return item.name or None

    if isinstance(item, (exp.Paren, exp.Func)):
        operands = list(item.iter_expressions())
        if len(operands) == 1 and isinstance(operands[0], exp.Column):
            return operands[0].name or None

    return None


def _select_from(select: exp.Select) -> exp.Expression | None:
    from_clause = select.args.get("from") or select.args.get("from_")
    if from_clause is None:
        return None
    return from_clause.this


class SqlGlotUsageExtractor:
    """SQLGlot-backed :class:`SqlUsageExtractor` implementation."""

    def extract_usage(self, statement: ParsedStatement) -> Iterator[ColumnUsage]:
        """Yield column usage facts in the order they appear in the statement."""
        ast = statement.raw
        if not isinstance(ast, exp.Expression):
            logger.debug("Statement has no sqlglot expression attached; no usage extracted")
            return

        kind = statement.kind
        if kind is StatementKind.SELECT:
            yield from self._select_usage(ast)
        elif kind is StatementKind.UPDATE:
            yield from self._update_usage(ast)
        elif kind is StatementKind.DELETE:
            yield from self._delete_usage(ast)
        elif kind is StatementKind.INSERT:
            yield from self._insert_usage(ast)

    @staticmethod
    def _distinct(
        kind: StatementKind,
        table: str,
        columns: Iterator[str | None],
    ) -> Iterator[ColumnUsage]:
        seen: set[str] = set()
        for column in columns:
            if column is None or column in seen:
                continue
            seen.add(column)
            yield ColumnUsage(operation=kind, table=table, column=column)

    def _select_usage(self, select: exp.Expression) -> Iterator[ColumnUsage]:
        table = _table_name(_select_from(select))
        if table is None:
            logger.debug("SELECT has no plain FROM table; no usage extracted")
            return

        def _columns() -> Iterator[str | None]:
            for item in select.expressions:
                try:
                    yield _projected_column(item)
                except (AttributeError, TypeError) as exc:
                    logger.debug("Skipping unreadable SELECT item %r: %s", item, exc)

        yield from self._distinct(StatementKind.SELECT, table, _columns())

    def _update_usage(self, update: exp.Expression) -> Iterator[ColumnUsage]:
        table = _table_name(update.this)
        if table is None:
            logger.debug("UPDATE target is not a plain table; no usage extracted")
            return

        def _columns() -> Iterator[str | None]:
            for assignment in update.expressions:
                target = assignment.this if isinstance(assignment, exp.EQ) else None
                if isinstance(target, exp.Column) and target.name:
                    yield target.name
                else:
                    logger.debug("Skipping unreadable SET item %r", assignment)

        yield from self._distinct(StatementKind.UPDATE, table, _columns())

    def _delete_usage(self, delete: exp.Expression) -> Iterator[ColumnUsage]:
        table = _table_name(delete.this)
        if table is None:
            logger.debug("DELETE target is not a plain table; no usage extracted")
            return
        yield ColumnUsage(operation=StatementKind.DELETE, table=table, column=None)

    def _insert_usage(self, insert: exp.Expression) -> Iterator[ColumnUsage]:
        target = insert.this
        table = _table_name(target)
        if table is None:
            logger.debug("INSERT target is not a plain table; no usage extracted")
            return

        if not isinstance(target, exp.Schema) or not target.expressions:
            yield ColumnUsage(operation=StatementKind.INSERT, table=table, column=None)
            return

        def _columns() -> Iterator[str | None]:
            for column in target.expressions:
                name = getattr(column, "name", "")
                if name:
                    yield name
                else:
                    logger.debug("Skipping unreadable INSERT column %r", column)

        yield from self._distinct(StatementKind.INSERT, table, _columns())


# ---------------------------------------------------------------------------
# SqlGlotChangeRenderer
# ---------------------------------------------------------------------------


class ChangeTracker:
    """Single-use bookkeeping for one change-tracking generator pass.

    The generator calls :meth:`emit` when it reaches the target expression;
    the emitted fragment is bracketed with marks so its offset range in the
    generated output can be recovered by :meth:`finish`.
    """

    def __init__(self, target: exp.Expression, replacement: str | exp.Expression | None) -> None:
        self.target = target
        self.replacement = replacement
        self.fragment: str | None = None
        self.span: tuple[int, int] | None = None

    def is_target(self, node: Any) -> bool:
        return node is self.target

    def emit(self, fragment: str) -> str:
        if self.fragment is not None:
            raise SqlRenderError("Target expression rendered more than once")
        self.fragment = fragment
        return f"{_OPEN_MARK}{fragment}{_CLOSE_MARK}"

    def finish(self, generated: str) -> str:
        """Strip the marks from *generated* and record the fragment's span."""
        start = generated.find(_OPEN_MARK)
        end = generated.find(_CLOSE_MARK)
        if start < 0 or end < start or generated.count(_OPEN_MARK) != 1:
            raise SqlRenderError("Target expression was not rendered")
        self.span = (start, end - 1)
        return generated.replace(_OPEN_MARK, "", 1).replace(_CLOSE_MARK, "", 1)


class _ChangeTrackingGeneratorMixin:
    """Hooks the generator's per-expression ``sql()`` dispatch."""

    change_tracker: ChangeTracker

    def sql(self, expression: Any, key: str | None = None, comment: bool = True) -> str:
        tracker = self.change_tracker
        if key is None and tracker.is_target(expression):
            replacement = tracker.replacement
            if replacement is None:
                fragment = super().sql(expression, comment=comment)  # type: ignore[misc]
            elif isinstance(replacement, exp.Expression):
                fragment = super().sql(replacement)  # type: ignore[misc]
            else:
                fragment = str(replacement)
            return tracker.emit(fragment)
        return super().sql(expression, key, comment)  # type: ignore[misc]


@functools.lru_cache(maxsize=None)
def _tracking_generator_class(base: type[Generator]) -> type[Generator]:
    return types.new_class(
        f"ChangeTracking{base.__name__}",
        (_ChangeTrackingGeneratorMixin, base),
    )


def _token_key(token: Any) -> tuple[Any, str]:
    text = token.text
    if token.token_type.name.endswith("STRING"):
        return token.token_type, text
    return token.token_type, text.upper()


class SqlGlotChangeRenderer:
    """SQLGlot-backed :class:`SqlChangeRenderer` implementation.

    Rendering happens on a private copy of the statement, so the parsed
    statement held by a query view is never mutated.
    """

    def render_change(
        self,
        statement: ParsedStatement,
        original_sql: str,
        rewrite: ExpressionRewrite,
    ) -> Rendered | RenderFailure:
        """Render *statement* with *rewrite* applied, spliced into *original_sql*."""
        try:
            result = self._render(statement, original_sql, rewrite)
        except Exception as exc:
            logger.debug("Change-tracking render failed: %s", exc)
            return RenderFailure(reason=str(exc) or type(exc).__name__)

        start, _, end = changed_span(original_sql, result)
        return Rendered(sql=result, span=(start, end))

    def string_literal_rewrite(self, old_value: str, new_value: str) -> ExpressionRewrite:
        """Build a rewrite replacing the first string literal equal to *old_value*."""

        def _is_literal(node: Any) -> bool:
            return isinstance(node, exp.Literal) and node.is_string and node.this == old_value

        return ExpressionRewrite(
            predicate=_is_literal,
            replacement=exp.Literal.string(new_value),
            description=f"replace literal {old_value!r} with {new_value!r}",
        )

    # -- internals -----------------------------------------------------------

    def _render(
        self,
        statement: ParsedStatement,
        original_sql: str,
        rewrite: ExpressionRewrite,
    ) -> str:
        ast = statement.raw
        if not isinstance(ast, exp.Expression):
            raise SqlRenderError("Statement has no sqlglot expression attached")

        position: int | None = None
        replacement: Any = None
        for index, node in enumerate(_preorder(ast)):
            if rewrite.predicate(node):
                position = index
                replacement = rewrite.resolve_replacement(node.copy())
                break
        if position is None:
            raise SqlRenderError(f"No expression matched rewrite: {rewrite.description or 'predicate'}")
        if replacement is None:
            raise SqlRenderError("Rewrite produced no replacement")

        dialect = _get_dialect(statement.dialect)
        baseline, baseline_span = self._generate(dialect, ast, position, None)
        regenerated, regenerated_span = self._generate(dialect, ast, position, replacement)
        fragment = regenerated[regenerated_span[0]:regenerated_span[1]]

        if baseline == original_sql:
            return apply_change(original_sql, regenerated)

        start, end = self._map_span(dialect, baseline, original_sql, baseline_span)
        return replace_span(original_sql, start, end, fragment)

    @staticmethod
    def _generate(
        dialect: SqlGlotDialect,
        ast: exp.Expression,
        position: int,
        replacement: str | exp.Expression | None,
    ) -> tuple[str, tuple[int, int]]:
        """Render a private copy of *ast*, tracking the node at pre-order *position*."""
        tree = ast.copy()
        target = next(node for index, node in enumerate(_preorder(tree)) if index == position)
        if isinstance(replacement, exp.Expression):
            replacement = replacement.copy()

        tracker = ChangeTracker(target, replacement)
        generator = _tracking_generator_class(dialect.generator_class)(dialect=dialect)
        generator.change_tracker = tracker
        generated = tracker.finish(generator.generate(tree, copy=False))
        if tracker.span is None:
            raise SqlRenderError("Target expression span was not recorded")
        return generated, tracker.span

    @staticmethod
    def _map_span(
        dialect: SqlGlotDialect,
        baseline: str,
        original_sql: str,
        span: tuple[int, int],
    ) -> tuple[int, int]:
        """Map a character range of *baseline* onto *original_sql*.

        Both strings are tokenized and aligned token by token; the range
        must start and end on tokens that align.
        """
        baseline_tokens = dialect.tokenize(baseline)
        original_tokens = dialect.tokenize(original_sql)

        span_start, span_end = span
        covered = [
            i
            for i, token in enumerate(baseline_tokens)
            if token.start >= span_start and token.end < span_end
        ]
        if not covered:
            raise SqlRenderError("Target expression covers no tokens")

        matcher = difflib.SequenceMatcher(
            a=[_token_key(t) for t in baseline_tokens],
            b=[_token_key(t) for t in original_tokens],
            autojunk=False,
        )
        aligned: dict[int, int] = {}
        for block in matcher.get_matching_blocks():
            for offset in range(block.size):
                aligned[block.a + offset] = block.b + offset

        first, last = covered[0], covered[-1]
        if first not in aligned or last not in aligned:
            raise SqlRenderError("Target expression does not align with the original text")

        return original_tokens[aligned[first]].start, original_tokens[aligned[last]].end + 1


# ---------------------------------------------------------------------------
# Composite Toolkit
# ---------------------------------------------------------------------------


class SqlGlotToolkit:
    """Composite :class:`SqlToolkit` backed by SQLGlot.

    This is the default implementation returned by :func:`get_sql_toolkit`.
    """

    def __init__(self) -> None:
        self._parser = SqlGlotParser()
        self._usage_extractor = SqlGlotUsageExtractor()
        self._change_renderer = SqlGlotChangeRenderer()

    @property
    def parser(self) -> SqlGlotParser:
        return self._parser

    @property
    def usage_extractor(self) -> SqlGlotUsageExtractor:
        return self._usage_extractor

    @property
    def change_renderer(self) -> SqlGlotChangeRenderer:
        return self._change_renderer
