"""SQL Toolkit — implementation-agnostic SQL parsing, usage extraction and rewriting.

Usage::

    from scan_engine.sql_toolkit import get_sql_toolkit, Dialect

    tk = get_sql_toolkit()
    statement = tk.parser.parse_statement("SELECT a FROM t", Dialect.GENERIC)
    usages = list(tk.usage_extractor.extract_usage(statement))
    rewrite = tk.change_renderer.string_literal_rewrite("old", "new")
    result = tk.change_renderer.render_change(statement, statement.sql, rewrite)

The implementation delegates to SQLGlot, which is imported on first use of
``get_sql_toolkit()``.
"""

from ._factory import get_sql_toolkit, reset_toolkit
from ._protocols import (
    SqlChangeRenderer,
    SqlParser,
    SqlToolkit,
    SqlUsageExtractor,
)
from ._splice import apply_change, changed_span
from ._types import (
    ColumnUsage,
    Dialect,
    ExpressionRewrite,
    ParsedStatement,
    ParseFailure,
    Rendered,
    RenderFailure,
    SqlParseError,
    SqlRenderError,
    SqlToolkitError,
    StatementKind,
)

__all__ = [
    # Factory
    "get_sql_toolkit",
    "reset_toolkit",
    # Protocols
    "SqlToolkit",
    "SqlParser",
    "SqlUsageExtractor",
    "SqlChangeRenderer",
    # Splicing
    "apply_change",
    "changed_span",
    # Types
    "Dialect",
    "StatementKind",
    "ParsedStatement",
    "ParseFailure",
    "ColumnUsage",
    "ExpressionRewrite",
    "Rendered",
    "RenderFailure",
    # Exceptions
    "SqlToolkitError",
    "SqlParseError",
    "SqlRenderError",
]
