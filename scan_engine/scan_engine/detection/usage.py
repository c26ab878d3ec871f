"""Turn query views into reporting rows.

The facts come from the view itself; where the query lives (path, line,
commit) is supplied by the caller as a :class:`SourceLocation`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from scan_engine.detection.query_view import QueryView
from scan_engine.tables import ColumnUsedRow, Operation, QueryRow

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """Where a query was found.  Every field is optional."""

    source_path: str | None = None
    line_number: int | None = None
    commit_hash: str | None = None


def extract_usage_rows(
    view: QueryView,
    location: SourceLocation | None = None,
) -> Iterator[ColumnUsedRow]:
    """Yield one :class:`ColumnUsedRow` per column fact of *view*.

    Rows come out in the order the columns appear in the statement.  The
    iterator is single-use; call again for another pass.
    """
    location = location or SourceLocation()
    for usage in view.column_usages():
        try:
            operation = Operation(usage.operation.value)
        except ValueError:
            logger.debug("Skipping usage with unreportable operation %s", usage.operation)
            continue
        yield ColumnUsedRow(
            source_path=location.source_path,
            line_number=location.line_number,
            commit_hash=location.commit_hash,
            operation=operation,
            table=usage.table,
            column=usage.column,
        )


def query_text_row(view: QueryView, source_path: str | None = None) -> QueryRow:
    """Return the single :class:`QueryRow` for *view*."""
    return QueryRow(source_path=source_path, query=view.sql)
