"""Render a query view with one expression rewritten.

The change-tracking renderer only touches the characters of the rewritten
expression.  When the render fails, the original text is kept: a failed
rewrite must never corrupt the host artifact.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from scan_engine.detection.query_view import QueryView
from scan_engine.sql_toolkit import ExpressionRewrite, RenderFailure, get_sql_toolkit
from scan_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


class RenderOutcome(str, enum.Enum):
    """How a render request was resolved."""

    UNCHANGED = "unchanged"  # no rewrite requested, or it rendered to the same text
    APPLIED = "applied"
    DISCARDED = "discarded"  # render failed; original text kept


@dataclass(frozen=True, slots=True)
class RenderReport:
    """The text to write back, plus how it was arrived at."""

    sql: str
    outcome: RenderOutcome
    reason: str = ""

    @property
    def changed(self) -> bool:
        return self.outcome is RenderOutcome.APPLIED


@profile_operation("detection.render")
def try_render(view: QueryView, rewrite: ExpressionRewrite | None) -> RenderReport:
    """Render *view* with *rewrite*, reporting whether it was applied."""
    if rewrite is None:
        return RenderReport(sql=view.sql, outcome=RenderOutcome.UNCHANGED)

    result = get_sql_toolkit().change_renderer.render_change(view.statement, view.sql, rewrite)
    if isinstance(result, RenderFailure):
        logger.warning(
            "Render failed for node %s; keeping original text: %s",
            view.node_id,
            result.reason,
            extra={"node_id": view.node_id},
        )
        return RenderReport(sql=view.sql, outcome=RenderOutcome.DISCARDED, reason=result.reason)

    if result.sql == view.sql:
        return RenderReport(sql=view.sql, outcome=RenderOutcome.UNCHANGED)
    return RenderReport(sql=result.sql, outcome=RenderOutcome.APPLIED)


def render(view: QueryView, rewrite: ExpressionRewrite | None) -> str:
    """Return the text to write back into the view's node.

    Without a rewrite, or when rendering fails, this is ``view.sql``
    unchanged.
    """
    return try_render(view, rewrite).sql
