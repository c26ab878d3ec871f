"""SQL detection over host nodes: heuristic, query views, usage rows and rewriting."""

from scan_engine.detection.heuristic import probably_sql
from scan_engine.detection.query_view import (
    DetectionFailure,
    NotApplicable,
    QueryView,
    ViewResult,
    view_of,
    view_of_text,
)
from scan_engine.detection.rewrite import RenderOutcome, RenderReport, render, try_render
from scan_engine.detection.usage import SourceLocation, extract_usage_rows, query_text_row

__all__ = [
    "DetectionFailure",
    "NotApplicable",
    "QueryView",
    "RenderOutcome",
    "RenderReport",
    "SourceLocation",
    "ViewResult",
    "extract_usage_rows",
    "probably_sql",
    "query_text_row",
    "render",
    "try_render",
    "view_of",
    "view_of_text",
]
