"""Logging setup and the JSON log formatter.

Activate structured output by setting ``SQLSCOUT_STRUCTURED_LOGGING=true``.
When enabled, the root logger's handlers are replaced with a single
``StreamHandler`` using :class:`JSONFormatter`.

Output schema per line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "WARNING",
        "logger": "scan_engine.detection.rewrite",
        "message": "Render failed; keeping original text",
        "source_path": "queries/jobs.sql",  // present when passed via extra=
        "exc_info": "Traceback ..."          // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scan_engine.config import Settings

_EXTRA_FIELDS: tuple[str, ...] = ("source_path", "line_number", "node_id")


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in _EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, *, verbose: bool = False) -> None:
    """Install the root handler according to *settings*."""
    level = logging.DEBUG if (verbose or settings.debug) else logging.WARNING
    root_logger = logging.getLogger()

    if settings.structured_logging:
        root_logger.handlers.clear()
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root_logger.setLevel(level)
