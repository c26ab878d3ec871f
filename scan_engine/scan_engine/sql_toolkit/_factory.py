"""Shared access to the sqlglot-backed toolkit.

The toolkit holds no per-scan state, so every detector, extractor and
renderer in a process uses one instance.  It is built on first use so that
importing :mod:`scan_engine` does not pull in sqlglot.
"""

from __future__ import annotations

import threading

from ._protocols import SqlToolkit

_lock = threading.Lock()
_toolkit: SqlToolkit | None = None


def _build_default() -> SqlToolkit:
    from .impl.sqlglot_impl import SqlGlotToolkit

    return SqlGlotToolkit()


def get_sql_toolkit() -> SqlToolkit:
    """Return the process-wide :class:`SqlToolkit`, building it if needed."""
    global _toolkit
    toolkit = _toolkit
    if toolkit is not None:
        return toolkit

    with _lock:
        if _toolkit is None:
            _toolkit = _build_default()
        return _toolkit


def reset_toolkit() -> None:
    """Drop the shared toolkit so the next call builds a new one.  Used by tests."""
    global _toolkit
    with _lock:
        _toolkit = None
