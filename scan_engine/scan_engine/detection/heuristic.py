"""Cheap pre-parse check that a text payload might be SQL."""

from __future__ import annotations

import re

_SIMPLE_SQL_HEURISTIC = re.compile(r"SELECT|UPDATE|DELETE|INSERT", re.IGNORECASE)


def probably_sql(maybe_sql: object | None) -> bool:
    """Return ``True`` if *maybe_sql* contains a DML keyword anywhere.

    A match is not a promise: "Selection" passes, and so does prose that
    mentions an update.  The parser makes the final call.
    """
    if maybe_sql is None:
        return False
    text = str(maybe_sql)
    return bool(text) and _SIMPLE_SQL_HEURISTIC.search(text) is not None
