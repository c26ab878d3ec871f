"""Host artifact nodes that may carry SQL.

A :class:`HostNode` is one text-bearing node of a host artifact: a string
literal in source code, a whole free-text file, or a scalar value in a
structured document.  Each :class:`HostNodeKind` has its own text extractor
and write-back function; adding a kind means adding one entry to each table.
"""

from __future__ import annotations

import dataclasses
import enum
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class HostNodeKind(str, enum.Enum):
    """The recognised host node shapes."""

    STRING_LITERAL = "string_literal"
    PLAIN_TEXT = "plain_text"
    DOCUMENT_SCALAR = "document_scalar"


@dataclass(frozen=True, slots=True)
class HostNode:
    """A text-bearing node from a host artifact.

    ``id`` is stable for the node's lifetime and is only compared, never
    interpreted.  ``value_source`` is the literal's spelling in source
    (quotes and prefixes included) when the host provides one.
    """

    kind: HostNodeKind
    value: Any
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    source_path: str | None = None
    line_number: int | None = None
    value_source: str | None = None
    matched: bool = False


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------


def _string_value(node: HostNode) -> str | None:
    return node.value if isinstance(node.value, str) else None


_TEXT_EXTRACTORS: dict[HostNodeKind, Callable[[HostNode], str | None]] = {
    HostNodeKind.STRING_LITERAL: _string_value,
    HostNodeKind.PLAIN_TEXT: lambda node: "" if node.value is None else str(node.value),
    HostNodeKind.DOCUMENT_SCALAR: _string_value,
}


def extract_text(node: HostNode) -> str | None:
    """Return the string payload of *node*, ``None`` when it carries no text."""
    return _TEXT_EXTRACTORS[node.kind](node)


# ---------------------------------------------------------------------------
# Text write-back
# ---------------------------------------------------------------------------

_QUOTE_RE = re.compile(r"^(?P<prefix>[A-Za-z]*)(?P<quote>\"\"\"|'''|\"|')")


def _requote(value_source: str | None, text: str) -> str:
    """Spell *text* with the prefix and delimiters of *value_source*."""
    match = _QUOTE_RE.match(value_source or "")
    if match is None:
        return f'"{text}"'
    return f"{match.group('prefix')}{match.group('quote')}{text}{match.group('quote')}"


def _with_literal_text(node: HostNode, text: str) -> HostNode:
    return dataclasses.replace(node, value=text, value_source=_requote(node.value_source, text))


def _with_value(node: HostNode, text: str) -> HostNode:
    return dataclasses.replace(node, value=text)


_TEXT_WRITERS: dict[HostNodeKind, Callable[[HostNode, str], HostNode]] = {
    HostNodeKind.STRING_LITERAL: _with_literal_text,
    HostNodeKind.PLAIN_TEXT: _with_value,
    HostNodeKind.DOCUMENT_SCALAR: _with_value,
}


def with_text(node: HostNode, text: str) -> HostNode:
    """Return a copy of *node* carrying *text*.  Returns *node* itself when unchanged."""
    if extract_text(node) == text:
        return node
    return _TEXT_WRITERS[node.kind](node, text)


def mark_matched(node: HostNode) -> HostNode:
    """Flag *node* as containing detected SQL."""
    if node.matched:
        return node
    return dataclasses.replace(node, matched=True)
