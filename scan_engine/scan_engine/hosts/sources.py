"""Discover host nodes in files on disk.

* Python sources: every ``str`` constant, via the standard ``ast`` module.
* YAML documents: every scalar value, via PyYAML's composed node graph.
* Plain-text files (``.sql``, ``.txt`` by default): the whole file as one node.

Files that cannot be read, decoded or parsed are skipped with a warning so a
single bad file never stops a scan.
"""

from __future__ import annotations

import ast
import logging
import os
from collections.abc import Iterator
from pathlib import Path

import yaml

from scan_engine.config import Settings
from scan_engine.hosts.nodes import HostNode, HostNodeKind

logger = logging.getLogger(__name__)


class ScanError(Exception):
    """Raised when a scan root does not exist."""


# ---------------------------------------------------------------------------
# Per-format node producers
# ---------------------------------------------------------------------------


def python_string_nodes(source: str, source_path: str | None = None) -> Iterator[HostNode]:
    """Yield a STRING_LITERAL node for every string constant in *source*.

    Raises
    ------
    SyntaxError
        If *source* is not valid Python.
    """
    tree = ast.parse(source)
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield HostNode(
                kind=HostNodeKind.STRING_LITERAL,
                value=node.value,
                source_path=source_path,
                line_number=node.lineno,
                value_source=ast.get_source_segment(source, node),
            )


def _yaml_scalars(node: yaml.Node) -> Iterator[yaml.ScalarNode]:
    if isinstance(node, yaml.ScalarNode):
        yield node
    elif isinstance(node, yaml.SequenceNode):
        for item in node.value:
            yield from _yaml_scalars(item)
    elif isinstance(node, yaml.MappingNode):
        for _key, value in node.value:
            yield from _yaml_scalars(value)


def yaml_scalar_nodes(source: str, source_path: str | None = None) -> Iterator[HostNode]:
    """Yield a DOCUMENT_SCALAR node for every scalar value in every document of *source*.

    Mapping keys are not yielded.  Only ``str``-tagged scalars carry text;
    others (ints, booleans, ...) are yielded with their plain value so the
    caller sees them but :func:`extract_text` returns ``None``.

    Raises
    ------
    yaml.YAMLError
        If *source* is not valid YAML.
    """
    for document in yaml.compose_all(source, Loader=yaml.SafeLoader):
        if document is None:
            continue
        for scalar in _yaml_scalars(document):
            value: object = scalar.value
            if scalar.tag != "tag:yaml.org,2002:str":
                value = yaml.safe_load(yaml.serialize(scalar))
            yield HostNode(
                kind=HostNodeKind.DOCUMENT_SCALAR,
                value=value,
                source_path=source_path,
                line_number=scalar.start_mark.line + 1,
            )


def plain_text_node(source: str, source_path: str | None = None) -> HostNode:
    """Return the whole of *source* as one PLAIN_TEXT node."""
    return HostNode(
        kind=HostNodeKind.PLAIN_TEXT,
        value=source,
        source_path=source_path,
        line_number=1,
    )


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def iter_files(root: Path, settings: Settings) -> Iterator[Path]:
    """Yield scannable files under *root* in sorted order.

    A file *root* is yielded as-is when its suffix is scannable.
    """
    if not root.exists():
        raise ScanError(f"Scan root does not exist: {root}")

    suffixes = settings.scanned_suffixes
    if root.is_file():
        if root.suffix.lower() in suffixes:
            yield root
        return

    excluded = set(settings.excluded_dirs)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.suffix.lower() in suffixes:
                yield path


def _read_source(path: Path, settings: Settings) -> str | None:
    try:
        if path.stat().st_size > settings.max_file_bytes:
            logger.warning("Skipping %s: larger than %d bytes", path, settings.max_file_bytes)
            return None
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable file %s: %s", path, exc)
        return None


def iter_source_nodes(
    path: Path,
    settings: Settings,
    *,
    source_path: str | None = None,
) -> Iterator[HostNode]:
    """Yield the host nodes of one file according to its suffix.

    *source_path* is the path recorded on the nodes (defaults to *path*).
    """
    source = _read_source(path, settings)
    if source is None:
        return

    recorded = source_path if source_path is not None else str(path)
    suffix = path.suffix.lower()
    try:
        if suffix in settings.python_suffixes:
            yield from python_string_nodes(source, recorded)
        elif suffix in settings.yaml_suffixes:
            yield from yaml_scalar_nodes(source, recorded)
        elif suffix in settings.plain_text_suffixes:
            yield plain_text_node(source, recorded)
    except (SyntaxError, ValueError, yaml.YAMLError) as exc:
        logger.warning("Skipping %s: could not parse as %s: %s", path, suffix, exc)
