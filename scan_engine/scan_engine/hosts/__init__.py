"""Host artifact nodes and the scanners that find them on disk."""

from scan_engine.hosts.nodes import HostNode, HostNodeKind, extract_text, mark_matched, with_text
from scan_engine.hosts.sources import (
    ScanError,
    iter_files,
    iter_source_nodes,
    plain_text_node,
    python_string_nodes,
    yaml_scalar_nodes,
)

__all__ = [
    "HostNode",
    "HostNodeKind",
    "ScanError",
    "extract_text",
    "iter_files",
    "iter_source_nodes",
    "mark_matched",
    "plain_text_node",
    "python_string_nodes",
    "with_text",
    "yaml_scalar_nodes",
]
