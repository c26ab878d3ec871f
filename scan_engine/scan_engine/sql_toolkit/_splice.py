"""Minimal-change splicing between an original and a regenerated string.

Both strings are assumed to differ in one contiguous region.  The region is
found by stripping the longest common prefix and then the longest common
suffix of what remains (so prefix and suffix never overlap).
"""

from __future__ import annotations


def common_prefix_length(left: str, right: str) -> int:
    """Length of the longest common prefix of *left* and *right*."""
    limit = min(len(left), len(right))
    i = 0
    while i < limit and left[i] == right[i]:
        i += 1
    return i


def common_suffix_length(left: str, right: str, *, skip: int = 0) -> int:
    """Length of the longest common suffix, ignoring the first *skip* chars of both."""
    limit = min(len(left), len(right)) - skip
    i = 0
    while i < limit and left[-1 - i] == right[-1 - i]:
        i += 1
    return i


def changed_span(original: str, regenerated: str) -> tuple[int, int, int]:
    """Locate the single differing region.

    Returns
    -------
    tuple[int, int, int]
        ``(start, original_end, regenerated_end)``: the region is
        ``original[start:original_end]`` in the original and
        ``regenerated[start:regenerated_end]`` in the regenerated text.
    """
    prefix = common_prefix_length(original, regenerated)
    suffix = common_suffix_length(original, regenerated, skip=prefix)
    return prefix, len(original) - suffix, len(regenerated) - suffix


def apply_change(original: str, regenerated: str) -> str:
    """Splice the changed region of *regenerated* into *original*.

    Every character outside the changed region is taken from *original*.
    """
    start, original_end, regenerated_end = changed_span(original, regenerated)
    return original[:start] + regenerated[start:regenerated_end] + original[original_end:]


def replace_span(original: str, start: int, end: int, fragment: str) -> str:
    """Replace ``original[start:end]`` with *fragment*, touching only what differs."""
    return original[:start] + apply_change(original[start:end], fragment) + original[end:]
