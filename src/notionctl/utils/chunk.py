"""Batch block payloads for the ``append block children`` endpoint.

Notion accepts at most 100 blocks per append request; :func:`chunk_children`
splits an arbitrarily long list into compliant batches.
"""

from __future__ import annotations

from typing import Any


def chunk_children(blocks: list[dict[str, Any]], size: int = 100) -> list[list[dict[str, Any]]]:
    """Split a list of block dicts into batches of at most ``size``.

    An empty input returns an empty list (not ``[[]]``).

    Raises
    ------
    ValueError
        If *size* is less than 1.

    Examples
    --------
    >>> [len(c) for c in chunk_children([{"type": "divider"}] * 250)]
    [100, 100, 50]
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size}")

    if not blocks:
        return []

    return [blocks[i : i + size] for i in range(0, len(blocks), size)]
