"""Shared invariant-checking utilities.

This module provides tree invariant validation that can be used by both
the stats scripts and the test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from kd_trees.logging_config import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from kd_trees.kd_tree_base import KDTree
    from kd_trees.tree_stats import Stats

TREE_FLAGS = (
    "is_search_tree",
    "keys_have_dimension",
    "keys_unique",
    "live_count_consistent",
)


class InvariantError(Exception):
    """Raised when a KD-tree invariant is violated."""


def assert_tree_invariants_raise(
    t: KDTree,
    stats: Stats,
) -> None:
    """Check all invariants, raising :class:`InvariantError` on the first failure."""
    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            raise InvariantError(f"Invariant failed: {flag} is False")

    if not t.is_empty():
        if stats.node_count <= 0:
            raise InvariantError(f"Invariant failed: node_count={stats.node_count} ≤ 0 for non-empty tree")
        if stats.height <= 0:
            raise InvariantError(f"Invariant failed: height={stats.height} ≤ 0 for non-empty tree")
        if stats.height > stats.node_count:
            raise InvariantError(
                f"Invariant failed: height={stats.height} > node_count={stats.node_count}"
            )
        if stats.live_count + stats.deleted_count != stats.node_count:
            raise InvariantError(
                f"Invariant failed: live_count={stats.live_count} + deleted_count="
                f"{stats.deleted_count} ≠ node_count={stats.node_count}"
            )


def check_live_keys_and_values(
    tree: KDTree,
    expected: Optional[Dict[Tuple[float, ...], Any]] = None,
) -> Tuple[List[Tuple[float, ...]], bool, bool]:
    """Traverse the live entries of ``tree`` and compare them with ``expected``.

    Returns
    -------
    (keys, presence_ok, values_ok)
        ``keys`` in top-down, left-to-right order. ``presence_ok`` is True
        when the live key set equals ``expected``'s keys and ``values_ok``
        when every live value equals the expected one. Both are True if no
        expectation is given.
    """
    live = tree.to_map() or {}
    keys = list(live)

    if expected is None:
        return keys, True, True

    presence_ok = set(keys) == set(expected)
    values_ok = presence_ok and all(live[key] == expected[key] for key in keys)
    if not presence_ok:
        logger.debug("Live keys %r differ from expected %r", keys, list(expected))
    return keys, presence_ok, values_ok
