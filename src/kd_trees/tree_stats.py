"""Statistics and invariant checking for KD-tree structures."""

from __future__ import annotations

import collections
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional

from kd_trees.logging_config import get_logger

if TYPE_CHECKING:
    from kd_trees.kd_tree_base import KDTree

logger = get_logger(__name__)


@dataclass
class Stats:
    """Aggregated statistics for a KD-tree."""

    node_count: int
    live_count: int
    deleted_count: int
    leaf_count: int
    height: int
    avg_depth: float
    is_search_tree: bool
    keys_have_dimension: bool
    keys_unique: bool
    live_count_consistent: bool


def kdtree_stats_(
    t: Optional[KDTree],
    depth_hist: Optional[Dict[int, int]] = None,
) -> Stats:
    """
    Returns aggregated statistics for a KD-tree in **O(n K)** time.

    ``is_search_tree`` checks every node against all of its ancestors: a
    node below the left child of an ancestor splitting on ``s`` must have
    ``key[s] < ancestor.key[s]``, one below the right child ``>=``.

    The caller can supply an existing Counter / dict for ``depth_hist``;
    it receives the number of nodes found at each depth.
    """
    if depth_hist is None:
        depth_hist = collections.Counter()

    # ---------- empty tree return ---------------------------------
    if t is None or t.is_empty():
        return Stats(
            node_count=0,
            live_count=0,
            deleted_count=0,
            leaf_count=0,
            height=0,
            avg_depth=0.0,
            is_search_tree=True,
            keys_have_dimension=True,
            keys_unique=True,
            live_count_consistent=t is None or t.size() == 0,
        )

    k = t.dimensions()
    arena = t.arena
    inf = float("inf")

    node_count = live_count = leaf_count = 0
    height = 0
    depth_sum = 0
    is_search_tree = True
    keys_have_dimension = True
    seen = set()
    keys_unique = True

    # (index, depth, inclusive lower bounds, exclusive upper bounds)
    stack: List[tuple] = [(t.root, 0, [-inf] * k, [inf] * k)]
    while stack:
        idx, depth, lo, hi = stack.pop()
        node = arena[idx]
        key = node.key

        node_count += 1
        depth_sum += depth
        height = max(height, depth + 1)
        depth_hist[depth] = depth_hist.get(depth, 0) + 1
        if not node.deleted:
            live_count += 1
        if node.left is None and node.right is None:
            leaf_count += 1

        if len(key) != k:
            keys_have_dimension = False
            logger.warning("Node %d has key %r of length %d, expected %d", idx, key, len(key), k)
            continue
        if key in seen:
            keys_unique = False
        seen.add(key)

        if is_search_tree and not all(l <= c < h for c, l, h in zip(key, lo, hi)):
            is_search_tree = False
            logger.warning("Node %d key %r violates ancestor bounds lo=%r hi=%r", idx, key, lo, hi)

        s = depth % k
        if node.left is not None:
            left_hi = list(hi)
            left_hi[s] = min(hi[s], key[s])
            stack.append((node.left, depth + 1, lo, left_hi))
        if node.right is not None:
            right_lo = list(lo)
            right_lo[s] = max(lo[s], key[s])
            stack.append((node.right, depth + 1, right_lo, hi))

    return Stats(
        node_count=node_count,
        live_count=live_count,
        deleted_count=node_count - live_count,
        leaf_count=leaf_count,
        height=height,
        avg_depth=depth_sum / node_count,
        is_search_tree=is_search_tree,
        keys_have_dimension=keys_have_dimension,
        keys_unique=keys_unique,
        live_count_consistent=(live_count == t.size() and node_count == t.node_count()),
    )
