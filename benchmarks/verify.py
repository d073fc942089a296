"""Correctness verification for benchmark data structures."""

import logging
from typing import Sequence

import numpy as np

from kd_trees.invariants import TREE_FLAGS
from kd_trees.kd_tree_base import KDTree
from kd_trees.tree_stats import Stats


def verify_invariants(tree: KDTree, stats: Stats) -> bool:
    """
    Check all tree invariants.

    This is the verify phase - not timed in benchmarks.

    Args:
        tree: The KDTree to verify
        stats: Computed statistics for the tree

    Returns:
        True if all invariants pass, False otherwise
    """
    all_passed = True

    for flag in TREE_FLAGS:
        if not getattr(stats, flag):
            logging.error("Invariant failed: %s is False", flag)
            all_passed = False

    if not tree.is_empty():
        if stats.height > stats.node_count:
            logging.error(
                "Invariant failed: height=%d > node_count=%d",
                stats.height, stats.node_count
            )
            all_passed = False
        if stats.live_count + stats.deleted_count != stats.node_count:
            logging.error(
                "Invariant failed: live=%d + deleted=%d != nodes=%d",
                stats.live_count, stats.deleted_count, stats.node_count
            )
            all_passed = False

    return all_passed


def verify_queries(
    tree: KDTree,
    points: np.ndarray,
    live: np.ndarray,
    targets: np.ndarray,
    lows: np.ndarray,
    highs: np.ndarray,
    neighbors: int,
) -> bool:
    """
    Compare nearest-neighbour and range answers with a numpy brute force.

    This is the verify phase - not timed in benchmarks.

    Returns:
        True if every query matches
    """
    all_passed = True
    live_idx = np.flatnonzero(live)
    live_points = points[live_idx]
    n = min(neighbors, len(live_idx))

    for q, target in enumerate(targets):
        found: Sequence[int] = tree.nearest_values(target, n)
        got = ((points[found] - target) ** 2).sum(axis=1) if found else np.empty(0)
        expected = np.sort(((live_points - target) ** 2).sum(axis=1))[:n]
        if not np.allclose(got, expected):
            logging.error("Nearest mismatch for query %d: got %s, expected %s", q, got, expected)
            all_passed = False

    for q, (low, high) in enumerate(zip(lows, highs)):
        found = sorted(tree.range_search(low, high))
        mask = np.all((live_points >= low) & (live_points <= high), axis=1)
        expected = sorted(int(i) for i in live_idx[mask])
        if found != expected:
            logging.error(
                "Range mismatch for query %d: %d results, expected %d",
                q, len(found), len(expected)
            )
            all_passed = False

    return all_passed
