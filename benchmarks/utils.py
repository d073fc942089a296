"""Utilities for benchmark data generation and tree creation."""

from typing import Tuple

import numpy as np

from kd_trees.kd_tree_base import KDTree


def generate_random_points(n: int, dim: int, seed: int) -> np.ndarray:
    """
    Generate deterministic uniformly distributed points in ``[-1, 1]^dim``.

    This is the setup phase - not timed in benchmarks.

    Args:
        n: Number of points to generate
        dim: Number of coordinates per point
        seed: Random seed for reproducibility

    Returns:
        Array of shape (n, dim)
    """
    rng = np.random.default_rng(seed)
    return rng.uniform(-1.0, 1.0, size=(n, dim))


def generate_queries(
    n: int, dim: int, seed: int
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Generate query targets and range boxes.

    Returns:
        (targets, lows, highs), each of shape (n, dim). Boxes are normalised
        so that ``lows <= highs``.
    """
    rng = np.random.default_rng(seed + 7919)
    targets = rng.uniform(-1.0, 1.0, size=(n, dim))
    a = rng.uniform(-1.0, 1.0, size=(n, dim))
    b = rng.uniform(-1.0, 1.0, size=(n, dim))
    return targets, np.minimum(a, b), np.maximum(a, b)


def create_kdtree(points: np.ndarray) -> KDTree:
    """
    Build a KDTree storing each point's row index as its value.

    Args:
        points: Array of shape (n, dim)

    Returns:
        KDTree with all points inserted
    """
    tree = KDTree(points.shape[1])
    tree_insert = tree.insert
    for i, p in enumerate(points.tolist()):
        tree_insert(p, i)
    return tree


def soft_delete_fraction(tree: KDTree, points: np.ndarray, ratio: float, seed: int) -> np.ndarray:
    """
    Soft-delete ``ratio`` of the points, chosen deterministically.

    Returns:
        Boolean mask of the points still live.
    """
    live = np.ones(len(points), dtype=bool)
    count = int(len(points) * ratio)
    if count == 0:
        return live
    rng = np.random.default_rng(seed + 104729)
    doomed = rng.choice(len(points), size=count, replace=False)
    for i in doomed:
        tree.delete(points[i])
    live[doomed] = False
    return live
