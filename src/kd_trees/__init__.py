"""
kd_trees: KD-trees with soft deletion and a typed, chainable wrapper.

Quick-start imports::

    from kd_trees import KDTree, TypedKDTree, CoordinatePoint
"""

# Shared primitives
from kd_trees.base import CoordinatePoint, Point, as_coordinates, sqdist
from kd_trees.exceptions import (
    AlreadyInitializedError,
    InvalidKeyError,
    KDTreeError,
    KeyMissingError,
    NeighborCountError,
    PointDimensionError,
)
from kd_trees.hrect import HRect
from kd_trees.neighbor_list import NearestNeighborList

# Trees
from kd_trees.kd_node import KDNode, KDNodeArena
from kd_trees.kd_tree_base import KDTree
from kd_trees.typed_kd_tree import TypedKDTree

# Stats & invariants
from kd_trees.display import print_pretty, print_structure
from kd_trees.invariants import (
    InvariantError,
    assert_tree_invariants_raise,
    check_live_keys_and_values,
)
from kd_trees.tree_stats import Stats, kdtree_stats_

__all__ = [
    "AlreadyInitializedError",
    "CoordinatePoint",
    "HRect",
    "InvalidKeyError",
    "InvariantError",
    "KDNode",
    "KDNodeArena",
    "KDTree",
    "KDTreeError",
    "KeyMissingError",
    "NearestNeighborList",
    "NeighborCountError",
    "Point",
    "PointDimensionError",
    "Stats",
    "TypedKDTree",
    "as_coordinates",
    "assert_tree_invariants_raise",
    "check_live_keys_and_values",
    "kdtree_stats_",
    "print_pretty",
    "print_structure",
    "sqdist",
]
