"""Unified test base classes for all tree types."""

from typing import Any, Dict, Optional, Sequence, Tuple
import unittest
import logging

from kd_trees.base import Point
from kd_trees.display import print_structure
from kd_trees.invariants import TREE_FLAGS, check_live_keys_and_values
from kd_trees.kd_tree_base import KDTree
from kd_trees.logging_config import get_test_logger
from kd_trees.tree_stats import kdtree_stats_
from kd_trees.typed_kd_tree import TypedKDTree

logger = get_test_logger("TestBase")


# Fixture points shared by the untyped and typed suites
POINT_3D_1 = (1.0, 2.0, 3.0)
POINT_3D_2 = (-1.0, -2.0, -3.0)
POINT_3D_3 = (15.0, 10.0, -3.0)
POINT_3D_4 = (10.0, 0.0, 0.0)
POINT_3D_MISSING = (0.0, -2.0, -3.0)

RANGE_3D_LOW = (0.0, 0.0, 0.0)
RANGE_3D_HIGH = (20.0, 20.0, 20.0)

POINT_2D_1 = (1.0, 2.0)
POINT_2D_2 = (-1.0, -2.0)

POINT_1D_1 = (2.2,)
POINT_1D_2 = (-2.2,)
POINT_1D_3 = (-3.3,)
POINT_1D_4 = (5.5,)
POINT_1D_MISSING = (-1.0,)  # nearest to POINT_1D_2

OBJECT_1 = "TEST 1"
OBJECT_2 = "TEST 2"
OBJECT_3 = "TEST 3"


class SamplePoint(Point):
    """Identity-hashed Point, as a user class implementing the capability would be."""

    def __init__(self, *coords: float):
        self.point = list(coords)

    def coordinates(self):
        return self.point

    def __repr__(self):
        return f"SamplePoint{tuple(self.point)}"


class NullPoint(Point):
    """A Point whose coordinates are absent."""

    def coordinates(self):
        return None


class BaseTestCase(unittest.TestCase):
    """Base class for all tests with common functionality."""

    def validate_tree(
        self,
        tree: KDTree,
        expected: Optional[Dict[Tuple[float, ...], Any]] = None,
        err_msg: Optional[str] = "",
    ):
        """Validate tree invariants and, optionally, its live contents."""
        self.assertIsNotNone(tree, "Tree should not be None")
        self.assertIsInstance(tree, KDTree, "Tree should be a KDTree instance")

        stats = kdtree_stats_(tree, {})
        for flag in TREE_FLAGS:
            self.assertTrue(
                getattr(stats, flag),
                f"Invariant failed: {flag} is False\n\n{print_structure(tree, max_depth=8)}\n{err_msg}"
            )
        self.assertEqual(stats.live_count, tree.size(), err_msg)
        self.assertEqual(stats.node_count, tree.node_count(), err_msg)

        if expected is not None:
            keys, presence_ok, values_ok = check_live_keys_and_values(tree, expected)
            self.assertTrue(presence_ok, f"Live keys {keys} do not match expected {list(expected)}\n{err_msg}")
            self.assertTrue(values_ok, f"Live values do not match expected\n{err_msg}")
            self.assertEqual(tree.size(), len(expected), err_msg)
        return stats


class KDTreeTestCase(BaseTestCase):
    """Test case for untyped KD-trees; invariants are checked after every test."""

    def setUp(self):
        self.tree: Optional[KDTree] = None
        self.expected: Optional[Dict[Tuple[float, ...], Any]] = None

    def tearDown(self):
        # nothing to do if no tree was built
        if self.tree is None:
            return
        stats = self.validate_tree(self.tree, self.expected)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"{self.id()}: {stats}")

    def create_tree_3d(self) -> KDTree:
        tree = KDTree(3)
        tree.insert(POINT_3D_1, OBJECT_2)
        tree.insert(POINT_3D_1, OBJECT_1)  # repeat key, updated value
        tree.insert(POINT_3D_2, OBJECT_2)
        tree.insert(POINT_3D_3, OBJECT_3)
        tree.insert(POINT_3D_4, OBJECT_3)  # repeat value
        return tree

    def create_tree_1d(self) -> KDTree:
        tree = KDTree(1)
        tree.insert(POINT_1D_1, OBJECT_1)
        tree.insert(POINT_1D_2, OBJECT_2)
        tree.insert(POINT_1D_3, OBJECT_3)
        tree.insert(POINT_1D_4, OBJECT_3)  # repeat value
        return tree


class TypedKDTreeTestCase(BaseTestCase):
    """Test case for typed KD-trees; checks the wrapped tree after every test."""

    def setUp(self):
        self.tree: Optional[TypedKDTree] = None

    def tearDown(self):
        if self.tree is None or self.tree.tree is None:
            return
        self.validate_tree(self.tree.tree)

    @staticmethod
    def point(coords: Sequence[float]) -> SamplePoint:
        return SamplePoint(*coords)

    def create_tree_3d(self) -> TypedKDTree:
        self.p1, self.p2, self.p3, self.p4 = (
            self.point(POINT_3D_1), self.point(POINT_3D_2),
            self.point(POINT_3D_3), self.point(POINT_3D_4),
        )
        tree = TypedKDTree()
        tree.insert(self.p1, OBJECT_2)
        tree.insert(self.p1, OBJECT_1)  # repeat key, updated value
        tree.insert(self.p2, OBJECT_2)
        tree.insert(self.p3, OBJECT_3)
        tree.insert(self.p4, OBJECT_3)  # repeat value
        return tree

    def create_tree_1d(self) -> TypedKDTree:
        tree = TypedKDTree()
        tree.insert(self.point(POINT_1D_1), OBJECT_1)
        tree.insert(self.point(POINT_1D_2), OBJECT_2)
        tree.insert(self.point(POINT_1D_3), OBJECT_3)
        tree.insert(self.point(POINT_1D_4), OBJECT_3)
        return tree
