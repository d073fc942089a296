"""Tests for kdtree_stats_, the invariant checks and the display helpers."""

import collections
import logging
import unittest

from kd_trees.display import print_pretty, print_structure
from kd_trees.invariants import (
    InvariantError,
    assert_tree_invariants_raise,
    check_live_keys_and_values,
)
from kd_trees.kd_tree_base import KDTree
from kd_trees.logging_config import ROOT_LOGGER_NAME, get_logger, setup_logging
from kd_trees.tree_stats import Stats, kdtree_stats_
from kd_trees.typed_kd_tree import TypedKDTree

from tests.test_base import (
    KDTreeTestCase,
    POINT_3D_1,
    POINT_3D_2,
    POINT_3D_3,
    POINT_3D_4,
)


def _build_tree(keys, k=2):
    tree = KDTree(k)
    for key in keys:
        tree.insert(key, f"val_{key}")
    return tree


# ─── Tests on empty / trivially-small trees ────────────────────────


class TestStatsEmptyTree(unittest.TestCase):
    """kdtree_stats_ on an empty tree should return neutral / zero stats."""

    def test_none_input(self):
        self._assert_empty(kdtree_stats_(None))

    def test_empty_tree(self):
        self._assert_empty(kdtree_stats_(KDTree(3)))

    # ── helpers ──
    def _assert_empty(self, stats: Stats):
        self.assertEqual(stats.node_count, 0)
        self.assertEqual(stats.live_count, 0)
        self.assertEqual(stats.deleted_count, 0)
        self.assertEqual(stats.leaf_count, 0)
        self.assertEqual(stats.height, 0)
        self.assertEqual(stats.avg_depth, 0.0)
        self.assertTrue(stats.is_search_tree)
        self.assertTrue(stats.keys_have_dimension)
        self.assertTrue(stats.keys_unique)
        self.assertTrue(stats.live_count_consistent)


class TestStatsSmallTree(KDTreeTestCase):

    def test_single_node(self):
        self.tree = _build_tree([(1.0, 1.0)])
        stats = kdtree_stats_(self.tree)
        self.assertEqual(stats.node_count, 1)
        self.assertEqual(stats.leaf_count, 1)
        self.assertEqual(stats.height, 1)
        self.assertEqual(stats.avg_depth, 0.0)

    def test_3d_tree(self):
        self.tree = self.create_tree_3d()
        hist = collections.Counter()
        stats = kdtree_stats_(self.tree, hist)
        self.assertEqual(stats.node_count, 4)
        self.assertEqual(stats.live_count, 4)
        self.assertEqual(stats.height, 3)
        self.assertEqual(stats.leaf_count, 2)
        self.assertEqual(stats.avg_depth, (0 + 1 + 1 + 2) / 4)
        self.assertEqual(dict(hist), {0: 1, 1: 2, 2: 1})

    def test_deleted_nodes_counted(self):
        self.tree = self.create_tree_3d()
        self.tree.delete(POINT_3D_1)
        self.tree.delete(POINT_3D_4)
        stats = kdtree_stats_(self.tree)
        self.assertEqual(stats.node_count, 4)
        self.assertEqual(stats.live_count, 2)
        self.assertEqual(stats.deleted_count, 2)
        self.assertTrue(stats.live_count_consistent)
        self.expected = {POINT_3D_2: "TEST 2", POINT_3D_3: "TEST 3"}


class TestStatsDetectsViolations(unittest.TestCase):
    """Corrupt trees on purpose and check the flags flip."""

    def setUp(self):
        self.tree = _build_tree([(5.0, 5.0), (2.0, 8.0), (7.0, 1.0), (2.0, 3.0)])
        # keep the warnings out of the test output
        self._log = logging.getLogger(f"{ROOT_LOGGER_NAME}.tree_stats")
        self._level = self._log.level
        self._log.setLevel(logging.ERROR)

    def tearDown(self):
        self._log.setLevel(self._level)

    def _node(self, key):
        return self.tree.arena[self.tree.arena.find(self.tree.root, key, 2)]

    def test_search_tree_violation(self):
        # move a left-subtree key across its ancestor's split
        self._node((2.0, 3.0)).key = (6.0, 3.0)
        stats = kdtree_stats_(self.tree)
        self.assertFalse(stats.is_search_tree)
        with self.assertRaises(InvariantError):
            assert_tree_invariants_raise(self.tree, stats)

    def test_wrong_dimension(self):
        self._node((2.0, 3.0)).key = (2.0, 3.0, 0.0)
        stats = kdtree_stats_(self.tree)
        self.assertFalse(stats.keys_have_dimension)

    def test_duplicate_key(self):
        self._node((2.0, 3.0)).key = (2.0, 8.0)
        stats = kdtree_stats_(self.tree)
        self.assertFalse(stats.keys_unique)

    def test_count_drift(self):
        self.tree._count += 1
        stats = kdtree_stats_(self.tree)
        self.assertFalse(stats.live_count_consistent)
        with self.assertRaises(InvariantError):
            assert_tree_invariants_raise(self.tree, stats)

    def test_valid_tree_passes(self):
        stats = kdtree_stats_(self.tree)
        assert_tree_invariants_raise(self.tree, stats)


class TestCheckLiveKeysAndValues(unittest.TestCase):

    def test_match(self):
        tree = _build_tree([(1.0, 1.0), (0.0, 2.0)])
        keys, presence_ok, values_ok = check_live_keys_and_values(
            tree, {(1.0, 1.0): "val_(1.0, 1.0)", (0.0, 2.0): "val_(0.0, 2.0)"}
        )
        self.assertEqual(keys, [(1.0, 1.0), (0.0, 2.0)])
        self.assertTrue(presence_ok)
        self.assertTrue(values_ok)

    def test_wrong_value(self):
        tree = _build_tree([(1.0, 1.0)])
        _, presence_ok, values_ok = check_live_keys_and_values(tree, {(1.0, 1.0): "other"})
        self.assertTrue(presence_ok)
        self.assertFalse(values_ok)

    def test_missing_key(self):
        tree = _build_tree([(1.0, 1.0)])
        tree.delete((1.0, 1.0))
        keys, presence_ok, values_ok = check_live_keys_and_values(tree, {(1.0, 1.0): "val_(1.0, 1.0)"})
        self.assertEqual(keys, [])
        self.assertFalse(presence_ok)
        self.assertFalse(values_ok)

    def test_no_expectation(self):
        keys, presence_ok, values_ok = check_live_keys_and_values(KDTree(1))
        self.assertEqual((keys, presence_ok, values_ok), ([], True, True))


class TestDisplay(KDTreeTestCase):

    def test_print_pretty_layers(self):
        self.tree = self.create_tree_3d()
        self.tree.delete(POINT_3D_2)
        out = print_pretty(self.tree, color=False)
        lines = [line for line in out.splitlines() if line.strip()]
        self.assertEqual(lines[0], "KDTree")
        self.assertTrue(lines[1].startswith("Depth 0:"))
        self.assertIn("(1, 2, 3)", lines[1])
        self.assertIn("(-1, -2, -3)*", lines[2])
        self.assertIn("(15, 10, -3)", lines[2])
        self.assertTrue(lines[3].startswith("Depth 2:"))

    def test_print_pretty_color(self):
        self.tree = self.create_tree_3d()
        self.tree.delete(POINT_3D_2)
        out = print_pretty(self.tree)
        self.assertIn("\033[33m(-1, -2, -3)*\033[0m", out)

    def test_print_pretty_empty(self):
        self.assertEqual(print_pretty(None), "KDTree: None")
        self.assertEqual(print_pretty(KDTree(2)), "KDTree: Empty")
        self.assertEqual(print_pretty(TypedKDTree()), "KDTree: None")

    def test_print_pretty_typed(self):
        typed = TypedKDTree()
        typed.initialize(2)
        typed.tree.insert((1.0, 2.0), "x")
        self.assertTrue(print_pretty(typed, color=False).startswith("KDTree\n"))

    def test_print_pretty_rejects_other_types(self):
        with self.assertRaises(TypeError):
            print_pretty([1, 2, 3])

    def test_print_structure(self):
        self.tree = self.create_tree_3d()
        out = print_structure(self.tree, max_depth=1)
        lines = out.splitlines()
        self.assertEqual(lines[0], f"KDTree(k=3, size=4, nodes=4, root={self.tree.root})")
        self.assertIn("split=0", lines[1])
        self.assertIn("split=1", lines[2])
        self.assertEqual(lines[-1].strip(), "... (max depth reached)")
        self.assertEqual(print_structure(KDTree(1)), "Empty KDTree")
        self.assertEqual(print_structure(None), "Empty KDTree")


class TestLoggingConfig(unittest.TestCase):

    def test_logger_names(self):
        self.assertEqual(get_logger("KDTree").name, "kd_trees.KDTree")
        self.assertEqual(get_logger("kd_trees.tree_stats").name, "kd_trees.tree_stats")
        self.assertEqual(get_logger(ROOT_LOGGER_NAME).name, ROOT_LOGGER_NAME)

    def test_setup_is_idempotent(self):
        root = setup_logging()
        handlers = list(root.handlers)
        self.assertIs(setup_logging(level=logging.DEBUG), root)
        self.assertEqual(root.handlers, handlers)
        self.assertFalse(root.propagate)

    def test_setup_ignores_handlers_on_the_root_logger(self):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        saved = (list(logger.handlers), logger.level, logger.propagate)
        outer = logging.NullHandler()
        logging.getLogger().addHandler(outer)
        try:
            for handler in saved[0]:
                logger.removeHandler(handler)
            logger.propagate = True
            configured = setup_logging()
            self.assertEqual(len(configured.handlers), 1)
            self.assertFalse(configured.propagate)
        finally:
            logging.getLogger().removeHandler(outer)
            logger.handlers = saved[0]
            logger.setLevel(saved[1])
            logger.propagate = saved[2]

    def test_debug_logging_of_operations(self):
        tree_logger = get_logger("KDTree")
        root = logging.getLogger(ROOT_LOGGER_NAME)
        level = root.level
        root.setLevel(logging.DEBUG)
        try:
            with self.assertLogs(tree_logger, level="DEBUG") as cm:
                tree = KDTree(2)
                tree.insert((1.0, 1.0), "a")
                self.assertEqual(tree.range_search((2.0, 2.0), (0.0, 0.0)), [])
            self.assertTrue(any("Created KDTree with K=2" in m for m in cm.output))
            self.assertTrue(any("Reversed range bounds" in m for m in cm.output))
        finally:
            root.setLevel(level)


if __name__ == "__main__":
    unittest.main()
