"""Statistics for KD-trees."""

import argparse
import logging
import math
import os
import time
from datetime import datetime
from statistics import mean

import numpy as np
from tqdm import trange

from kd_trees.base import CoordinatePoint
from kd_trees.invariants import assert_tree_invariants_raise
from kd_trees.kd_tree_base import KDTree
from kd_trees.logging_config import setup_logging
from kd_trees.tree_stats import kdtree_stats_
from kd_trees.typed_kd_tree import TypedKDTree

logger = logging.getLogger(__name__)


def create_kdtree(points: np.ndarray) -> KDTree:
    """Build a KDTree by inserting each point in order, value = row index."""
    tree = KDTree(points.shape[1])
    tree_insert = tree.insert
    for i, p in enumerate(points.tolist()):
        tree_insert(p, i)
    return tree


# Create a random KDTree with n uniformly distributed points, a fraction of them soft-deleted.
def random_kdtree_of_size(n: int, dim: int, delete_ratio: float, rng: np.random.Generator) -> KDTree:
    points = rng.uniform(-1.0, 1.0, size=(n, dim))
    tree = create_kdtree(points)
    doomed = rng.choice(n, size=int(n * delete_ratio), replace=False)
    for i in doomed:
        tree.delete(points[i])
    return tree


def optimized_copy(tree: KDTree) -> TypedKDTree:
    """Wrap the live entries of ``tree`` and rebuild them around the origin."""
    typed = TypedKDTree()
    typed.initialize(tree.dimensions())
    for key, value in (tree.to_map() or {}).items():
        typed.insert(CoordinatePoint(key), value)
    return typed.optimize(CoordinatePoint([0.0] * tree.dimensions()))


def repeated_experiment(
    size: int,
    repetitions: int,
    dim: int,
    delete_ratio: float,
    rng: np.random.Generator,
) -> None:
    """
    Repeatedly builds random KDTrees of ``size`` points in ``dim`` dimensions,
    soft-deletes ``delete_ratio`` of them and aggregates structural statistics
    and timings over all trees. Each tree is also rebuilt with ``optimize``
    around the origin to compare the shapes.
    """
    t_all_0 = time.perf_counter()

    results = []  # List of tuples: (stats, optimized stats)
    times_build = []
    times_stats = []
    times_opt = []

    for _ in trange(repetitions, desc=f"n={size}, K={dim}", leave=False):
        t0 = time.perf_counter()
        tree = random_kdtree_of_size(size, dim, delete_ratio, rng)
        times_build.append(time.perf_counter() - t0)

        t0 = time.perf_counter()
        stats = kdtree_stats_(tree, {})
        times_stats.append(time.perf_counter() - t0)
        assert_tree_invariants_raise(tree, stats)

        t0 = time.perf_counter()
        optimized = optimized_copy(tree)
        times_opt.append(time.perf_counter() - t0)

        opt_stats = kdtree_stats_(optimized.tree, {})
        assert_tree_invariants_raise(optimized.tree, opt_stats)
        results.append((stats, opt_stats))

    # Perfect height of a balanced binary tree over the live entries
    live = size - int(size * delete_ratio)
    perfect_height = math.ceil(math.log2(live + 1)) if live > 0 else 0

    def avg_var(values):
        values = list(values)
        avg = mean(values)
        return avg, mean((v - avg) ** 2 for v in values)

    rows = [
        ("Node count", *avg_var(s.node_count for s, _ in results)),
        ("Live count", *avg_var(s.live_count for s, _ in results)),
        ("Deleted count", *avg_var(s.deleted_count for s, _ in results)),
        ("Leaf count", *avg_var(s.leaf_count for s, _ in results)),
        ("Avg node depth", *avg_var(s.avg_depth for s, _ in results)),
        ("Actual height", *avg_var(s.height for s, _ in results)),
        ("Optimized height", *avg_var(o.height for _, o in results)),
        ("Optimized avg depth", *avg_var(o.avg_depth for _, o in results)),
        ("Perfect height", perfect_height, None),
    ]
    if perfect_height:
        rows.append(("Height amplification", *avg_var(s.height / perfect_height for s, _ in results)))

    # Log table
    header = f"{'Metric':<20} {'Avg':>15} {'(Var)':>15}"
    sep_line = "-" * len(header)

    logger.info(header)
    logger.info(sep_line)
    for name, avg, var in rows:
        if var is None:
            logger.info(f"{name:<20} {avg:>15}")
        else:
            var_str = f"({var:.2f})"
            avg_fmt = f"{avg:15.2f}"
            logger.info(f"{name:<20} {avg_fmt} {var_str:>15}")

    # Performance metrics
    perf = [
        ("Build time (s)", times_build),
        ("Stats time (s)", times_stats),
        ("Optimize time (s)", times_opt),
    ]
    total_sum = sum(sum(ts) for _, ts in perf)

    header = f"{'Metric':<20}{'Avg(s)':>13}{'Var(s)':>13}{'Total(s)':>13}{'%Total':>10}"
    sep = "-" * len(header)

    logger.info("")  # blank line for separation
    logger.info("Performance summary:")
    logger.info(header)
    logger.info(sep)
    for name, ts in perf:
        avg, var = avg_var(ts)
        total = sum(ts)
        pct = (total / total_sum * 100) if total_sum else 0
        logger.info(f"{name:<20}{avg:13.6f}{var:13.6f}{total:13.6f}{pct:10.2f}%")

    logger.info(sep)
    t_all_1 = time.perf_counter() - t_all_0
    logger.info("Execution time: %.3f seconds", t_all_1)


if __name__ == "__main__":
    # --- Argument Parsing ---
    parser = argparse.ArgumentParser(description="Run statistics experiments for KD-trees.")
    parser.add_argument(
        "--sizes", type=int, nargs="+", default=[10, 100, 1000, 10_000], help="List of tree sizes to test."
    )
    parser.add_argument(
        "--dims", type=int, nargs="+", default=[1, 2, 3, 8], help="List of key dimensions (K) to test."
    )
    parser.add_argument("--repetitions", type=int, default=1, help="Number of repetitions for each experiment.")
    parser.add_argument(
        "--delete-ratio", type=float, default=0.0, help="Fraction of points soft-deleted after building."
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )

    args = parser.parse_args()
    if not 0.0 <= args.delete_ratio <= 1.0:
        parser.error(f"--delete-ratio must be within [0, 1], got {args.delete_ratio}")

    rng = np.random.default_rng(args.seed)

    log_dir = os.path.join(os.getcwd(), "stats/logs/kd_tree_logs")
    os.makedirs(log_dir, exist_ok=True)

    # Timestamped logfile name
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = os.path.join(log_dir, f"run_{ts}.log")

    # Log to that file and to the console
    log_level = getattr(logging, args.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_path, mode="w"),
            logging.StreamHandler(),
        ],
        force=True,  # Override any existing logging configuration
    )

    # kd_trees.* loggers do not propagate, so apply the level there as well
    setup_logging(level=log_level).setLevel(log_level)

    for n in args.sizes:
        for K in args.dims:
            logger.info("")
            logger.info("")
            logger.info(
                f"---------------- NOW RUNNING EXPERIMENT: n = {n}, K = {K}, "
                f"repetitions = {args.repetitions}, delete ratio = {args.delete_ratio} ----------------"
            )
            t0 = time.perf_counter()
            repeated_experiment(
                size=n, repetitions=args.repetitions, dim=K, delete_ratio=args.delete_ratio, rng=rng
            )
            elapsed = time.perf_counter() - t0
            logger.info(f"Total experiment time: {elapsed:.3f} seconds")
