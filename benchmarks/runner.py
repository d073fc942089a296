"""Core benchmark runner for KD-tree performance measurements."""

import logging
import math
import time
from dataclasses import dataclass
from statistics import mean
from typing import List, Tuple

import numpy as np
from tqdm import tqdm

from kd_trees.kd_tree_base import KDTree
from kd_trees.tree_stats import Stats, kdtree_stats_

from .config import BenchmarkConfig, BenchmarkMetadata, get_git_commit_hash
from .utils import create_kdtree, generate_queries, generate_random_points, soft_delete_fraction
from .verify import verify_invariants, verify_queries


@dataclass
class BenchmarkResult:
    """Results from a single benchmark run."""
    stats: Stats
    build_time: float
    nearest_time: float
    range_time: float
    range_hits: int


@dataclass
class BenchmarkCase:
    """Pre-generated inputs for one repetition."""
    points: np.ndarray
    targets: np.ndarray
    lows: np.ndarray
    highs: np.ndarray


class BenchmarkRunner:
    """
    Manages the benchmark lifecycle with proper phase separation.

    Phases:
    1. Setup (not timed): Point and query generation
    2. Warmup (not timed): Optional warmup iterations
    3. Run (timed): Build, nearest-neighbour and range queries
    4. Verify (not timed): Invariant and brute-force checks
    5. Teardown (not timed): Cleanup
    """

    def __init__(self, config: BenchmarkConfig):
        self.config = config
        self._check_logging_level()

    def _check_logging_level(self) -> None:
        """Warn if verbose logging is enabled during measurement."""
        current_level = logging.getLogger("kd_trees").getEffectiveLevel()
        if current_level < logging.INFO:
            level_name = logging.getLevelName(current_level)
            logging.warning(
                "Verbose logging (%s) is enabled. This may affect benchmark timing! "
                "Set log level to INFO or higher for accurate measurements.",
                level_name
            )

    def setup(self, size: int, dim: int, repetitions: int) -> List[BenchmarkCase]:
        """
        Setup phase: Generate points and queries.

        NOT TIMED.
        """
        cases = []
        for i in range(repetitions):
            # different but deterministic data per repetition
            seed = self.config.seed + i
            targets, lows, highs = generate_queries(self.config.queries, dim, seed)
            cases.append(BenchmarkCase(
                points=generate_random_points(size, dim, seed),
                targets=targets,
                lows=lows,
                highs=highs,
            ))
        return cases

    def warmup(self, cases: List[BenchmarkCase]) -> None:
        """
        Warmup phase: Run operations to warm caches.

        NOT TIMED.
        """
        if self.config.skip_warmup or not cases:
            return
        case = cases[0]
        tree = create_kdtree(case.points[: min(len(case.points), 256)])
        n = min(self.config.neighbors, tree.size())
        for target in case.targets[:10].tolist():
            tree.nearest_values(target, n)

    def run_single(self, case: BenchmarkCase) -> Tuple[KDTree, np.ndarray, BenchmarkResult]:
        """
        Run measurement on a single case.

        TIMED - only the tree operations are measured.
        """
        t0 = time.perf_counter()
        tree = create_kdtree(case.points)
        build_time = time.perf_counter() - t0

        live = soft_delete_fraction(tree, case.points, self.config.delete_ratio, self.config.seed)

        n = min(self.config.neighbors, tree.size())
        targets = case.targets.tolist()
        t0 = time.perf_counter()
        for target in targets:
            tree.nearest_values(target, n)
        nearest_time = time.perf_counter() - t0

        boxes = list(zip(case.lows.tolist(), case.highs.tolist()))
        hits = 0
        t0 = time.perf_counter()
        for low, high in boxes:
            hits += len(tree.range_search(low, high))
        range_time = time.perf_counter() - t0

        return tree, live, BenchmarkResult(
            stats=kdtree_stats_(tree, {}),
            build_time=build_time,
            nearest_time=nearest_time,
            range_time=range_time,
            range_hits=hits,
        )

    def verify(self, tree: KDTree, case: BenchmarkCase, live: np.ndarray, stats: Stats) -> bool:
        """
        Verify phase: Check correctness.

        NOT TIMED.
        """
        ok = verify_invariants(tree, stats)
        return verify_queries(
            tree, case.points, live, case.targets, case.lows, case.highs, self.config.neighbors
        ) and ok

    def run_benchmark(self, size: int, dim: int, repetitions: int) -> Tuple[List[BenchmarkResult], BenchmarkMetadata]:
        """
        Run complete benchmark with proper phase separation.

        Returns:
            (results, metadata)
        """
        metadata = BenchmarkMetadata(
            commit_hash=get_git_commit_hash(),
            config=self.config,
            size=size,
            dim=dim,
            repetitions=repetitions,
        )

        # === SETUP PHASE (not timed) ===
        logging.debug("Setup: Generating %d point sets...", repetitions)
        cases = self.setup(size, dim, repetitions)

        # === WARMUP PHASE (not timed) ===
        if not self.config.skip_warmup:
            logging.debug("Warmup: Running warmup iterations...")
            self.warmup(cases)

        # === MEASUREMENT PHASE (timed) ===
        results = []
        all_verified = True

        for case in tqdm(cases, desc=f"n={size}, K={dim}", leave=False):
            tree, live, result = self.run_single(case)
            results.append(result)

            # === VERIFY PHASE (not timed) ===
            if self.config.verify_only or logging.getLogger().isEnabledFor(logging.DEBUG):
                if not self.verify(tree, case, live, result.stats):
                    all_verified = False

        if self.config.verify_only:
            if all_verified:
                logging.info("All verifications passed for n=%d, K=%d", size, dim)
            else:
                logging.error("Some verifications failed for n=%d, K=%d", size, dim)

        return results, metadata

    def aggregate_and_report(
        self,
        results: List[BenchmarkResult],
        metadata: BenchmarkMetadata,
    ) -> None:
        """
        Aggregate results and report statistics.

        NOT TIMED.
        """
        size = metadata.size
        queries = max(self.config.queries, 1)

        # Perfect height of a balanced binary tree
        perfect_height = math.ceil(math.log2(size + 1)) if size > 0 else 0

        def avg_var(values):
            values = list(values)
            avg = mean(values)
            return avg, mean((v - avg) ** 2 for v in values)

        height = avg_var(r.stats.height for r in results)
        height_amp = avg_var(r.stats.height / perfect_height for r in results) if perfect_height else (0, 0)
        avg_depth = avg_var(r.stats.avg_depth for r in results)
        leaf_count = avg_var(r.stats.leaf_count for r in results)
        live_count = avg_var(r.stats.live_count for r in results)
        deleted_count = avg_var(r.stats.deleted_count for r in results)
        range_hits = avg_var(r.range_hits / queries for r in results)

        logging.info("")
        logging.info("=== METADATA ===")
        for line in str(metadata).split('\n'):
            logging.info(line)

        rows = [
            ("Live count", *live_count),
            ("Deleted count", *deleted_count),
            ("Leaf count", *leaf_count),
            ("Avg node depth", *avg_depth),
            ("Actual height", *height),
            ("Perfect height", perfect_height, None),
            ("Height amplification", *height_amp),
            ("Range hits / query", *range_hits),
        ]

        header = f"{'Metric':<20} {'Avg':>15} {'(Var)':>15}"
        sep_line = "-" * len(header)

        logging.info("")
        logging.info("=== STATISTICS ===")
        logging.info(header)
        logging.info(sep_line)
        for name, avg, var in rows:
            if var is None:
                logging.info(f"{name:<20} {avg:>15}")
            else:
                var_str = f"({var:.2f})"
                logging.info(f"{name:<20} {avg:15.2f} {var_str:>15}")

        timings = [
            ("Build time (s)", [r.build_time for r in results]),
            ("Nearest time (s)", [r.nearest_time for r in results]),
            ("Range time (s)", [r.range_time for r in results]),
        ]
        total_sum = sum(sum(ts) for _, ts in timings)

        header = f"{'Metric':<20}{'Avg(s)':>13}{'Var(s)':>13}{'Total(s)':>13}{'%Total':>10}"
        sep = "-" * len(header)

        logging.info("")
        logging.info("=== PERFORMANCE ===")
        logging.info(header)
        logging.info(sep)
        for name, ts in timings:
            avg, var = avg_var(ts)
            total = sum(ts)
            pct = (total / total_sum * 100) if total_sum else 0
            logging.info(
                f"{name:<20}"
                f"{avg:13.6f}"
                f"{var:13.6f}"
                f"{total:13.6f}"
                f"{pct:10.2f}%"
            )
        logging.info(sep)
        per_query = mean(r.nearest_time for r in results) / queries
        logging.info("Nearest query latency: %.2f us", per_query * 1e6)
