#!/usr/bin/env python3
"""
Main entry point for KD-tree benchmarks.

This script runs performance benchmarks with proper phase separation:
- Setup (not timed): Point and query generation
- Warmup (not timed): Cache warming
- Run (timed): Build, nearest-neighbour and range queries
- Verify (not timed): Invariant and brute-force checks
- Teardown (not timed): Cleanup

Usage:
    # Run with default settings
    python -m benchmarks.run_benchmarks

    # Run with custom seed for reproducibility
    BENCHMARK_SEED=123 python -m benchmarks.run_benchmarks

    # Run in verify-only mode (no timing, only correctness)
    BENCHMARK_VERIFY_ONLY=true python -m benchmarks.run_benchmarks

    # Run with custom log level
    BENCHMARK_LOG_LEVEL=DEBUG python -m benchmarks.run_benchmarks

    # Soft-delete a third of the points before querying
    python -m benchmarks.run_benchmarks --sizes 1000 --dims 3 --delete-ratio 0.33
"""

import argparse
import logging
import os
import sys
import time
from datetime import datetime

from kd_trees.logging_config import setup_logging as setup_library_logging

from .config import BenchmarkConfig
from .runner import BenchmarkRunner


def setup_logging(config: BenchmarkConfig, log_dir: str = None) -> None:
    """
    Configure logging for benchmark output.

    Args:
        config: Benchmark configuration
        log_dir: Optional directory for log files
    """
    handlers = [logging.StreamHandler()]

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = os.path.join(log_dir, f"benchmark_{ts}.log")
        handlers.append(logging.FileHandler(log_path, mode="w"))

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,  # Override any existing configuration
    )
    # kd_trees loggers do not propagate to the root logger
    setup_library_logging().setLevel(level)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Run KD-tree benchmarks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for reproducibility (default: from env or 42)",
    )
    parser.add_argument(
        "--sizes",
        type=int,
        nargs="+",
        help="Tree sizes to benchmark (default: 100 1000 10000)",
    )
    parser.add_argument(
        "--dims",
        type=int,
        nargs="+",
        help="Key dimensions (K values) to test (default: 2 3 8)",
    )
    parser.add_argument(
        "--repetitions",
        type=int,
        help="Number of repetitions per configuration (default: 20)",
    )
    parser.add_argument(
        "--queries",
        type=int,
        help="Nearest and range queries per tree (default: 200)",
    )
    parser.add_argument(
        "--neighbors",
        type=int,
        help="Neighbours requested per nearest query (default: 8)",
    )
    parser.add_argument(
        "--delete-ratio",
        type=float,
        help="Fraction of points soft-deleted before querying (default: 0.0)",
    )
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Run in verify-only mode (no timing)",
    )
    parser.add_argument(
        "--skip-warmup",
        action="store_true",
        help="Skip warmup phase",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-dir",
        help="Directory for log files (default: benchmarks/logs)",
    )

    return parser.parse_args()


def main() -> int:
    """
    Main benchmark execution.

    Returns:
        Exit code (0 for success)
    """
    args = parse_args()

    # Start with config from environment, then apply command-line overrides
    config = BenchmarkConfig.from_env()
    for field in ("seed", "sizes", "dims", "repetitions", "queries", "neighbors", "delete_ratio", "log_level"):
        value = getattr(args, field)
        if value is not None:
            setattr(config, field, value)
    if args.verify_only:
        config.verify_only = True
    if args.skip_warmup:
        config.skip_warmup = True

    if not 0.0 <= config.delete_ratio <= 1.0:
        logging.error("--delete-ratio must be within [0, 1], got %s", config.delete_ratio)
        return 2

    log_dir = args.log_dir or os.path.join(os.path.dirname(__file__), "logs")
    setup_logging(config, log_dir if not config.verify_only else None)

    logging.info("=" * 70)
    logging.info("KD-TREE BENCHMARKS")
    logging.info("=" * 70)

    if config.verify_only:
        logging.info("Mode: VERIFY-ONLY (correctness checks, no timing)")
    else:
        logging.info("Mode: PERFORMANCE (timed measurements)")

    runner = BenchmarkRunner(config)
    overall_start = time.perf_counter()

    for size in config.sizes:
        for dim in config.dims:
            logging.info("")
            logging.info("=" * 70)
            logging.info(f"BENCHMARK: n={size}, K={dim}, repetitions={config.repetitions}")
            logging.info("=" * 70)

            run_start = time.perf_counter()
            results, metadata = runner.run_benchmark(
                size=size,
                dim=dim,
                repetitions=config.repetitions
            )
            run_elapsed = time.perf_counter() - run_start

            if not config.verify_only:
                runner.aggregate_and_report(results, metadata)

            logging.info("")
            logging.info(f"Execution time: {run_elapsed:.3f} seconds")

    overall_elapsed = time.perf_counter() - overall_start

    logging.info("")
    logging.info("=" * 70)
    logging.info(f"TOTAL EXECUTION TIME: {overall_elapsed:.3f} seconds")
    logging.info("=" * 70)

    return 0


if __name__ == "__main__":
    sys.exit(main())
