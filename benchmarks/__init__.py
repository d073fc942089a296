"""
Benchmarks package for KD-trees.

This package contains timed benchmarks of:
- KDTree construction by sequential inserts
- n-nearest-neighbour queries
- Range queries, optionally after soft deletes

Data is generated from deterministic seeds so runs are reproducible, and
every run can be cross-checked against a numpy brute force.
"""

from .config import BenchmarkConfig, BenchmarkMetadata
from .runner import BenchmarkResult, BenchmarkRunner

__all__ = ["BenchmarkConfig", "BenchmarkMetadata", "BenchmarkResult", "BenchmarkRunner"]
