from __future__ import annotations

from .app import EdgeCLIOptions, main, run_edges
from .baselines import BaselineComparison, run_baseline_comparisons
from .benchmark import EdgeBenchmarkResult, benchmark_nearest_edges, benchmark_radius_edges

__all__ = [
    "BaselineComparison",
    "EdgeBenchmarkResult",
    "EdgeCLIOptions",
    "benchmark_nearest_edges",
    "benchmark_radius_edges",
    "main",
    "run_baseline_comparisons",
    "run_edges",
]
