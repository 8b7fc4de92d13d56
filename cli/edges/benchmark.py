from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from kdgraph import EdgeList, KDTree, build_kdtree, nearest_edges, radius_edges


@dataclass(frozen=True)
class EdgeBenchmarkResult:
    query: str
    build_seconds: float
    query_seconds: float
    source_points: int
    target_points: int
    edges: int
    tree_nodes: int
    tree_depth: int

    @property
    def points_per_second(self) -> float:
        queried = self.source_points if self.query == "nearest" else self.target_points
        return queried / self.query_seconds if self.query_seconds > 0 else float("inf")


def _timed_build(points: np.ndarray, *, leaf_size: int) -> Tuple[KDTree, float]:
    start = time.perf_counter()
    tree = build_kdtree(points, leaf_size=leaf_size)
    return tree, time.perf_counter() - start


def benchmark_radius_edges(
    source: np.ndarray,
    target: np.ndarray,
    *,
    radius: float,
    leaf_size: int,
) -> Tuple[EdgeList, EdgeBenchmarkResult]:
    tree, build_seconds = _timed_build(source, leaf_size=leaf_size)
    start = time.perf_counter()
    edges = radius_edges(tree, target, radius)
    query_seconds = time.perf_counter() - start
    return edges, EdgeBenchmarkResult(
        query="radius",
        build_seconds=build_seconds,
        query_seconds=query_seconds,
        source_points=int(source.shape[0]),
        target_points=int(target.shape[0]),
        edges=edges.num_edges,
        tree_nodes=tree.num_nodes,
        tree_depth=tree.depth,
    )


def benchmark_nearest_edges(
    source: np.ndarray,
    target: np.ndarray,
    *,
    leaf_size: int,
) -> Tuple[EdgeList, EdgeBenchmarkResult]:
    tree, build_seconds = _timed_build(target, leaf_size=leaf_size)
    start = time.perf_counter()
    edges = nearest_edges(tree, source)
    query_seconds = time.perf_counter() - start
    return edges, EdgeBenchmarkResult(
        query="nearest",
        build_seconds=build_seconds,
        query_seconds=query_seconds,
        source_points=int(source.shape[0]),
        target_points=int(target.shape[0]),
        edges=edges.num_edges,
        tree_nodes=tree.num_nodes,
        tree_depth=tree.depth,
    )
