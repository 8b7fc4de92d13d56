from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List

import numpy as np

from kdgraph import EdgeList

_BRUTEFORCE_CHUNK = 1_024


def has_scipy_kdtree() -> bool:
    try:
        from scipy.spatial import cKDTree  # noqa: F401
    except ImportError:
        return False
    return True


@dataclass(frozen=True)
class BaselineComparison:
    name: str
    elapsed_seconds: float
    edges: int
    matches: bool


def _chunked_dist2(source: np.ndarray, target: np.ndarray):
    for start in range(0, source.shape[0], _BRUTEFORCE_CHUNK):
        block = source[start:start + _BRUTEFORCE_CHUNK]
        diff = block[:, None, :] - target[None, :, :]
        yield start, np.einsum("ijk,ijk->ij", diff, diff)


def _bruteforce_radius(source: np.ndarray, target: np.ndarray, radius: float) -> EdgeList:
    sources: List[np.ndarray] = []
    targets: List[np.ndarray] = []
    for start, dist2 in _chunked_dist2(source, target):
        rows, cols = np.nonzero(dist2 <= radius * radius)
        sources.append(rows + start)
        targets.append(cols)
    if not sources:
        return EdgeList.empty()
    return EdgeList(np.concatenate(sources), np.concatenate(targets))


def _bruteforce_nearest(source: np.ndarray, target: np.ndarray) -> EdgeList:
    best = np.empty(source.shape[0], dtype=np.int64)
    for start, dist2 in _chunked_dist2(source, target):
        best[start:start + dist2.shape[0]] = np.argmin(dist2, axis=1)
    return EdgeList(np.arange(source.shape[0], dtype=np.int64), best)


def _scipy_radius(source: np.ndarray, target: np.ndarray, radius: float) -> EdgeList:
    from scipy.spatial import cKDTree

    neighbours = cKDTree(target).query_ball_point(source, r=radius)
    counts = np.fromiter((len(hits) for hits in neighbours), dtype=np.int64, count=len(neighbours))
    sources = np.repeat(np.arange(source.shape[0], dtype=np.int64), counts)
    targets = np.fromiter(
        (idx for hits in neighbours for idx in hits), dtype=np.int64, count=int(counts.sum())
    )
    return EdgeList(sources, targets)


def _scipy_nearest(source: np.ndarray, target: np.ndarray) -> EdgeList:
    from scipy.spatial import cKDTree

    _, indices = cKDTree(target).query(source, k=1)
    return EdgeList(np.arange(source.shape[0], dtype=np.int64), indices)


def _timed(name: str, func, reference: EdgeList) -> BaselineComparison:
    start = time.perf_counter()
    edges = func()
    elapsed = time.perf_counter() - start
    matches = set(edges) == set(reference)
    return BaselineComparison(
        name=name, elapsed_seconds=elapsed, edges=edges.num_edges, matches=matches
    )


def run_baseline_comparisons(
    query: str,
    source: np.ndarray,
    target: np.ndarray,
    reference: EdgeList,
    *,
    mode: str,
    radius: float | None = None,
) -> List[BaselineComparison]:
    """Re-run ``query`` with baseline engines and check them against ``reference``."""

    results: List[BaselineComparison] = []
    if query == "radius":
        if radius is None:
            raise ValueError("radius baselines require a radius.")
        if mode in ("bruteforce", "all"):
            results.append(
                _timed(
                    "bruteforce",
                    lambda: _bruteforce_radius(source, target, radius),
                    reference,
                )
            )
        if mode in ("scipy", "all"):
            if not has_scipy_kdtree():
                raise RuntimeError("scipy baseline requested but scipy is not installed.")
            results.append(
                _timed(
                    "scipy",
                    lambda: _scipy_radius(source, target, radius),
                    reference,
                )
            )
    else:
        if mode in ("bruteforce", "all"):
            results.append(
                _timed(
                    "bruteforce",
                    lambda: _bruteforce_nearest(source, target),
                    reference,
                )
            )
        if mode in ("scipy", "all"):
            if not has_scipy_kdtree():
                raise RuntimeError("scipy baseline requested but scipy is not installed.")
            results.append(
                _timed(
                    "scipy",
                    lambda: _scipy_nearest(source, target),
                    reference,
                )
            )
    return results


__all__ = ["BaselineComparison", "has_scipy_kdtree", "run_baseline_comparisons"]
