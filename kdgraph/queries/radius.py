from __future__ import annotations

import math
from typing import Any, List, Tuple

import numpy as np

from kdgraph.core.bbox import intersects_radius_many
from kdgraph.core.edges import EdgeList
from kdgraph.core.kdtree import KDNode, KDTree, build_kdtree
from kdgraph.core.points import as_query_array
from kdgraph.diagnostics import log_operation
from kdgraph.errors import EmptyInputError, InvalidArgumentError, NoEdgesFoundError
from kdgraph.logging import get_logger

LOGGER = get_logger("queries.radius")

_DEFAULT_GRAPH_LEAF_SIZE = 16
_LEAF_ROW_CHUNK = 256
_TARGET_CHUNK = 1_024


def _leaf_pairs(
    tree: KDTree,
    node: KDNode,
    target: np.ndarray,
    candidates: np.ndarray,
    radius2: float,
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """Brute-force the rows of a leaf against the surviving target points.

    Distances are computed in blocks of at most ``_LEAF_ROW_CHUNK`` rows by
    ``_TARGET_CHUNK`` targets.
    """

    sources: List[np.ndarray] = []
    targets: List[np.ndarray] = []
    for row_start in range(node.start, node.end, _LEAF_ROW_CHUNK):
        row_end = min(row_start + _LEAF_ROW_CHUNK, node.end)
        block = tree.points[row_start:row_end]
        for col_start in range(0, candidates.shape[0], _TARGET_CHUNK):
            chunk = candidates[col_start:col_start + _TARGET_CHUNK]
            diff = block[:, None, :] - target[chunk][None, :, :]
            dist2 = np.einsum("ijk,ijk->ij", diff, diff)
            rows, cols = np.nonzero(dist2 <= radius2)
            if rows.size:
                sources.append(tree.order[row_start + rows])
                targets.append(chunk[cols])
    return sources, targets


def _collect_radius_pairs(
    tree: KDTree, target: np.ndarray, radius: float
) -> Tuple[List[np.ndarray], List[np.ndarray], int]:
    radius2 = radius * radius
    sources: List[np.ndarray] = []
    targets: List[np.ndarray] = []
    visited = 0

    stack: List[Tuple[KDNode, np.ndarray]] = [
        (tree.root, np.arange(target.shape[0], dtype=np.int64))
    ]
    while stack:
        node, candidates = stack.pop()
        visited += 1
        # Targets farther than radius from this box cannot match anything below it.
        keep = intersects_radius_many(target[candidates], node.box_min, node.box_max, radius)
        candidates = candidates[keep]
        if candidates.size == 0:
            continue
        if node.is_leaf:
            leaf_sources, leaf_targets = _leaf_pairs(tree, node, target, candidates, radius2)
            sources.extend(leaf_sources)
            targets.extend(leaf_targets)
            continue
        stack.append((node.right, candidates))
        stack.append((node.left, candidates))
    return sources, targets, visited


def radius_edges(
    index: KDTree,
    target: Any,
    radius: float,
    *,
    dimension: int | None = None,
) -> EdgeList:
    """Return every (source, target) pair at Euclidean distance ``<= radius``.

    ``index`` is built over the source points; ``target`` is a flat buffer
    or ``(M, D)`` array with the same dimension and precision. Source indices
    are translated back to the order the source points were given in.

    Raises
    ------
    DimensionMismatchError, DTypeMismatchError
        When ``target`` is incompatible with ``index``.
    InvalidArgumentError
        When ``radius`` is not a positive finite number.
    EmptyInputError
        When ``target`` holds no points.
    NoEdgesFoundError
        When no pair is within ``radius``.
    """

    with log_operation(LOGGER, "radius_edges") as op_log:
        return _radius_edges_impl(op_log, index, target, radius, dimension)


def _radius_edges_impl(
    op_log: Any,
    index: KDTree,
    target: Any,
    radius: float,
    dimension: int | None,
) -> EdgeList:
    target_arr = as_query_array(
        target,
        dimension=dimension,
        expected_dimension=index.dimension,
        expected_dtype=index.dtype,
        name="target",
    )
    radius = float(radius)
    if not math.isfinite(radius) or radius <= 0:
        raise InvalidArgumentError(f"radius must be a positive finite number, got {radius}")
    if target_arr.shape[0] == 0:
        raise EmptyInputError("radius_edges requires at least one target point")

    sources, targets, visited = _collect_radius_pairs(index, target_arr, radius)
    if sources:
        edges = EdgeList(np.concatenate(sources), np.concatenate(targets))
    else:
        edges = EdgeList.empty()

    if op_log is not None:
        op_log.add_metadata(
            source_points=index.num_points,
            target_points=int(target_arr.shape[0]),
            radius=radius,
            nodes_visited=visited,
            edges=edges.num_edges,
        )
    if edges.num_edges == 0:
        raise NoEdgesFoundError(f"no edges found with radius set to {radius:g}")
    return edges


def radius_graph(
    source: Any,
    target: Any,
    radius: float,
    *,
    dimension: int | None = None,
    leaf_size: int = _DEFAULT_GRAPH_LEAF_SIZE,
) -> EdgeList:
    """Index ``source`` and return its radius edges to ``target``."""

    index = build_kdtree(source, dimension, leaf_size=leaf_size)
    return radius_edges(index, target, radius, dimension=dimension)
