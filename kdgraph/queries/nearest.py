from __future__ import annotations

import math
from typing import Any, List, Tuple

import numpy as np

from kdgraph import config as kd_config
from kdgraph.core.edges import EdgeList
from kdgraph.core.kdtree import KDNode, KDTree, build_kdtree
from kdgraph.core.points import as_point_array, as_query_array
from kdgraph.diagnostics import log_operation
from kdgraph.errors import EmptyInputError
from kdgraph.logging import get_logger
from kdgraph.queries._nearest_numba import (
    NUMBA_NEAREST_AVAILABLE,
    materialise_tree_view_cached,
    nearest_positions_numba,
)

LOGGER = get_logger("queries.nearest")

_DEFAULT_GRAPH_LEAF_SIZE = 16


def _nearest_position(tree: KDTree, query: np.ndarray) -> int:
    """Branch-and-bound descent for one query; returns a row of ``tree.points``.

    The child on the query's side of the split is searched first. The other
    child is only searched if the splitting plane is strictly closer than the
    best match so far. Exact ties keep the first row seen.
    """

    best_pos = -1
    best_d2 = math.inf
    # (node, squared distance from the query to the plane bounding that node)
    stack: List[Tuple[KDNode, float]] = [(tree.root, 0.0)]
    while stack:
        node, plane_d2 = stack.pop()
        if plane_d2 >= best_d2:
            continue
        if node.is_leaf:
            diff = tree.points[node.start:node.end] - query
            dist2 = np.einsum("ij,ij->i", diff, diff)
            local = int(np.argmin(dist2))
            if dist2[local] < best_d2:
                best_d2 = float(dist2[local])
                best_pos = node.start + local
            continue
        offset = query[node.split_axis] - node.split_value
        if offset < 0:
            near, far = node.left, node.right
        else:
            near, far = node.right, node.left
        stack.append((far, float(offset * offset)))
        stack.append((near, 0.0))
    return best_pos


def _nearest_positions_python(tree: KDTree, queries: np.ndarray) -> np.ndarray:
    positions = np.empty(queries.shape[0], dtype=np.int64)
    for i, query in enumerate(queries):
        positions[i] = _nearest_position(tree, query)
    return positions


def nearest_edges(
    index: KDTree,
    source: Any,
    *,
    dimension: int | None = None,
) -> EdgeList:
    """Connect every source point to its closest point in ``index``.

    ``index`` is built over the *target* points. The result holds exactly one
    edge per source point: ``sources[i] == i`` and ``targets[i]`` is the
    original index of the nearest target point.

    Raises
    ------
    EmptyInputError
        When ``source`` holds no points.
    DimensionMismatchError, DTypeMismatchError
        When ``source`` is incompatible with ``index``.
    """

    with log_operation(LOGGER, "nearest_edges") as op_log:
        return _nearest_edges_impl(op_log, index, source, dimension)


def _nearest_edges_impl(
    op_log: Any,
    index: KDTree,
    source: Any,
    dimension: int | None,
) -> EdgeList:
    queries = as_query_array(
        source,
        dimension=dimension,
        expected_dimension=index.dimension,
        expected_dtype=index.dtype,
        name="source",
    )
    num_queries = int(queries.shape[0])
    if num_queries == 0:
        raise EmptyInputError("nearest_edges requires at least one source point")

    runtime = kd_config.runtime_config()
    use_numba = runtime.enable_numba and NUMBA_NEAREST_AVAILABLE
    if use_numba:
        view = materialise_tree_view_cached(index)
        positions = nearest_positions_numba(view, queries)
    else:
        positions = _nearest_positions_python(index, queries)

    if np.any(positions < 0):
        raise RuntimeError("nearest search finished without a match for some source points")
    edges = EdgeList(np.arange(num_queries, dtype=np.int64), index.order[positions])
    if edges.num_edges != num_queries:
        raise RuntimeError(
            f"number of edges ({edges.num_edges}) != number of source points ({num_queries})"
        )

    if op_log is not None:
        op_log.add_metadata(
            source_points=num_queries,
            target_points=index.num_points,
            engine="numba" if use_numba else "python",
        )
    return edges


def nearest_graph(
    source: Any,
    target: Any,
    *,
    dimension: int | None = None,
    leaf_size: int = _DEFAULT_GRAPH_LEAF_SIZE,
) -> EdgeList:
    """Index ``target`` and connect each ``source`` point to its nearest target."""

    source_size = np.asarray(source).size
    target_size = np.asarray(target).size
    if source_size == 0 or target_size == 0:
        raise EmptyInputError(
            f"nearest edges source ({source_size} values) or "
            f"target ({target_size} values) are empty"
        )
    source_arr = as_point_array(source, dimension, name="source")
    target_arr = as_point_array(target, dimension, name="target")
    index = build_kdtree(target_arr, leaf_size=leaf_size)
    return nearest_edges(index, source_arr)
