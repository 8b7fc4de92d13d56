from __future__ import annotations

import weakref
from dataclasses import dataclass
from typing import List

import numpy as np

try:  # pragma: no cover - optional dependency
    import numba as nb

    NUMBA_NEAREST_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    nb = None  # type: ignore
    NUMBA_NEAREST_AVAILABLE = False

from kdgraph.core.kdtree import KDNode, KDTree

I64 = np.int64


@dataclass(frozen=True)
class KDTreeView:
    """Flat node table of a :class:`KDTree` laid out for compiled kernels.

    Node ``0`` is the root. Leaves carry ``split_axis == -1`` and
    ``left == right == -1``.
    """

    points: np.ndarray
    starts: np.ndarray
    ends: np.ndarray
    left: np.ndarray
    right: np.ndarray
    split_axis: np.ndarray
    split_value: np.ndarray
    stack_capacity: int


_VIEW_CACHE: "weakref.WeakKeyDictionary[KDTree, KDTreeView]" = weakref.WeakKeyDictionary()


def materialise_tree_view(tree: KDTree) -> KDTreeView:
    num_nodes = tree.num_nodes
    starts = np.empty(num_nodes, dtype=I64)
    ends = np.empty(num_nodes, dtype=I64)
    left = np.full(num_nodes, -1, dtype=I64)
    right = np.full(num_nodes, -1, dtype=I64)
    split_axis = np.full(num_nodes, -1, dtype=I64)
    split_value = np.zeros(num_nodes, dtype=tree.dtype)

    ids = {}
    nodes: List[KDNode] = list(tree.iter_nodes())
    for position, node in enumerate(nodes):
        ids[id(node)] = position
    for position, node in enumerate(nodes):
        starts[position] = node.start
        ends[position] = node.end
        if node.is_leaf:
            continue
        left[position] = ids[id(node.left)]
        right[position] = ids[id(node.right)]
        split_axis[position] = node.split_axis
        split_value[position] = node.split_value

    return KDTreeView(
        points=tree.points,
        starts=starts,
        ends=ends,
        left=left,
        right=right,
        split_axis=split_axis,
        split_value=split_value,
        stack_capacity=tree.depth + 2,
    )


def materialise_tree_view_cached(tree: KDTree) -> KDTreeView:
    view = _VIEW_CACHE.get(tree)
    if view is None:
        view = materialise_tree_view(tree)
        _VIEW_CACHE[tree] = view
    return view


if NUMBA_NEAREST_AVAILABLE:

    @nb.njit(cache=True)
    def _nearest_single(
        query: np.ndarray,
        points: np.ndarray,
        starts: np.ndarray,
        ends: np.ndarray,
        left: np.ndarray,
        right: np.ndarray,
        split_axis: np.ndarray,
        split_value: np.ndarray,
        stack_nodes: np.ndarray,
        stack_plane: np.ndarray,
    ) -> int:
        dimension = points.shape[1]
        best_pos = -1
        best_d2 = np.inf
        stack_nodes[0] = 0
        stack_plane[0] = 0.0
        size = 1
        while size > 0:
            size -= 1
            node = stack_nodes[size]
            if stack_plane[size] >= best_d2:
                continue
            axis = split_axis[node]
            if axis < 0:
                for row in range(starts[node], ends[node]):
                    total = 0.0
                    for d in range(dimension):
                        diff = query[d] - points[row, d]
                        total += diff * diff
                    if total < best_d2:
                        best_d2 = total
                        best_pos = row
                continue
            offset = query[axis] - split_value[node]
            if offset < 0:
                near = left[node]
                far = right[node]
            else:
                near = right[node]
                far = left[node]
            stack_nodes[size] = far
            stack_plane[size] = offset * offset
            size += 1
            stack_nodes[size] = near
            stack_plane[size] = 0.0
            size += 1
        return best_pos

    @nb.njit(cache=True, parallel=True)
    def _nearest_batch(
        queries: np.ndarray,
        points: np.ndarray,
        starts: np.ndarray,
        ends: np.ndarray,
        left: np.ndarray,
        right: np.ndarray,
        split_axis: np.ndarray,
        split_value: np.ndarray,
        stack_capacity: int,
    ) -> np.ndarray:
        m = queries.shape[0]
        out = np.empty(m, dtype=np.int64)
        for i in nb.prange(m):
            stack_nodes = np.empty(stack_capacity, dtype=np.int64)
            stack_plane = np.empty(stack_capacity, dtype=np.float64)
            out[i] = _nearest_single(
                queries[i],
                points,
                starts,
                ends,
                left,
                right,
                split_axis,
                split_value,
                stack_nodes,
                stack_plane,
            )
        return out


def nearest_positions_numba(view: KDTreeView, queries: np.ndarray) -> np.ndarray:
    """Row in ``view.points`` of the nearest tree point for each query."""

    if not NUMBA_NEAREST_AVAILABLE:  # pragma: no cover
        raise RuntimeError("Numba nearest search requires numba to be installed.")
    return _nearest_batch(
        np.ascontiguousarray(queries),
        view.points,
        view.starts,
        view.ends,
        view.left,
        view.right,
        view.split_axis,
        view.split_value,
        view.stack_capacity,
    )
