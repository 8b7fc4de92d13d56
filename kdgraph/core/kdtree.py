from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Tuple

import numpy as np

from kdgraph import config as kd_config
from kdgraph.core.bbox import bounding_box
from kdgraph.core.points import as_point_array
from kdgraph.diagnostics import log_operation
from kdgraph.errors import InvalidArgumentError
from kdgraph.logging import get_logger

LOGGER = get_logger("core.kdtree")


@dataclass(eq=False)
class KDNode:
    """One node of a :class:`KDTree`.

    The node owns rows ``[start, end)`` of the tree's ``points``/``order``.
    ``box_min``/``box_max`` is the tight bounding box of those rows. Internal
    nodes have both children plus ``split_axis``/``split_value``: rows under
    ``left`` have ``coord[split_axis] < split_value`` and rows under ``right``
    have ``coord[split_axis] >= split_value``. Leaves have neither.
    """

    box_min: np.ndarray
    box_max: np.ndarray
    start: int
    end: int
    left: "KDNode | None" = None
    right: "KDNode | None" = None
    split_axis: int | None = None
    split_value: Any = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def num_points(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, eq=False)
class KDTree:
    """Static KD-tree over a fixed-dimension point set.

    ``points`` is a private, read-only copy of the input reordered so that
    every node covers a contiguous block of rows. ``order[i]`` is the index
    in the caller's original point set of row ``i``. Use :func:`build_kdtree`
    to construct instances; a built tree is never mutated and may be shared
    between threads.
    """

    points: np.ndarray
    order: np.ndarray
    root: KDNode
    leaf_size: int
    num_nodes: int
    depth: int

    @property
    def num_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def dimension(self) -> int:
        return int(self.points.shape[1])

    @property
    def dtype(self) -> np.dtype:
        return self.points.dtype

    def iter_nodes(self) -> Iterator[KDNode]:
        """Yield every node in pre-order (node, left subtree, right subtree)."""

        stack: List[KDNode] = [self.root]
        while stack:
            node = stack.pop()
            yield node
            if not node.is_leaf:
                stack.append(node.right)
                stack.append(node.left)

    def leaves(self) -> List[KDNode]:
        return [node for node in self.iter_nodes() if node.is_leaf]

    def original_points(self) -> np.ndarray:
        """Reassemble the points in the caller's original order."""

        restored = np.empty_like(self.points)
        restored[self.order] = self.points
        return restored

    def describe(self) -> str:
        lines = [
            f"KDTree (num_points={self.num_points}, dimension={self.dimension}, "
            f"dtype={self.dtype}, leaf_size={self.leaf_size}, nodes={self.num_nodes}, "
            f"depth={self.depth}):",
            "-" * 43,
        ]
        stack: List[Tuple[KDNode, str, int]] = [(self.root, "Root", 0)]
        while stack:
            node, label, level = stack.pop()
            indent = "  " * level
            box = f"{node.box_min.tolist()} - {node.box_max.tolist()}"
            if not node.is_leaf:
                lines.append(
                    f"{indent}{label} node (axis: {node.split_axis}, "
                    f"value: {float(node.split_value):.2f}, bounding-box={box}):"
                )
                stack.append((node.right, "Right", level + 1))
                stack.append((node.left, "Left", level + 1))
                continue
            lines.append(f"{indent}{label} leaf ({node.num_points} points):")
            for row in range(node.start, node.end):
                coords = ", ".join(f"{value:.2g}" for value in self.points[row].tolist())
                lines.append(f"{indent}  [{coords}] (original index: {int(self.order[row])})")
        lines.append("-" * 43)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()


def _partition(points: np.ndarray, order: np.ndarray, leaf_size: int) -> Tuple[KDNode, int, int]:
    """Split ``points``/``order`` in place and return ``(root, num_nodes, depth)``."""

    root: KDNode | None = None
    num_nodes = 0
    depth = 0
    # (start, end, parent, is_right_child, level)
    stack: List[Tuple[int, int, KDNode | None, bool, int]] = [
        (0, points.shape[0], None, False, 0)
    ]
    while stack:
        start, end, parent, is_right, level = stack.pop()
        block = points[start:end]
        box_min, box_max = bounding_box(block)
        box_min.setflags(write=False)
        box_max.setflags(write=False)
        node = KDNode(box_min=box_min, box_max=box_max, start=start, end=end)
        num_nodes += 1
        depth = max(depth, level)
        if parent is None:
            root = node
        elif is_right:
            parent.right = node
        else:
            parent.left = node

        count = end - start
        if count <= leaf_size:
            continue

        extents = box_max - box_min
        axis = int(np.argmax(extents))
        if extents[axis] == 0:
            # Every point in the block is identical.
            continue

        permutation = np.argsort(block[:, axis], kind="stable")
        points[start:end] = block[permutation]
        order[start:end] = order[start:end][permutation]

        column = points[start:end, axis]
        midpoint = count // 2
        split_value = column[midpoint]
        # First sorted position holding split_value, so the left side is strictly smaller.
        split = start + int(np.searchsorted(column[:midpoint], split_value, side="left"))
        if split == start:
            continue

        node.split_axis = axis
        node.split_value = split_value
        stack.append((split, end, node, True, level + 1))
        stack.append((start, split, node, False, level + 1))

    assert root is not None
    return root, num_nodes, depth


def build_kdtree(
    points: Any,
    dimension: int | None = None,
    *,
    leaf_size: int | None = None,
) -> KDTree:
    """Build a KD-tree over ``points``.

    Parameters
    ----------
    points:
        Flat row-major buffer of ``N * dimension`` coordinates, or an
        ``(N, D)`` array. float32 and float64 are kept as-is; integer input
        is converted to the configured precision. The input is copied and
        never modified.
    dimension:
        Coordinates per point. Required for flat buffers, checked otherwise.
    leaf_size:
        Nodes holding at most this many points become leaves. Defaults to
        ``KDGRAPH_LEAF_SIZE`` (16).

    Splits are taken on the axis with the largest extent, at the median,
    shifted down past duplicates of the median value.
    """

    with log_operation(LOGGER, "kdtree_build") as op_log:
        return _build_kdtree_impl(op_log, points, dimension, leaf_size)


def _build_kdtree_impl(
    op_log: Any,
    points: Any,
    dimension: int | None,
    leaf_size: int | None,
) -> KDTree:
    runtime = kd_config.runtime_config()
    leaf = runtime.leaf_size if leaf_size is None else int(leaf_size)
    if leaf < 1:
        raise InvalidArgumentError(f"leaf_size must be at least 1, got {leaf_size}")

    arr = as_point_array(points, dimension)
    if arr.shape[0] == 0:
        raise InvalidArgumentError("cannot build a KD-tree from an empty point set")
    LOGGER.debug(
        "build_kdtree(dtype=%s, dimension=%d, leaf_size=%d)", arr.dtype, arr.shape[1], leaf
    )

    data = np.array(arr, dtype=arr.dtype, copy=True, order="C")
    order = np.arange(data.shape[0], dtype=np.int64)
    root, num_nodes, depth = _partition(data, order, leaf)
    data.setflags(write=False)
    order.setflags(write=False)

    tree = KDTree(
        points=data,
        order=order,
        root=root,
        leaf_size=leaf,
        num_nodes=num_nodes,
        depth=depth,
    )
    if op_log is not None:
        op_log.add_metadata(
            points=tree.num_points,
            dimension=tree.dimension,
            dtype=str(tree.dtype),
            leaf_size=leaf,
            nodes=num_nodes,
            depth=depth,
        )
    return tree
