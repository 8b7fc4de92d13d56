"""kdgraph: static KD-tree with radius and nearest-neighbour edge queries.

Quick Start
-----------
>>> import numpy as np
>>> from kdgraph import build_kdtree, radius_edges, nearest_edges
>>>
>>> source = np.random.rand(100_000, 3)
>>> target = np.random.rand(5_000, 3)
>>>
>>> # All (source, target) pairs within 0.05 of each other
>>> index = build_kdtree(source)
>>> edges = radius_edges(index, target, radius=0.05)
>>> edges.as_array().shape  # (2, numEdges)
>>>
>>> # Closest target for every source point (index built over the targets)
>>> index = build_kdtree(target)
>>> edges = nearest_edges(index, source)

Flat row-major buffers are accepted too: ``build_kdtree(flat, dimension=3)``.

Classes
-------
KDTree : Immutable KD-tree; build with :func:`build_kdtree`.
EdgeList : Query result, two equal-length index arrays.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("kdgraph")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.0.1"

from .core import (
    EdgeList,
    KDNode,
    KDTree,
    bounding_box,
    box_distance2,
    build_kdtree,
    intersects_radius,
    sort_edges_by_source,
    union_edges,
)
from .errors import (
    DimensionMismatchError,
    DTypeMismatchError,
    EmptyInputError,
    InvalidArgumentError,
    KDGraphError,
    NoEdgesFoundError,
)
from .queries import nearest_edges, nearest_graph, radius_edges, radius_graph

__all__ = [
    "__version__",
    "build_kdtree",
    "KDTree",
    "KDNode",
    "radius_edges",
    "radius_graph",
    "nearest_edges",
    "nearest_graph",
    "EdgeList",
    "union_edges",
    "sort_edges_by_source",
    "bounding_box",
    "box_distance2",
    "intersects_radius",
    "KDGraphError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "DTypeMismatchError",
    "EmptyInputError",
    "NoEdgesFoundError",
]
