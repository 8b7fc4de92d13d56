"""KD-tree index, bounding box helpers and the edge list type."""

from .bbox import (
    bounding_box,
    box_distance2,
    box_distance2_many,
    intersects_radius,
    intersects_radius_many,
)
from .edges import EdgeList, sort_edges_by_source, union_edges
from .kdtree import KDNode, KDTree, build_kdtree
from .points import as_point_array

__all__ = [
    "EdgeList",
    "KDNode",
    "KDTree",
    "as_point_array",
    "bounding_box",
    "box_distance2",
    "box_distance2_many",
    "build_kdtree",
    "intersects_radius",
    "intersects_radius_many",
    "sort_edges_by_source",
    "union_edges",
]
