from .nearest import nearest_edges, nearest_graph
from .radius import radius_edges, radius_graph

__all__ = [
    "nearest_edges",
    "nearest_graph",
    "radius_edges",
    "radius_graph",
]
