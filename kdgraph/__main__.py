#!/usr/bin/env python
"""Quick-start guide for kdgraph library usage.

Run with: python -m kdgraph

This module intentionally avoids importing kdgraph internals to provide
a fast, clean startup for displaying help text.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                   KDGRAPH
        Static KD-tree with radius and nearest-neighbour edge queries
================================================================================

INSTALLATION
------------
    pip install kdgraph            # numpy + psutil
    pip install "kdgraph[numba]"   # parallel compiled nearest search
    pip install "kdgraph[cli]"     # benchmarking CLI (typer)

RADIUS EDGES
------------
    import numpy as np
    from kdgraph import build_kdtree, radius_edges

    source = np.random.rand(100_000, 2)
    target = np.random.rand(1_000, 2)

    index = build_kdtree(source, leaf_size=16)    # index the SOURCE set
    edges = radius_edges(index, target, radius=0.01)
    table = edges.as_array()                      # int32, shape (2, numEdges)

    # A radius that matches nothing raises kdgraph.NoEdgesFoundError.

NEAREST EDGES
-------------
    from kdgraph import nearest_edges

    index = build_kdtree(target)                  # index the TARGET set
    edges = nearest_edges(index, source)          # one edge per source point

ONE-SHOT HELPERS
----------------
    from kdgraph import nearest_graph, radius_graph

    edges = radius_graph(source, target, radius=0.01)
    edges = nearest_graph(source, target)

FLAT BUFFERS
------------
    flat = source.ravel()
    index = build_kdtree(flat, dimension=2)

POST-PROCESSING
---------------
    from kdgraph import sort_edges_by_source, union_edges

    merged = union_edges(edges_a, edges_b)        # deduplicated, sorted
    ordered = sort_edges_by_source(edges_a)

RUNTIME CONFIGURATION
---------------------
    KDGRAPH_PRECISION=float32|float64   dtype used for integer input
    KDGRAPH_LEAF_SIZE=16                default leaf size
    KDGRAPH_ENABLE_NUMBA=1              numba kernel for nearest queries
    KDGRAPH_ENABLE_DIAGNOSTICS=0        silence per-operation resource logs
    KDGRAPH_LOG_LEVEL=DEBUG

BENCHMARKING CLI
----------------
    python -m cli.edges --source-points 200000 --target-points 2000 radius --radius 0.05
    python -m cli.edges --source-points 100000 --baseline bruteforce nearest

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
