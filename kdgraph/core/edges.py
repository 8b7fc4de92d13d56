from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Tuple

import numpy as np

from kdgraph.errors import InvalidArgumentError


@dataclass(frozen=True, eq=False)
class EdgeList:
    """Pairs ``(sources[i], targets[i])`` of indices into the original point sets."""

    sources: np.ndarray
    targets: np.ndarray

    def __post_init__(self) -> None:
        sources = np.asarray(self.sources, dtype=np.int64)
        targets = np.asarray(self.targets, dtype=np.int64)
        if sources.ndim != 1 or targets.ndim != 1:
            raise InvalidArgumentError("edge sources and targets must be 1-D")
        if sources.shape[0] != targets.shape[0]:
            raise RuntimeError(
                f"edges number of source indices ({sources.shape[0]}) different from "
                f"the number of target indices ({targets.shape[0]})"
            )
        sources.setflags(write=False)
        targets.setflags(write=False)
        object.__setattr__(self, "sources", sources)
        object.__setattr__(self, "targets", targets)

    @classmethod
    def empty(cls) -> "EdgeList":
        return cls(np.empty(0, dtype=np.int64), np.empty(0, dtype=np.int64))

    @classmethod
    def from_array(cls, edges: Any) -> "EdgeList":
        """Wrap a ``[2, numEdges]`` integer table (row 0 sources, row 1 targets)."""

        if isinstance(edges, EdgeList):
            return edges
        arr = np.asarray(edges)
        if arr.size == 0 and arr.ndim <= 2:
            return cls.empty()
        if arr.ndim != 2 or arr.shape[0] != 2:
            raise InvalidArgumentError(
                f"invalid shape for edges: got {arr.shape}, wanted (2, numEdges)"
            )
        if arr.dtype.kind not in "iu":
            raise InvalidArgumentError(f"invalid dtype for edges: got {arr.dtype}, wanted integers")
        return cls(arr[0], arr[1])

    @property
    def num_edges(self) -> int:
        return int(self.sources.shape[0])

    def __len__(self) -> int:
        return self.num_edges

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        return zip(self.sources.tolist(), self.targets.tolist())

    def as_array(self, dtype: Any = np.int32) -> np.ndarray:
        """Return the ``[2, numEdges]`` table."""

        return np.stack((self.sources, self.targets), axis=0).astype(dtype, copy=False)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EdgeList):
            return NotImplemented
        return np.array_equal(self.sources, other.sources) and np.array_equal(
            self.targets, other.targets
        )

    __hash__ = None  # type: ignore[assignment]


def sort_edges_by_source(edges: Any) -> EdgeList:
    """Return ``edges`` ordered by source index, then by target index."""

    edge_list = EdgeList.from_array(edges)
    permutation = np.lexsort((edge_list.targets, edge_list.sources))
    return EdgeList(edge_list.sources[permutation], edge_list.targets[permutation])


def union_edges(*inputs: Any) -> EdgeList:
    """Combine edge lists, dropping duplicate pairs.

    ``None`` and empty inputs are skipped. The result is sorted by
    ``(source, target)``.
    """

    if not inputs:
        raise InvalidArgumentError("no input edges provided")

    stacked = [EdgeList.from_array(edges) for edges in inputs if edges is not None]
    stacked = [edges for edges in stacked if edges.num_edges]
    if not stacked:
        return EdgeList.empty()

    table = np.concatenate([edges.as_array(np.int64) for edges in stacked], axis=1)
    unique = np.unique(table, axis=1)
    return EdgeList(unique[0], unique[1])
