"""Axis-aligned bounding box helpers used for pruning tree traversals."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def bounding_box(points: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return the tight ``(min, max)`` corners of an ``(N, D)`` point block."""

    if points.ndim != 2 or points.shape[0] == 0:
        raise ValueError("bounding_box expects a non-empty (N, D) array.")
    return points.min(axis=0), points.max(axis=0)


def _axis_gaps(points: np.ndarray, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
    below = box_min - points
    above = points - box_max
    return np.maximum(np.maximum(below, above), 0)


def box_distance2(point: np.ndarray, box_min: np.ndarray, box_max: np.ndarray) -> float:
    """Squared distance from ``point`` to the closest point of the box.

    Zero when the point lies inside. Never larger than the squared distance
    to any point contained in the box, so it is safe to prune with.
    """

    gaps = _axis_gaps(np.asarray(point), box_min, box_max)
    return float(np.dot(gaps, gaps))


def box_distance2_many(points: np.ndarray, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
    """Vectorised :func:`box_distance2` over an ``(M, D)`` batch."""

    gaps = _axis_gaps(points, box_min, box_max)
    return np.einsum("ij,ij->i", gaps, gaps)


def intersects_radius(
    point: np.ndarray, box_min: np.ndarray, box_max: np.ndarray, radius: float
) -> bool:
    """Whether any point of the box lies within ``radius`` of ``point`` (inclusive)."""

    point = np.asarray(point)
    total = 0.0
    for axis in range(point.shape[0]):
        value = point[axis]
        if value < box_min[axis]:
            gap = box_min[axis] - value
        elif value > box_max[axis]:
            gap = value - box_max[axis]
        else:
            continue
        # One axis alone is already too far.
        if gap > radius:
            return False
        total += gap * gap
    return total <= radius * radius


def intersects_radius_many(
    points: np.ndarray, box_min: np.ndarray, box_max: np.ndarray, radius: float
) -> np.ndarray:
    """Boolean mask of the rows of ``points`` within ``radius`` of the box."""

    gaps = _axis_gaps(points, box_min, box_max)
    mask = ~(gaps > radius).any(axis=1)
    if mask.any():
        kept = gaps[mask]
        mask[mask] = np.einsum("ij,ij->i", kept, kept) <= radius * radius
    return mask
