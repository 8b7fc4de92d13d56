from __future__ import annotations

from typing import Any

import numpy as np

from kdgraph import config as kd_config
from kdgraph.errors import DimensionMismatchError, DTypeMismatchError, InvalidArgumentError

SUPPORTED_FLOATS = (np.dtype(np.float32), np.dtype(np.float64))


def _coerce_dtype(arr: np.ndarray, *, name: str) -> np.ndarray:
    if arr.dtype in SUPPORTED_FLOATS:
        return arr
    if arr.dtype.kind in "biu":
        return arr.astype(kd_config.runtime_config().default_float)
    raise InvalidArgumentError(
        f"{name} must hold float32 or float64 coordinates, got dtype {arr.dtype}"
    )


def as_point_array(points: Any, dimension: int | None = None, *, name: str = "points") -> np.ndarray:
    """Normalise ``points`` into a contiguous ``(N, D)`` float array.

    ``points`` is either a flat row-major buffer of length ``N * dimension``
    or an array already shaped ``(N, D)``. Flat buffers require ``dimension``.
    The result may share memory with the input; callers that keep it must
    copy.
    """

    if dimension is not None and int(dimension) < 1:
        raise InvalidArgumentError(f"dimension must be positive, got {dimension}")

    arr = np.asarray(points)
    if arr.dtype == object:
        raise InvalidArgumentError(f"{name} must be a numeric array")
    arr = _coerce_dtype(arr, name=name)

    if arr.ndim == 1:
        if dimension is None:
            raise InvalidArgumentError(
                f"{name} is a flat buffer; an explicit dimension is required"
            )
        dim = int(dimension)
        if arr.shape[0] % dim != 0:
            raise InvalidArgumentError(
                f"length of {name} ({arr.shape[0]}) must be a multiple of the dimension ({dim})"
            )
        arr = arr.reshape(arr.shape[0] // dim, dim)
    elif arr.ndim == 2:
        if arr.shape[1] == 0:
            raise InvalidArgumentError(f"{name} must have at least one coordinate per point")
        if dimension is not None and arr.shape[1] != int(dimension):
            raise InvalidArgumentError(
                f"{name} has {arr.shape[1]} coordinates per point but dimension={dimension}"
            )
    else:
        raise InvalidArgumentError(
            f"{name} must be a flat buffer or a 2D (N, D) array, got {arr.ndim}D"
        )

    if arr.size and not np.isfinite(arr).all():
        raise InvalidArgumentError(f"{name} contains NaN or infinite coordinates")
    return np.ascontiguousarray(arr)


def as_query_array(
    points: Any,
    *,
    dimension: int | None,
    expected_dimension: int,
    expected_dtype: np.dtype,
    name: str,
) -> np.ndarray:
    """Normalise query points and check them against an index.

    A flat buffer without an explicit ``dimension`` is read with the index's
    dimension.
    """

    if dimension is not None and int(dimension) != expected_dimension:
        raise DimensionMismatchError(
            f"dimension of {name} ({dimension}) must match the index dimension ({expected_dimension})"
        )
    raw = np.asarray(points)
    if raw.ndim == 1 and dimension is None and raw.shape[0] % expected_dimension != 0:
        raise DimensionMismatchError(
            f"length of {name} ({raw.shape[0]}) is not a multiple of the index dimension "
            f"({expected_dimension})"
        )
    if raw.ndim == 2 and raw.shape[0] > 0 and raw.shape[1] != expected_dimension:
        raise DimensionMismatchError(
            f"dimension of {name} ({raw.shape[1]}) must match the index dimension ({expected_dimension})"
        )
    if raw.dtype.kind == "f" and raw.dtype in SUPPORTED_FLOATS and raw.dtype != expected_dtype:
        raise DTypeMismatchError(
            f"dtype of {name} ({raw.dtype}) must match the index dtype ({expected_dtype})"
        )
    if raw.ndim == 2 and raw.shape[0] == 0:
        raw = raw.reshape(0, expected_dimension)
    arr = as_point_array(raw, expected_dimension, name=name)
    if arr.dtype != expected_dtype:
        arr = arr.astype(expected_dtype)
    return arr
