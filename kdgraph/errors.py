"""Error kinds raised by index construction and the edge queries."""


class KDGraphError(Exception):
    """Base exception for kdgraph operations."""

    pass


class InvalidArgumentError(KDGraphError, ValueError):
    """Malformed shape, non-positive dimension/leaf size or empty mandatory input."""

    pass


class DimensionMismatchError(KDGraphError, ValueError):
    """Source and target points have a different number of coordinates."""

    pass


class DTypeMismatchError(KDGraphError, ValueError):
    """Source and target points use different floating point precisions."""

    pass


class EmptyInputError(KDGraphError, ValueError):
    """A point set that needs at least one point is empty."""

    pass


class NoEdgesFoundError(KDGraphError, ValueError):
    """A radius query matched no pairs at all."""

    pass
