"""
mdsub/errors.py

Exception types raised by geometry generation and component assembly.

Every error is raised synchronously when a shape, lattice or component is
constructed or generated.  Iterating over the atoms of a finished component
never raises.

Hierarchy
---------
    GeometryError
        InvalidParameterError        (also a ValueError)
        EmptyResultError             (also a RuntimeError)
            UnderpopulatedError
        UnsupportedCombinationError  (also a TypeError)
"""

from __future__ import annotations

import math


class GeometryError(Exception):
    """Base class for all mdsub geometry errors."""


class InvalidParameterError(GeometryError, ValueError):
    """
    A numeric parameter is outside its domain.

    Raised for non-positive or non-finite sizes, radii or densities, negative
    counts, and lattice angles that are not strictly between 0 and 180
    degrees.  Values are never clamped silently.
    """


class EmptyResultError(GeometryError, RuntimeError):
    """A generation step that should have produced points produced none."""


class UnderpopulatedError(EmptyResultError):
    """
    A Poisson-disc sample fell well short of its target density.

    The generated points are attached so that callers can decide whether to
    use them anyway or retry with other parameters.

    Attributes
    ----------
    points:
        The PointSet that was produced.
    expected:
        The number of points implied by density × area.
    """

    def __init__(self, message: str, points, expected: float) -> None:
        super().__init__(message)
        self.points = points
        self.expected = expected


class UnsupportedCombinationError(GeometryError, TypeError):
    """A distribution was requested for a shape that cannot use it."""


def require_positive(name: str, value: float) -> float:
    """Return value as a float, raising InvalidParameterError unless 0 < value < inf."""
    value = float(value)
    if not (math.isfinite(value) and value > 0.0):
        raise InvalidParameterError(
            f"{name} must be positive and finite, got {value}."
        )
    return value


def require_count(name: str, value: int) -> int:
    """Return value as an int, raising InvalidParameterError unless it is >= 0."""
    if isinstance(value, bool) or not math.isfinite(value) or int(value) != value:
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}.")
    value = int(value)
    if value < 0:
        raise InvalidParameterError(f"{name} must be >= 0, got {value}.")
    return value
