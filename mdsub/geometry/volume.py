"""
mdsub/geometry/volume.py

Volume shapes, their containment predicates, and uniform interior fills.

The shapes form a closed set of frozen variants that share one capability
interface implemented as module-level functions:

    contains(shape, point)        -> bool
    volume(shape)                 -> float
    box_size(shape)               -> Coord
    box_corner(shape)             -> Coord
    fill(shape, spec, rng=...)    -> PointSet

Each function dispatches on the variant type.  There is no shape base class.

Local frames
------------
Cylinder    origin at the centre of the bottom cap; the axis runs along
            `alignment` from height 0 to `height`.
Cuboid      origin at the lower corner; the box spans [0, size] per axis.
Spheroid    origin at the centre.

Containment is evaluated after subtracting the origin and treats the
boundary as inside.  Filled points are relative to the origin.

Usage
-----
    from mdsub.geometry.volume import Cylinder, FillSpec, fill, contains

    cyl = Cylinder(radius=2.0, height=5.0)
    points = fill(cyl, FillSpec(count=100), seed=1)
    all(contains(cyl, p) for p in points)     # True
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Union

import numpy as np

from mdsub.errors import (
    EmptyResultError,
    InvalidParameterError,
    UnsupportedCombinationError,
    require_count,
    require_positive,
)
from mdsub.geometry.coord import Coord, Direction, PointSet, as_coord
from mdsub.geometry.rng import resolve_rng

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Fill specification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FillSpec:
    """
    How many points a volume fill produces.

    Exactly one of `count` (an explicit number of points) or `density`
    (points per unit volume) must be given.
    """

    count: int | None = None
    density: float | None = None

    def __post_init__(self) -> None:
        if (self.count is None) == (self.density is None):
            raise InvalidParameterError(
                "FillSpec takes exactly one of 'count' or 'density'."
            )
        if self.count is not None:
            object.__setattr__(self, "count", require_count("Fill count", self.count))
        else:
            object.__setattr__(
                self, "density", require_positive("Fill density", self.density)
            )

    def num_points(self, measure: float) -> int:
        """Number of points for a shape of the given volume (or area)."""
        if self.count is not None:
            return self.count
        # Round half away from zero; measure and density are both positive
        return int(math.floor(self.density * measure + 0.5))


# ---------------------------------------------------------------------------
# Shape variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Cylinder:
    """A solid cylinder of `radius` and `height` along `alignment`."""

    radius: float
    height: float
    alignment: Direction = Direction.Z
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        require_positive("Cylinder radius", self.radius)
        require_positive("Cylinder height", self.height)
        object.__setattr__(self, "alignment", Direction.parse(self.alignment))
        object.__setattr__(self, "origin", as_coord(self.origin))


@dataclass(frozen=True)
class Cuboid:
    """A solid rectangular box of `size` with its lower corner at `origin`."""

    size: Coord
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", as_coord(self.size))
        object.__setattr__(self, "origin", as_coord(self.origin))
        for axis, value in zip("xyz", self.size):
            require_positive(f"Cuboid size along {axis}", value)


@dataclass(frozen=True)
class Spheroid:
    """A solid sphere of `radius` centred on `origin`."""

    radius: float
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        require_positive("Spheroid radius", self.radius)
        object.__setattr__(self, "origin", as_coord(self.origin))


VolumeShape = Union[Cylinder, Cuboid, Spheroid]
VOLUME_SHAPES = (Cylinder, Cuboid, Spheroid)


def _unsupported(shape: object) -> UnsupportedCombinationError:
    return UnsupportedCombinationError(
        f"{type(shape).__name__} is not a volume shape; expected one of "
        f"{', '.join(t.__name__ for t in VOLUME_SHAPES)}."
    )


# ---------------------------------------------------------------------------
# Shared capability interface
# ---------------------------------------------------------------------------

def contains(shape: VolumeShape, point: Coord) -> bool:
    """Return True if point lies inside shape or on its boundary."""
    if isinstance(shape, Cylinder):
        radial, height = shape.origin.distance_cylindrical(point, shape.alignment)
        return radial <= shape.radius and 0.0 <= height <= shape.height

    if isinstance(shape, Cuboid):
        local = point - shape.origin
        return all(0.0 <= v <= s for v, s in zip(local, shape.size))

    if isinstance(shape, Spheroid):
        return shape.origin.distance(point) <= shape.radius

    raise _unsupported(shape)


def volume(shape: VolumeShape) -> float:
    if isinstance(shape, Cylinder):
        return math.pi * shape.radius ** 2 * shape.height

    if isinstance(shape, Cuboid):
        return shape.size.x * shape.size.y * shape.size.z

    if isinstance(shape, Spheroid):
        return 4.0 / 3.0 * math.pi * shape.radius ** 3

    raise _unsupported(shape)


def box_size(shape: VolumeShape) -> Coord:
    """Size of the axis-aligned box that bounds shape."""
    if isinstance(shape, Cylinder):
        diameter = 2.0 * shape.radius
        return Coord(diameter, diameter, diameter).with_axis(
            shape.alignment.axis, shape.height
        )

    if isinstance(shape, Cuboid):
        return shape.size

    if isinstance(shape, Spheroid):
        diameter = 2.0 * shape.radius
        return Coord(diameter, diameter, diameter)

    raise _unsupported(shape)


def box_corner(shape: VolumeShape) -> Coord:
    """Lower corner of the bounding box, relative to the shape origin."""
    if isinstance(shape, Cylinder):
        r = shape.radius
        return Coord(-r, -r, -r).with_axis(shape.alignment.axis, 0.0)

    if isinstance(shape, Cuboid):
        return Coord.ORIGIN

    if isinstance(shape, Spheroid):
        r = shape.radius
        return Coord(-r, -r, -r)

    raise _unsupported(shape)


def fill(
    shape: VolumeShape,
    spec: FillSpec,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> PointSet:
    """
    Draw points distributed uniformly through the interior of shape.

    Parameters
    ----------
    shape:
        A Cylinder, Cuboid or Spheroid.
    spec:
        Explicit count, or density multiplied by volume(shape) and rounded
        to the nearest integer.
    seed, rng:
        Random source; see mdsub.geometry.rng.resolve_rng.

    Returns
    -------
    PointSet
        Points relative to the shape origin.

    Raises
    ------
    EmptyResultError
        If a density fill rounds to zero points.
    UnsupportedCombinationError
        If shape is not a volume shape.
    """
    if not isinstance(shape, VOLUME_SHAPES):
        raise _unsupported(shape)
    if not isinstance(spec, FillSpec):
        raise UnsupportedCombinationError(
            f"Volumes are filled from a FillSpec, got {type(spec).__name__}."
        )

    num = spec.num_points(volume(shape))
    if num == 0 and spec.density is not None:
        raise EmptyResultError(
            f"Density {spec.density:g} gives no points in a "
            f"{type(shape).__name__.lower()} of volume {volume(shape):.4g}."
        )

    rng = resolve_rng(seed, rng)

    if isinstance(shape, Cylinder):
        coords = _sample_cylinder(shape, num, rng)
    elif isinstance(shape, Cuboid):
        coords = rng.random((num, 3)) * shape.size.to_array()
    else:
        coords = _sample_spheroid(shape, num, rng)

    log.debug(f"Filled {type(shape).__name__} with {num} points")
    return PointSet(coords)


# ---------------------------------------------------------------------------
# Private samplers
# ---------------------------------------------------------------------------

def _sample_cylinder(shape: Cylinder, num: int, rng: np.random.Generator) -> np.ndarray:
    # sqrt of a uniform variate makes the radial samples uniform by area
    radius = shape.radius * np.sqrt(rng.random(num))
    angle = rng.uniform(0.0, 2.0 * math.pi, size=num)
    height = rng.uniform(0.0, shape.height, size=num)

    coords = np.empty((num, 3))
    i, j = shape.alignment.plane_axes
    coords[:, i] = radius * np.cos(angle)
    coords[:, j] = radius * np.sin(angle)
    coords[:, shape.alignment.axis] = height
    return coords


def _sample_spheroid(shape: Spheroid, num: int, rng: np.random.Generator) -> np.ndarray:
    # Isotropic directions from normalised Gaussians; cube-root radii are
    # uniform by volume
    directions = rng.standard_normal((num, 3))
    norms = np.linalg.norm(directions, axis=1)
    norms[norms == 0.0] = 1.0
    directions /= norms[:, None]
    radius = shape.radius * np.cbrt(rng.random(num))
    return directions * radius[:, None]
