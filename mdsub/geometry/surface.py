"""
mdsub/geometry/surface.py

Two-dimensional surfaces populated from a sheet distribution.

Sheet distributions
-------------------
Hexagonal(a)                      honeycomb lattice with bond spacing a
Triclinic(a, b, gamma_degrees)    general 2-D lattice
PoissonDisc(density)              Bridson sample, points per unit area
BlueNoise(number)                 Mitchell sample of an exact count

Surface shapes
--------------
Sheet(length, width, normal)      flat rectangle perpendicular to `normal`
Circle(radius, normal)            disc cut from a sheet, centred on origin
SurfaceCylinder(radius, height, alignment, cap)
                                  cylinder mantle rolled from a sheet, with
                                  optional caps at the bottom and/or top
SurfaceCuboid(size, sides)        one sheet on each selected box face

`surface_points(shape, distribution)` generates the points.  Lattice
distributions snap to a whole number of unit cells, so the generated surface
is generally a little larger or smaller than requested; the returned
SurfacePoints carries the shape fitted to what was actually generated.

In-plane axes follow Direction.plane_axes: a sheet with normal Z spans
(x, y), normal X spans (y, z) and normal Y spans (z, x).

Usage
-----
    from mdsub.geometry.surface import Hexagonal, Sheet, surface_points

    result = surface_points(Sheet(5.0, 5.0), Hexagonal(0.142))
    result.points, result.box_size
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field, replace
from typing import NamedTuple, Union

import numpy as np

from mdsub.errors import (
    EmptyResultError,
    InvalidParameterError,
    UnsupportedCombinationError,
    require_count,
    require_positive,
)
from mdsub.geometry.coord import Coord, Direction, PointSet, as_coord
from mdsub.geometry.distribution import blue_noise, poisson_disc, poisson_disc_separation
from mdsub.geometry.lattice import Crystal, Lattice
from mdsub.geometry.rng import resolve_rng

log = logging.getLogger(__name__)

# Points on neighbouring cuboid faces closer than this are the same point
EDGE_TOL = 1e-6


# ---------------------------------------------------------------------------
# Sheet distributions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Hexagonal:
    """Honeycomb lattice with spacing `a` (e.g. 0.142 nm for graphene)."""

    a: float

    @property
    def crystal(self) -> Crystal:
        return Crystal.hexagonal(self.a)

    def __post_init__(self) -> None:
        # Building the crystal validates the basis
        _ = self.crystal


@dataclass(frozen=True)
class Triclinic:
    """Lattice with vectors `a` (along x) and `b`, separated by `gamma_degrees`."""

    a: float
    b: float
    gamma_degrees: float

    @property
    def crystal(self) -> Crystal:
        return Crystal.triclinic(self.a, self.b, self.gamma_degrees)

    def __post_init__(self) -> None:
        # Building the crystal validates the basis
        _ = self.crystal


@dataclass(frozen=True)
class PoissonDisc:
    """Poisson-disc sample with `density` points per unit area."""

    density: float

    def __post_init__(self) -> None:
        require_positive("Poisson-disc density", self.density)


@dataclass(frozen=True)
class BlueNoise:
    """Blue-noise sample of exactly `number` points."""

    number: int

    def __post_init__(self) -> None:
        require_count("Blue-noise point count", self.number)


SheetDistribution = Union[Hexagonal, Triclinic, PoissonDisc, BlueNoise]
SHEET_DISTRIBUTIONS = (Hexagonal, Triclinic, PoissonDisc, BlueNoise)


def generate_points(
    distribution: SheetDistribution,
    size_x: float,
    size_y: float,
    *,
    rng: np.random.Generator,
) -> tuple[PointSet, float, float]:
    """
    Generate a planar point set in the z = 0 plane.

    Returns
    -------
    (points, box_x, box_y)
        For lattices the box is the periodic lattice box and points are
        folded into it.  For random samples the box is the requested size.
    """
    if isinstance(distribution, (Hexagonal, Triclinic)):
        lattice = Lattice.from_size(distribution.crystal, size_x, size_y).wrapped()
        return lattice.points, lattice.box_size.x, lattice.box_size.y

    if isinstance(distribution, PoissonDisc):
        points = poisson_disc(distribution.density, size_x, size_y, rng=rng)
        return points, float(size_x), float(size_y)

    if isinstance(distribution, BlueNoise):
        points = blue_noise(distribution.number, size_x, size_y, rng=rng)
        return points, float(size_x), float(size_y)

    raise UnsupportedCombinationError(
        f"{type(distribution).__name__} is not a sheet distribution; expected "
        f"one of {', '.join(t.__name__ for t in SHEET_DISTRIBUTIONS)}."
    )


def _scaled(distribution: SheetDistribution, factor: float) -> SheetDistribution:
    """
    Rescale a blue-noise count to a part of a composite surface.

    Lattices and Poisson-disc samples are defined per unit area and are
    returned unchanged.
    """
    if isinstance(distribution, BlueNoise):
        return BlueNoise(int(math.floor(distribution.number * factor + 0.5)))
    return distribution


# ---------------------------------------------------------------------------
# Surface shapes
# ---------------------------------------------------------------------------

class Sides(enum.Flag):
    """Faces of a cuboid: X0 is the face at x = 0, X1 the face at x = size.x."""

    X0 = 1
    X1 = 2
    Y0 = 4
    Y1 = 8
    Z0 = 16
    Z1 = 32
    ALL = 63

    @classmethod
    def parse(cls, names: "list[str] | Sides | None") -> "Sides":
        if names is None:
            return cls.ALL
        if isinstance(names, Sides):
            return names
        if isinstance(names, str):
            names = [names]
        sides = cls(0)
        for name in names:
            key = str(name).upper()
            if key not in cls.__members__:
                raise InvalidParameterError(
                    f"Unknown cuboid side '{name}'; expected one of "
                    f"{', '.join(s.lower() for s in cls.__members__)}."
                )
            sides |= cls[key]
        return sides


_SIDE_FACES = {
    Sides.X0: (Direction.X, False),
    Sides.X1: (Direction.X, True),
    Sides.Y0: (Direction.Y, False),
    Sides.Y1: (Direction.Y, True),
    Sides.Z0: (Direction.Z, False),
    Sides.Z1: (Direction.Z, True),
}


class CylinderCap(enum.Enum):
    """Which ends of a surface cylinder are closed."""

    BOTTOM = "bottom"
    TOP = "top"
    BOTH = "both"

    @property
    def has_bottom(self) -> bool:
        return self in (CylinderCap.BOTTOM, CylinderCap.BOTH)

    @property
    def has_top(self) -> bool:
        return self in (CylinderCap.TOP, CylinderCap.BOTH)


@dataclass(frozen=True)
class Sheet:
    length: float
    width: float
    normal: Direction = Direction.Z
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        require_positive("Sheet length", self.length)
        require_positive("Sheet width", self.width)
        object.__setattr__(self, "normal", Direction.parse(self.normal))
        object.__setattr__(self, "origin", as_coord(self.origin))


@dataclass(frozen=True)
class Circle:
    radius: float
    normal: Direction = Direction.Z
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        require_positive("Circle radius", self.radius)
        object.__setattr__(self, "normal", Direction.parse(self.normal))
        object.__setattr__(self, "origin", as_coord(self.origin))


@dataclass(frozen=True)
class SurfaceCylinder:
    """
    Cylinder mantle of `radius` and `height`, origin at the bottom-cap centre.

    The mantle is rolled from a sheet of size (2 pi radius, height); the
    radius is refitted so that the generated sheet closes on itself.
    """

    radius: float
    height: float
    alignment: Direction = Direction.Z
    cap: CylinderCap | None = None
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        require_positive("Cylinder radius", self.radius)
        require_positive("Cylinder height", self.height)
        object.__setattr__(self, "alignment", Direction.parse(self.alignment))
        if self.cap is not None:
            object.__setattr__(self, "cap", CylinderCap(self.cap))
        object.__setattr__(self, "origin", as_coord(self.origin))


@dataclass(frozen=True)
class SurfaceCuboid:
    """
    Sheets on the selected faces of a box with its lower corner at origin.

    Faces are filled in X0, X1, Y0, Y1, Z0, Z1 order.  A shared edge belongs
    to the face filled first: points of a later face that coincide with, or
    for a Poisson-disc sample fall within the disc radius of, an earlier
    face's points are dropped.
    """

    size: Coord
    sides: Sides = Sides.ALL
    origin: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        object.__setattr__(self, "size", as_coord(self.size))
        object.__setattr__(self, "sides", Sides.parse(self.sides))
        object.__setattr__(self, "origin", as_coord(self.origin))
        for axis, value in zip("xyz", self.size):
            require_positive(f"Cuboid size along {axis}", value)


SurfaceShape = Union[Sheet, Circle, SurfaceCylinder, SurfaceCuboid]
SURFACE_SHAPES = (Sheet, Circle, SurfaceCylinder, SurfaceCuboid)


class SurfacePoints(NamedTuple):
    """
    Generated surface: points relative to origin, box, and fitted shape.

    box_corner is the lower corner of the box relative to origin; circles
    and cylinders are centred on their origin so it is negative there.
    """

    points: PointSet
    box_size: Coord
    shape: SurfaceShape
    box_corner: Coord = Coord.ORIGIN


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def surface_points(
    shape: SurfaceShape,
    distribution: SheetDistribution,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> SurfacePoints:
    """
    Populate a surface shape from a sheet distribution.

    Raises
    ------
    UnsupportedCombinationError
        If shape is not a surface shape or distribution is not a sheet
        distribution.
    EmptyResultError
        If a circle or cuboid ends up with no points.
    """
    if not isinstance(shape, SURFACE_SHAPES):
        raise UnsupportedCombinationError(
            f"{type(shape).__name__} is not a surface shape; expected one of "
            f"{', '.join(t.__name__ for t in SURFACE_SHAPES)}."
        )
    if not isinstance(distribution, SHEET_DISTRIBUTIONS):
        raise UnsupportedCombinationError(
            f"Surfaces are populated from a sheet distribution, got "
            f"{type(distribution).__name__}."
        )
    rng = resolve_rng(seed, rng)

    if isinstance(shape, Sheet):
        result = _sheet(shape, distribution, rng)
    elif isinstance(shape, Circle):
        result = _circle(shape, distribution, rng)
    elif isinstance(shape, SurfaceCylinder):
        result = _cylinder(shape, distribution, rng)
    else:
        result = _cuboid(shape, distribution, rng)

    log.debug(
        f"Generated {len(result.points)} points on {type(shape).__name__} "
        f"with {type(distribution).__name__}"
    )
    return result


def _to_plane(points: PointSet, normal: Direction, offset: float = 0.0) -> np.ndarray:
    """Map sheet (u, v) coordinates onto the plane perpendicular to normal."""
    planar = points.array
    coords = np.zeros((len(planar), 3))
    i, j = normal.plane_axes
    coords[:, i] = planar[:, 0]
    coords[:, j] = planar[:, 1]
    coords[:, normal.axis] = offset
    return coords


def _plane_box(normal: Direction, u: float, v: float, w: float = 0.0) -> Coord:
    values = [0.0, 0.0, 0.0]
    i, j = normal.plane_axes
    values[i], values[j], values[normal.axis] = u, v, w
    return Coord(*values)


def _sheet(shape: Sheet, distribution, rng) -> SurfacePoints:
    points, box_u, box_v = generate_points(
        distribution, shape.length, shape.width, rng=rng
    )
    return SurfacePoints(
        points=PointSet(_to_plane(points, shape.normal)),
        box_size=_plane_box(shape.normal, box_u, box_v),
        shape=replace(shape, length=box_u, width=box_v),
    )


def _disc(radius: float, distribution, rng) -> np.ndarray:
    """Planar (u, v) points within radius of the centre, centred on zero."""
    diameter = 2.0 * radius
    points, _, _ = generate_points(distribution, diameter, diameter, rng=rng)
    uv = points.array[:, :2] - radius
    keep = np.hypot(uv[:, 0], uv[:, 1]) <= radius
    return uv[keep]


def _circle(shape: Circle, distribution, rng) -> SurfacePoints:
    uv = _disc(shape.radius, distribution, rng)
    if len(uv) == 0:
        raise EmptyResultError(
            f"No points fall inside a circle of radius {shape.radius:g}."
        )
    planar = PointSet(np.column_stack([uv, np.zeros(len(uv))]))
    diameter = 2.0 * shape.radius
    return SurfacePoints(
        points=PointSet(_to_plane(planar, shape.normal)),
        box_size=_plane_box(shape.normal, diameter, diameter),
        shape=shape,
        box_corner=_plane_box(shape.normal, -shape.radius, -shape.radius),
    )


def _cylinder(shape: SurfaceCylinder, distribution, rng) -> SurfacePoints:
    perimeter = 2.0 * math.pi * shape.radius
    sheet, box_u, box_v = generate_points(
        distribution, perimeter, shape.height, rng=rng
    )
    radius = box_u / (2.0 * math.pi)
    height = box_v
    fitted = replace(shape, radius=radius, height=height)

    alignment = shape.alignment
    i, j = alignment.plane_axes
    angle = sheet.array[:, 0] / radius

    mantle = np.zeros((len(sheet), 3))
    mantle[:, i] = radius * np.cos(angle)
    mantle[:, j] = radius * np.sin(angle)
    mantle[:, alignment.axis] = sheet.array[:, 1]
    parts = [mantle]

    if shape.cap is not None:
        cap_fraction = (2.0 * radius) ** 2 / (box_u * box_v)
        cap_distribution = _scaled(distribution, cap_fraction)
        for at_top in (False, True):
            if at_top and not shape.cap.has_top:
                continue
            if not at_top and not shape.cap.has_bottom:
                continue
            uv = _disc(radius, cap_distribution, rng)
            cap = np.zeros((len(uv), 3))
            cap[:, i] = uv[:, 0]
            cap[:, j] = uv[:, 1]
            cap[:, alignment.axis] = height if at_top else 0.0
            parts.append(cap)

    if not math.isclose(radius, shape.radius):
        log.debug(f"Cylinder radius refitted from {shape.radius:g} to {radius:g}")

    diameter = 2.0 * radius
    return SurfacePoints(
        points=PointSet(np.concatenate(parts, axis=0)),
        box_size=Coord(diameter, diameter, diameter).with_axis(alignment.axis, height),
        shape=fitted,
        box_corner=Coord(-radius, -radius, -radius).with_axis(alignment.axis, 0.0),
    )


def _face_separation(distribution) -> float:
    """Closest distance allowed between points on neighbouring faces."""
    if isinstance(distribution, PoissonDisc):
        return poisson_disc_separation(distribution.density)
    return EDGE_TOL


def _drop_near(
    candidates: np.ndarray,
    accepted: np.ndarray,
    normal: Direction,
    plane: float,
    face_size: tuple[float, float],
    separation: float,
) -> np.ndarray:
    """
    Remove candidates closer than separation to an accepted point.

    Only accepted points within separation of the candidate face plane, and
    candidates within separation of the face border, can be that close.
    """
    if len(candidates) == 0 or len(accepted) == 0:
        return candidates

    near_plane = accepted[np.abs(accepted[:, normal.axis] - plane) < separation]
    if len(near_plane) == 0:
        return candidates

    i, j = normal.plane_axes
    size_i, size_j = face_size
    border = (
        (candidates[:, i] < separation)
        | (candidates[:, i] > size_i - separation)
        | (candidates[:, j] < separation)
        | (candidates[:, j] > size_j - separation)
    )
    edge = candidates[border]
    dist = np.linalg.norm(edge[:, None, :] - near_plane[None, :, :], axis=-1)

    keep = np.ones(len(candidates), dtype=bool)
    keep[np.flatnonzero(border)[np.any(dist < separation, axis=1)]] = False
    return candidates[keep]


def _cuboid(shape: SurfaceCuboid, distribution, rng) -> SurfacePoints:
    size = shape.size.to_array()
    faces = [(side, *_SIDE_FACES[side]) for side in _SIDE_FACES if side in shape.sides]

    areas = []
    for _, normal, _ in faces:
        i, j = normal.plane_axes
        areas.append(size[i] * size[j])
    total_area = sum(areas)

    separation = _face_separation(distribution)
    accepted = np.zeros((0, 3))
    for (side, normal, at_far_end), area in zip(faces, areas):
        i, j = normal.plane_axes
        face_distribution = _scaled(distribution, area / total_area)
        if isinstance(face_distribution, BlueNoise) and face_distribution.number == 0:
            continue
        sheet, _, _ = generate_points(face_distribution, size[i], size[j], rng=rng)

        # Lattices snap to whole cells; cut anything beyond the face
        uv = sheet.array
        keep = (uv[:, 0] <= size[i] + 1e-9) & (uv[:, 1] <= size[j] + 1e-9)
        face = PointSet(uv[keep])

        # Edges shared with faces placed earlier belong to those faces
        offset = size[normal.axis] if at_far_end else 0.0
        coords = _drop_near(
            _to_plane(face, normal, offset),
            accepted,
            normal,
            offset,
            (size[i], size[j]),
            separation,
        )
        accepted = np.concatenate([accepted, coords], axis=0)
        log.debug(
            f"Cuboid face {side.name}: {len(coords)} points "
            f"({len(face) - len(coords)} on shared edges dropped)"
        )

    if len(accepted) == 0:
        raise EmptyResultError("No points were generated on the selected cuboid faces.")

    return SurfacePoints(points=PointSet(accepted), box_size=shape.size, shape=shape)


# ---------------------------------------------------------------------------
# Surface containment
# ---------------------------------------------------------------------------

def on_surface(shape: SurfaceShape, point: Coord, tol: float = 1e-6) -> bool:
    """
    Return True if point lies on one of the selected parts of shape.

    Faces and caps that were not selected do not count.  Distances from a
    face plane or the mantle are accepted up to tol.
    """
    local = (point - shape.origin).to_array()

    if isinstance(shape, Sheet):
        i, j = shape.normal.plane_axes
        return (
            abs(local[shape.normal.axis]) <= tol
            and -tol <= local[i] <= shape.length + tol
            and -tol <= local[j] <= shape.width + tol
        )

    if isinstance(shape, Circle):
        i, j = shape.normal.plane_axes
        return (
            abs(local[shape.normal.axis]) <= tol
            and math.hypot(local[i], local[j]) <= shape.radius + tol
        )

    if isinstance(shape, SurfaceCylinder):
        radial, height = shape.origin.distance_cylindrical(point, shape.alignment)
        if abs(radial - shape.radius) <= tol and -tol <= height <= shape.height + tol:
            return True
        if shape.cap is None or radial > shape.radius + tol:
            return False
        if shape.cap.has_bottom and abs(height) <= tol:
            return True
        return shape.cap.has_top and abs(height - shape.height) <= tol

    if isinstance(shape, SurfaceCuboid):
        size = shape.size.to_array()
        within = np.all((local >= -tol) & (local <= size + tol))
        if not within:
            return False
        for side, (normal, at_far_end) in _SIDE_FACES.items():
            if side not in shape.sides:
                continue
            plane = size[normal.axis] if at_far_end else 0.0
            if abs(local[normal.axis] - plane) <= tol:
                return True
        return False

    raise UnsupportedCombinationError(
        f"{type(shape).__name__} is not a surface shape."
    )
