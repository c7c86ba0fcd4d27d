"""
mdsub/system/component.py

Components: a point set with a residue template, an origin and a box.

A Component is the finished, immutable product of one shape and one
distribution.  Transforms return new components; the point set and
template are shared, never copied or mutated.

Usage
-----
    from mdsub.geometry.surface import Hexagonal, Sheet
    from mdsub.system.component import build_component
    from mdsub.system.residue import resbase

    graphene = resbase("GRPH", ("C", 0.071, 0.071, 0.071))
    sheet = build_component(Sheet(5.0, 5.0), graphene, Hexagonal(0.142))

    sheet.num_atoms
    for atom in sheet.iter_atoms():
        ...
    shifted = sheet.translate(Coord(0.0, 0.0, 1.5))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

import numpy as np

from mdsub.errors import InvalidParameterError, UnsupportedCombinationError
from mdsub.geometry import surface, volume
from mdsub.geometry.coord import ATOL, Coord, PointSet, as_coord
from mdsub.geometry.rng import resolve_rng
from mdsub.system.iterator import CurrentAtom, iter_atoms
from mdsub.system.residue import ResidueTemplate

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Component:
    """
    A fully realised geometric object.

    Attributes
    ----------
    origin:
        Absolute position that all points are relative to.
    box_size:
        Size of the component box.  Spans at least the extent of points.
    residue:
        Template stamped on every point, or None for a bare point set.
    points:
        Placement positions of the residues, relative to origin.
    name:
        Optional label used in logs and summaries.
    box_corner:
        Lower corner of the box relative to origin.  Zero for shapes whose
        origin is their lower corner, negative for centred shapes such as
        spheroids.
    """

    origin: Coord
    box_size: Coord
    residue: ResidueTemplate | None
    points: PointSet
    name: str | None = field(default=None, compare=False)
    box_corner: Coord = field(default_factory=lambda: Coord.ORIGIN)

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", as_coord(self.origin))
        object.__setattr__(self, "box_size", as_coord(self.box_size))
        object.__setattr__(self, "box_corner", as_coord(self.box_corner))
        if not isinstance(self.points, PointSet):
            object.__setattr__(self, "points", PointSet(self.points))

        if any(size < 0.0 for size in self.box_size):
            raise InvalidParameterError(
                f"Component box size must be non-negative, got {self.box_size}."
            )
        if len(self.points) == 0:
            return

        tol = 1e3 * ATOL
        low = self.box_corner.to_array()
        high = low + self.box_size.to_array()
        xyz = self.points.array
        for axis in range(3):
            lo, hi = xyz[:, axis].min(), xyz[:, axis].max()
            if lo < low[axis] - tol or hi > high[axis] + tol:
                raise InvalidParameterError(
                    f"Component box {self.box_size} at {self.box_corner} does "
                    f"not span its points ({lo:.6g} to {hi:.6g} along "
                    f"{'xyz'[axis]})."
                )

    @property
    def num_atoms(self) -> int:
        if self.residue is None:
            return 0
        return len(self.residue.atoms) * len(self.points)

    @property
    def num_residues(self) -> int:
        return len(self.points) if self.residue is not None else 0

    def iter_atoms(self) -> Iterator[CurrentAtom]:
        """Lazily yield every atom with its absolute position."""
        return iter_atoms(self.residue, self.points, self.origin)

    def translate(self, vector: Coord) -> "Component":
        """Return a copy moved by vector.  Relative points are unchanged."""
        return replace(self, origin=self.origin + as_coord(vector))

    def with_origin(self, origin: Coord) -> "Component":
        return replace(self, origin=as_coord(origin))

    def bounds(self) -> tuple[Coord, Coord]:
        """Absolute lower and upper corners of the component box."""
        lower = self.origin + self.box_corner
        return lower, lower + self.box_size

    def absolute_points(self) -> PointSet:
        """Residue positions in absolute coordinates."""
        return self.points.translate(self.origin)

    def describe(self) -> str:
        label = self.name or (self.residue.code if self.residue else "component")
        return (
            f"{label}: {self.num_residues} residues, {self.num_atoms} atoms, "
            f"box {self.box_size} at {self.origin}"
        )


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def build_component(
    shape,
    residue: ResidueTemplate | None,
    distribution=None,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    name: str | None = None,
) -> Component:
    """
    Generate the points of shape and wrap them in a Component.

    Parameters
    ----------
    shape:
        A surface shape (Sheet, Circle, SurfaceCylinder, SurfaceCuboid) or a
        volume shape (Cylinder, Cuboid, Spheroid).
    residue:
        Template to stamp on every point.
    distribution:
        A sheet distribution for surface shapes, a FillSpec for volumes.
    seed, rng:
        Random source; see mdsub.geometry.rng.resolve_rng.
    name:
        Optional label.

    Raises
    ------
    UnsupportedCombinationError
        If the distribution does not match the kind of shape.  Raised before
        any point is generated.
    """
    if isinstance(shape, surface.SURFACE_SHAPES):
        if not isinstance(distribution, surface.SHEET_DISTRIBUTIONS):
            raise UnsupportedCombinationError(
                f"{type(shape).__name__} needs a sheet distribution "
                f"(Hexagonal, Triclinic, PoissonDisc or BlueNoise), got "
                f"{type(distribution).__name__}."
            )
        rng = resolve_rng(seed, rng)
        generated = surface.surface_points(shape, distribution, rng=rng)
        points, box = generated.points, generated.box_size
        corner = generated.box_corner

    elif isinstance(shape, volume.VOLUME_SHAPES):
        if not isinstance(distribution, volume.FillSpec):
            raise UnsupportedCombinationError(
                f"{type(shape).__name__} is filled from a FillSpec, got "
                f"{type(distribution).__name__}."
            )
        rng = resolve_rng(seed, rng)
        points = volume.fill(shape, distribution, rng=rng)
        box = volume.box_size(shape)
        corner = volume.box_corner(shape)

    else:
        raise UnsupportedCombinationError(
            f"Cannot build a component from {type(shape).__name__}."
        )

    component = Component(
        origin=shape.origin,
        box_size=box,
        residue=residue,
        points=points,
        name=name,
        box_corner=corner,
    )
    log.info(component.describe())
    return component


def system_bounds(components: Iterable[Component]) -> tuple[Coord, Coord]:
    """
    Lower and upper corners of the region holding every component box and
    the coordinate origin.

    The lower corner is zero unless a component reaches below zero along
    some axis.
    """
    lower = np.zeros(3)
    upper = np.zeros(3)
    for component in components:
        low, high = component.bounds()
        lower = np.minimum(lower, low.to_array())
        upper = np.maximum(upper, high.to_array())
    return Coord.from_array(lower), Coord.from_array(upper)


def merge_box(components: Iterable[Component]) -> Coord:
    """Size of the box that holds every component and the coordinate origin."""
    lower, upper = system_bounds(components)
    return upper - lower
