"""
mdsub/geometry/lattice.py

Deterministic periodic 2-D lattices built from a crystal basis.

A crystal basis is two in-plane vector lengths (a, b) and the angle gamma
between them.  Vector a lies along x; b is rotated gamma from it.  The grid
spacing follows directly:

    dx         = a
    dy         = b sin(gamma)
    dx_per_row = b cos(gamma)       (shear added to x for every row)

Hexagonal lattices (a = b, gamma = 120 degrees) get a honeycomb topology by
removing every third grid point, shifted one column per row.  To keep the
honeycomb perfectly periodic, nx is rounded up to a multiple of 3 and ny to
a multiple of 2 before any point is placed.

Usage
-----
    from mdsub.geometry.lattice import Crystal, Lattice

    graphene = Crystal.hexagonal(0.142)
    lattice = Lattice.from_size(graphene, 5.0, 5.0)
    lattice.points          # PointSet in the z = 0 plane
    lattice.box_size        # exact multiple of the spacing
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from mdsub.errors import (
    EmptyResultError,
    InvalidParameterError,
    require_count,
    require_positive,
)
from mdsub.geometry.coord import Coord, PointSet

log = logging.getLogger(__name__)


HEXAGONAL = "hexagonal"
TRICLINIC = "triclinic"


# ---------------------------------------------------------------------------
# Crystal basis
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Crystal:
    """
    A 2-D crystal basis.

    Attributes
    ----------
    a, b:
        Lengths of the two basis vectors.
    gamma:
        Angle between the vectors in radians, strictly in (0, pi).
    kind:
        "hexagonal" or "triclinic".  Only hexagonal crystals remove points.
    """

    a: float
    b: float
    gamma: float
    kind: str = TRICLINIC

    def __post_init__(self) -> None:
        require_positive("Crystal vector length a", self.a)
        require_positive("Crystal vector length b", self.b)
        if not 0.0 < self.gamma < math.pi:
            raise InvalidParameterError(
                f"Crystal angle must be strictly between 0 and 180 degrees, "
                f"got {math.degrees(self.gamma):.3f}."
            )
        if self.kind not in (HEXAGONAL, TRICLINIC):
            raise InvalidParameterError(f"Unknown crystal kind '{self.kind}'.")

    @classmethod
    def hexagonal(cls, a: float) -> "Crystal":
        """Honeycomb basis with a common vector length and a 120 degree angle."""
        return cls(a=a, b=a, gamma=2.0 * math.pi / 3.0, kind=HEXAGONAL)

    @classmethod
    def triclinic(cls, a: float, b: float, gamma_degrees: float) -> "Crystal":
        """General basis; the angle is given in degrees."""
        gamma_degrees = float(gamma_degrees)
        if not 0.0 < gamma_degrees < 180.0:
            raise InvalidParameterError(
                f"Crystal angle must be strictly between 0 and 180 degrees, "
                f"got {gamma_degrees}."
            )
        return cls(a=a, b=b, gamma=math.radians(gamma_degrees), kind=TRICLINIC)

    def spacing(self) -> tuple[float, float, float]:
        """Return (dx, dy, dx_per_row)."""
        return (
            self.a,
            self.b * math.sin(self.gamma),
            self.b * math.cos(self.gamma),
        )


# ---------------------------------------------------------------------------
# Lattice
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Lattice:
    """
    Points of a replicated crystal and the size of the box they tile.

    The box is always an exact multiple of the crystal spacing, so it will
    generally differ from a requested physical size.
    """

    points: PointSet
    box_size: Coord
    nx: int
    ny: int

    @classmethod
    def from_size(cls, crystal: Crystal, size_x: float, size_y: float) -> "Lattice":
        """
        Build the lattice closest to a target physical size.

        The replica counts are size / spacing rounded to the nearest integer
        (halves round up).

        Raises
        ------
        InvalidParameterError
            If a size is not positive.
        EmptyResultError
            If the size is too small to hold a single row or column.
        """
        size_x = require_positive("Lattice size along x", size_x)
        size_y = require_positive("Lattice size along y", size_y)

        dx, dy, _ = crystal.spacing()
        nx = int(math.floor(size_x / dx + 0.5))
        ny = int(math.floor(size_y / dy + 0.5))

        if nx == 0 or ny == 0:
            raise EmptyResultError(
                f"A {size_x:g} x {size_y:g} lattice holds no points with "
                f"spacing ({dx:g}, {dy:g})."
            )

        lattice = cls.from_counts(crystal, nx, ny)
        if not (
            math.isclose(lattice.box_size.x, size_x)
            and math.isclose(lattice.box_size.y, size_y)
        ):
            log.warning(
                f"Lattice size adjusted from ({size_x:g}, {size_y:g}) to "
                f"({lattice.box_size.x:g}, {lattice.box_size.y:g}) for periodicity"
            )
        return lattice

    @classmethod
    def from_counts(cls, crystal: Crystal, nx: int, ny: int) -> "Lattice":
        """
        Build a lattice of nx columns by ny rows.

        For hexagonal crystals the counts are first rounded up to multiples
        of 3 (columns) and 2 (rows); the returned nx, ny are the adjusted
        values.
        """
        nx = require_count("Lattice column count", nx)
        ny = require_count("Lattice row count", ny)

        if crystal.kind == HEXAGONAL:
            adjusted = (3 * math.ceil(nx / 3), 2 * math.ceil(ny / 2))
            if adjusted != (nx, ny):
                log.debug(f"Hexagonal lattice ({nx}, {ny}) rounded up to {adjusted}")
            nx, ny = adjusted

        dx, dy, dx_per_row = crystal.spacing()
        rows, cols = np.meshgrid(np.arange(ny), np.arange(nx), indexing="ij")
        rows, cols = rows.ravel(), cols.ravel()

        if crystal.kind == HEXAGONAL:
            keep = (cols + rows + 1) % 3 != 0
            rows, cols = rows[keep], cols[keep]

        coords = np.column_stack([
            cols * dx + rows * dx_per_row,
            rows * dy,
            np.zeros(len(rows)),
        ])

        return cls(
            points=PointSet(coords),
            box_size=Coord(nx * dx, ny * dy, 0.0),
            nx=nx,
            ny=ny,
        )

    def translate(self, vector: Coord) -> "Lattice":
        """Offset every point by vector.  The box size is unchanged."""
        return Lattice(
            points=self.points.translate(vector),
            box_size=self.box_size,
            nx=self.nx,
            ny=self.ny,
        )

    def wrapped(self) -> "Lattice":
        """
        Return the lattice with every point folded into [0, box) in x and y.

        Sheared rows drift out of the orthogonal box; for a periodic lattice
        folding them back moves each point onto an equivalent image.
        """
        array = self.points.array.copy()
        box = self.box_size.to_array()
        for axis in (0, 1):
            if box[axis] > 0.0:
                array[:, axis] = np.mod(array[:, axis], box[axis])
                # np.mod can return the box length itself for tiny negatives
                edge = np.isclose(array[:, axis], box[axis], rtol=0.0, atol=1e-9)
                array[edge, axis] = 0.0
        return Lattice(PointSet(array), self.box_size, self.nx, self.ny)
