"""
mdsub/geometry/coord.py

Coordinate primitives: a 3-D vector with tolerant equality, the alignment
axis of cylinders and sheets, and the immutable point set that every
generator returns.

Usage
-----
    from mdsub.geometry.coord import Coord, Direction, PointSet

    a = Coord(1.0, 0.0, 1.0)
    b = Coord(0.5, 0.5, 0.5)
    a + b                                   # Coord(1.5, 0.5, 1.5)
    a.distance_cylindrical(b, Direction.Z)  # (radial, signed height)

    points = PointSet([(0, 0, 0), (1, 0, 0)])
    moved = points.translate(Coord(0, 0, 2))   # new PointSet
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Iterable, Iterator

import numpy as np


# Absolute tolerance used by every tolerant comparison in mdsub.
ATOL = 1e-9


# ---------------------------------------------------------------------------
# Direction
# ---------------------------------------------------------------------------

class Direction(enum.Enum):
    """Cartesian axis used as cylinder alignment or sheet normal."""

    X = "x"
    Y = "y"
    Z = "z"

    @property
    def axis(self) -> int:
        """Index of the axis in an (x, y, z) triple."""
        return "xyz".index(self.value)

    @property
    def plane_axes(self) -> tuple[int, int]:
        """
        The two in-plane axes perpendicular to this direction, in cyclic
        order: X -> (y, z), Y -> (z, x), Z -> (x, y).
        """
        i = self.axis
        return ((i + 1) % 3, (i + 2) % 3)

    @classmethod
    def parse(cls, value: "str | Direction") -> "Direction":
        if isinstance(value, Direction):
            return value
        return cls(str(value).lower())


# ---------------------------------------------------------------------------
# Coord
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Coord:
    """
    A three-dimensional coordinate.

    Equality is tolerant: two coordinates are equal when every component
    differs by less than ATOL.  Coordinates are therefore not hashable.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    ORIGIN: ClassVar["Coord"]

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def from_array(cls, values: Iterable[float]) -> "Coord":
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)

    def to_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_tuple())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coord):
            return NotImplemented
        return (
            abs(self.x - other.x) < ATOL
            and abs(self.y - other.y) < ATOL
            and abs(self.z - other.z) < ATOL
        )

    def __add__(self, other: "Coord") -> "Coord":
        return Coord(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Coord") -> "Coord":
        return Coord(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Coord":
        return Coord(-self.x, -self.y, -self.z)

    def __mul__(self, factor: float) -> "Coord":
        return Coord(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def __getitem__(self, axis: int) -> float:
        return self.to_tuple()[axis]

    def __str__(self) -> str:
        return f"({self.x:.3f}, {self.y:.3f}, {self.z:.3f})"

    def distance(self, other: "Coord") -> float:
        """Euclidean distance to other."""
        d = self - other
        return float(np.sqrt(d.x * d.x + d.y * d.y + d.z * d.z))

    def distance_cylindrical(
        self,
        other: "Coord",
        direction: Direction,
    ) -> tuple[float, float]:
        """
        Decompose the vector from self to other into cylindrical parts.

        Returns
        -------
        (radial, height)
            radial is the distance from the axis through self along
            direction; height is the signed distance along that axis,
            positive when other lies above self.
        """
        d = (other - self).to_tuple()
        i, j = direction.plane_axes
        radial = float(np.hypot(d[i], d[j]))
        return radial, d[direction.axis]

    def with_axis(self, axis: int, value: float) -> "Coord":
        """Return a copy with one component replaced."""
        values = list(self.to_tuple())
        values[axis] = float(value)
        return Coord(*values)


Coord.ORIGIN = Coord(0.0, 0.0, 0.0)


def as_coord(value: "Coord | Iterable[float]") -> Coord:
    """Accept a Coord or any (x, y, z) sequence."""
    if isinstance(value, Coord):
        return value
    return Coord.from_array(value)


# ---------------------------------------------------------------------------
# PointSet
# ---------------------------------------------------------------------------

class PointSet:
    """
    An ordered, immutable sequence of coordinates.

    Points are stored as a read-only (n, 3) float array.  Indexing and
    iteration yield Coord objects; use `array` for vectorised work.
    """

    __slots__ = ("_array",)

    def __init__(self, points: "Iterable | np.ndarray" = ()) -> None:
        if isinstance(points, PointSet):
            array = points._array
        else:
            if not isinstance(points, np.ndarray):
                points = [tuple(p) for p in points]
            array = np.array(points, dtype=float).reshape(-1, 3)
            array.setflags(write=False)
        self._array = array

    @classmethod
    def empty(cls) -> "PointSet":
        return cls(np.zeros((0, 3)))

    @classmethod
    def concatenate(cls, *sets: "PointSet") -> "PointSet":
        """Join point sets in order."""
        if not sets:
            return cls.empty()
        return cls(np.concatenate([s.array for s in sets], axis=0))

    @property
    def array(self) -> np.ndarray:
        """Read-only (n, 3) view of the points."""
        return self._array

    def __len__(self) -> int:
        return len(self._array)

    def __getitem__(self, index: int) -> Coord:
        return Coord.from_array(self._array[index])

    def __iter__(self) -> Iterator[Coord]:
        for row in self._array:
            yield Coord.from_array(row)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PointSet):
            return NotImplemented
        if self._array.shape != other._array.shape:
            return False
        return bool(np.allclose(self._array, other._array, rtol=0.0, atol=ATOL))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PointSet(n={len(self)})"

    def translate(self, vector: Coord) -> "PointSet":
        """Return a new PointSet with every point offset by vector."""
        return PointSet(self._array + vector.to_array())

    def extent(self) -> Coord:
        """Span (max - min) of the points along each axis; zero when empty."""
        if len(self) == 0:
            return Coord.ORIGIN
        return Coord.from_array(self._array.max(axis=0) - self._array.min(axis=0))
