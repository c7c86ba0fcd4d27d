"""
mdsub/system/iterator.py

Lazy atom stamping: bind a residue template to a point set.

`iter_atoms` yields one CurrentAtom per (point, template atom) pair without
building a list, so a serializer can stream a component of any size.  All
atoms of unit 0 come first in template order, then unit 1, and so on.

The generator is single pass.  To iterate again, call iter_atoms again with
the same inputs.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple

from mdsub.geometry.coord import Coord, PointSet
from mdsub.system.residue import Atom, ResidueTemplate


class CurrentAtom(NamedTuple):
    """An atom ready for output."""

    atom_index: int           # 0-based over the whole component
    residue_index: int        # 0-based index of the point it was stamped on
    atom: Atom
    residue: ResidueTemplate
    position: Coord           # atom offset + point + component origin


def iter_atoms(
    residue: ResidueTemplate | None,
    points: PointSet,
    origin: Coord = Coord.ORIGIN,
) -> Iterator[CurrentAtom]:
    """
    Yield every atom of residue stamped on every point, offset by origin.

    Yields nothing if residue is None or points is empty.
    """
    if residue is None:
        return

    atom_index = 0
    for residue_index, point in enumerate(points):
        base = point + origin
        for atom in residue.atoms:
            yield CurrentAtom(
                atom_index=atom_index,
                residue_index=residue_index,
                atom=atom,
                residue=residue,
                position=atom.position + base,
            )
            atom_index += 1
