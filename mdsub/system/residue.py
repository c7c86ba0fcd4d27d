"""
mdsub/system/residue.py

Residue templates: the repeat unit stamped onto every point of a component.

A template is a named, ordered list of atoms, each with a code and a
position relative to the placement point.  Templates are immutable and
shared read-only by every component built from them.

Usage
-----
    from mdsub.system.residue import resbase

    graphene = resbase("GRPH", ("C", 0.071, 0.071, 0.071))
    silica = resbase(
        "SIO",
        ("O1", 0.1125, 0.075, 0.451),
        ("SI", 0.1125, 0.075, 0.300),
        ("O2", 0.1125, 0.075, 0.149),
    )
"""

from __future__ import annotations

from dataclasses import dataclass

from mdsub.errors import InvalidParameterError
from mdsub.geometry.coord import Coord, as_coord


@dataclass(frozen=True)
class Atom:
    """One atom of a residue: its code and position relative to the residue."""

    code: str
    position: Coord

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_coord(self.position))


@dataclass(frozen=True)
class ResidueTemplate:
    """A named, ordered, immutable list of atoms."""

    code: str
    atoms: tuple[Atom, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "atoms", tuple(self.atoms))
        if not self.code:
            raise InvalidParameterError("Residue code must not be empty.")

    def __len__(self) -> int:
        return len(self.atoms)


def resbase(code: str, *atoms: tuple[str, float, float, float]) -> ResidueTemplate:
    """
    Build a ResidueTemplate from (atom code, x, y, z) tuples.

    At least one atom is required.
    """
    if not atoms:
        raise InvalidParameterError(f"Residue '{code}' needs at least one atom.")
    return ResidueTemplate(
        code=code,
        atoms=tuple(Atom(name, Coord(x, y, z)) for name, x, y, z in atoms),
    )
