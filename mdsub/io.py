"""
mdsub/io.py

Flatten built components into coordinate files.

Two routes are available:

  - `write_gro` streams atoms straight from each component's atom
    iterator into a GROMACS .gro file.  Residue and atom numbers wrap at
    100 000 so that every record keeps its fixed five-digit columns, and
    memory stays proportional to a single line.
  - `components_to_atoms` builds an ase.Atoms object (positions in Å) for
    any other format ase.io can write.

`write_system` picks the route from the file suffix.

Public API
----------
    atom_symbol(code)                                 → str
    components_to_atoms(components, box=None)         → ase.Atoms
    write_gro(path, components, title=None, box=None) → int
    write_system(path, components, title=None, format=None) → int
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
from ase import Atoms
from ase.data import chemical_symbols
from ase.io import write

from mdsub.geometry.coord import Coord, as_coord
from mdsub.system.component import Component, system_bounds

log = logging.getLogger(__name__)

# Five-digit fields in the .gro format
NUMBER_WRAP = 100_000

NM_TO_ANGSTROM = 10.0

_ELEMENTS = frozenset(chemical_symbols[1:])


def atom_symbol(code: str) -> str:
    """
    Chemical symbol for an atom code.

    The leading letters are tried as a two-letter element ("SI" → "Si"),
    then the first letter alone ("OW" → "O").  Codes that match neither
    map to "X".
    """
    letters = ""
    for ch in code:
        if not ch.isalpha():
            break
        letters += ch

    if len(letters) >= 2 and letters[:2].capitalize() in _ELEMENTS:
        return letters[:2].capitalize()
    if letters and letters[0].upper() in _ELEMENTS:
        return letters[0].upper()
    return "X"


def _system_frame(components: Sequence[Component], box) -> tuple[Coord, Coord]:
    """
    Shift that puts every component box at non-negative coordinates, and
    the system box.  A box given by the caller replaces the merged one.
    """
    lower, upper = system_bounds(components)
    shift = -lower
    if shift != Coord.ORIGIN:
        log.info(f"Shifting system by {shift} so that all boxes start at zero")
    return shift, (upper - lower if box is None else as_coord(box))


# ---------------------------------------------------------------------------
# ase.Atoms conversion
# ---------------------------------------------------------------------------


def components_to_atoms(
    components: Sequence[Component],
    box: Coord | None = None,
) -> Atoms:
    """
    Build one ase.Atoms object holding every atom of every component.

    Parameters
    ----------
    components:
        Components in output order.  Residues are numbered globally across
        all of them.
    box:
        Simulation box in nm.  Defaults to merge_box(components).  If a
        component box reaches below zero, every position is shifted so that
        the system box starts at the origin.

    Returns
    -------
    Atoms
        Positions and cell in Å with periodic boundaries, and the arrays
        "residuenames", "atomtypes" and "residuenumbers" used by ase's
        GROMACS writer.
    """
    symbols: list[str] = []
    positions: list[tuple[float, float, float]] = []
    residuenames: list[str] = []
    atomtypes: list[str] = []
    residuenumbers: list[int] = []
    shift, system_box = _system_frame(components, box)

    residue_offset = 0
    for component in components:
        for current in component.iter_atoms():
            symbols.append(atom_symbol(current.atom.code))
            positions.append((current.position + shift).to_tuple())
            residuenames.append(current.residue.code)
            atomtypes.append(current.atom.code)
            residuenumbers.append(
                (residue_offset + current.residue_index + 1) % NUMBER_WRAP
            )
        residue_offset += component.num_residues

    cell = system_box.to_array() * NM_TO_ANGSTROM
    atoms = Atoms(
        symbols=symbols,
        positions=np.asarray(positions, dtype=float).reshape(-1, 3) * NM_TO_ANGSTROM,
        cell=cell,
        pbc=True,
    )
    atoms.set_array("residuenames", np.array(residuenames, dtype=str))
    atoms.set_array("atomtypes", np.array(atomtypes, dtype=str))
    atoms.set_array("residuenumbers", np.array(residuenumbers, dtype=int))
    return atoms


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def write_gro(
    path: str | Path,
    components: Sequence[Component],
    title: str | None = None,
    box: Coord | None = None,
) -> int:
    """
    Write components to a GROMACS .gro file, one atom per line.

    Residue and atom numbers start at 1 and wrap modulo 100 000.
    Residue codes and atom codes are cut to five characters.
    Positions are shifted as in components_to_atoms.

    Returns
    -------
    int
        Number of atoms written.
    """
    path = Path(path)
    total = sum(c.num_atoms for c in components)
    shift, system_box = _system_frame(components, box)

    with path.open("w", encoding="utf-8") as fh:
        fh.write(f"{title or 'Generated by mdsub'}\n")
        fh.write(f"{total:5d}\n")

        atom_number = 0
        residue_offset = 0
        for component in components:
            for current in component.iter_atoms():
                atom_number += 1
                residue_number = residue_offset + current.residue_index + 1
                x, y, z = current.position + shift
                fh.write(
                    f"{residue_number % NUMBER_WRAP:5d}"
                    f"{current.residue.code[:5]:<5s}"
                    f"{current.atom.code[:5]:>5s}"
                    f"{atom_number % NUMBER_WRAP:5d}"
                    f"{x:8.3f}{y:8.3f}{z:8.3f}\n"
                )
            residue_offset += component.num_residues

        fh.write(
            f"{system_box.x:10.5f}{system_box.y:10.5f}{system_box.z:10.5f}\n"
        )

    log.info(f"Wrote {atom_number} atoms to {path}")
    return atom_number


def write_system(
    path: str | Path,
    components: Sequence[Component],
    title: str | None = None,
    format: str | None = None,
) -> int:
    """
    Write components to path.

    A .gro suffix (or format="gro") is written by write_gro.  Any other
    file goes through ase.io.write with the given format, or the format ase
    guesses from the suffix.  The title is only used for .gro files.

    Returns
    -------
    int
        Number of atoms written.
    """
    path = Path(path)
    if format in ("gro", "gromacs") or (format is None and path.suffix == ".gro"):
        return write_gro(path, components, title=title)

    atoms = components_to_atoms(components)
    write(str(path), atoms, format=format)
    log.info(f"Wrote {len(atoms)} atoms to {path}")
    return len(atoms)
