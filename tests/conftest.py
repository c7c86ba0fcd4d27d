"""
tests/conftest.py

Shared pytest fixtures for the mdsub test suite.

Everything here is pure geometry.  No files are read except those a test
writes itself into tmp_path.

Fixture overview
----------------
Residues
    graphene_residue    One-atom GRPH template (C offset by half a bond)
    silica_residue      Three-atom SIO template (O1, SI, O2 stacked along z)
    water_residue       One-atom SOL template at the placement point

Crystals
    graphene_crystal    Hexagonal basis with a = 0.142 nm
    silica_crystal      Triclinic basis a = b = 0.45 nm, gamma = 60 degrees

Random sources
    rng                 np.random.Generator with a fixed seed, fresh per test

Config
    system_yaml         A tmp_path system.yaml with graphene and water
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import numpy as np
import pytest


# ---------------------------------------------------------------------------
# Residue fixtures
# ---------------------------------------------------------------------------

# Silica unit: silicon centred in the cell, oxygens one bond above and below
_SILICA_DX = 0.450
_SILICA_Z0 = 0.300
_SILICA_DZ = 0.151


@pytest.fixture(scope="session")
def graphene_residue():
    from mdsub.system.residue import resbase
    return resbase("GRPH", ("C", 0.071, 0.071, 0.071))


@pytest.fixture(scope="session")
def silica_residue():
    from mdsub.system.residue import resbase

    x, y, z = _SILICA_DX / 4.0, _SILICA_DX / 6.0, _SILICA_Z0
    return resbase(
        "SIO",
        ("O1", x, y, z + _SILICA_DZ),
        ("SI", x, y, z),
        ("O2", x, y, z - _SILICA_DZ),
    )


@pytest.fixture(scope="session")
def water_residue():
    from mdsub.system.residue import resbase
    return resbase("SOL", ("OW", 0.0, 0.0, 0.0))


# ---------------------------------------------------------------------------
# Crystal fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def graphene_crystal():
    from mdsub.geometry.lattice import Crystal
    return Crystal.hexagonal(0.142)


@pytest.fixture(scope="session")
def silica_crystal():
    from mdsub.geometry.lattice import Crystal
    return Crystal.triclinic(_SILICA_DX, _SILICA_DX, 60.0)


# ---------------------------------------------------------------------------
# Random source
# ---------------------------------------------------------------------------

@pytest.fixture
def rng() -> np.random.Generator:
    """Fresh seeded generator so that every test is reproducible."""
    return np.random.default_rng(20240611)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

_SYSTEM_YAML = textwrap.dedent("""\
    output: system.gro
    seed: 7

    residues:
      - code: GRPH
        atoms:
          - [C, 0.071, 0.071, 0.071]
      - code: SOL
        atoms:
          - [OW, 0.0, 0.0, 0.0]

    components:
      - name: graphene
        residue: GRPH
        shape: sheet
        size: [2.0, 2.0]
        lattice:
          type: hexagonal
          a: 0.142

      - name: water
        residue: SOL
        shape: cuboid
        size: [2.0, 2.0, 1.0]
        origin: [0.0, 0.0, 0.5]
        fill:
          count: 25
""")


@pytest.fixture
def system_yaml(tmp_path) -> Path:
    path = tmp_path / "system.yaml"
    path.write_text(_SYSTEM_YAML)
    return path
