"""
mdsub/config.py

Load and validate a system definition (YAML) into typed configuration
models, and turn it into components.

Usage
-----
    from mdsub.config import load_config

    cfg = load_config("system.yaml")
    components = cfg.build()
    print(cfg.output)

All models use pydantic v2.  Validation covers the structure of the file
(known residues, the dimensions each shape needs, one distribution per
component).  Numeric domains (positive sizes, angles in (0, 180)) are
checked again by the geometry classes when the components are built.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import numpy as np
import yaml
from pydantic import BaseModel, field_validator, model_validator

from mdsub.geometry import surface, volume
from mdsub.geometry.coord import Coord, Direction
from mdsub.system.component import Component, build_component
from mdsub.system.residue import Atom, ResidueTemplate


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class ResidueConfig(BaseModel):
    """
    One residue template.

    Atoms are given as [code, x, y, z] rows with positions relative to the
    point the residue is placed on.
    """

    code: str
    atoms: list[tuple[str, float, float, float]]

    @field_validator("atoms")
    @classmethod
    def _at_least_one_atom(cls, v: list) -> list:
        if len(v) == 0:
            raise ValueError("A residue needs at least one atom.")
        return v

    def to_template(self) -> ResidueTemplate:
        return ResidueTemplate(
            code=self.code,
            atoms=tuple(Atom(name, Coord(x, y, z)) for name, x, y, z in self.atoms),
        )


class LatticeConfig(BaseModel):
    """
    Sheet distribution for surface components.

    type options
    ------------
    "hexagonal"     needs `a`
    "triclinic"     needs `a`, `b` and `gamma` (degrees)
    "poisson_disc"  needs `density` (points per unit area)
    "blue_noise"    needs `number`
    """

    type: Literal["hexagonal", "triclinic", "poisson_disc", "blue_noise"]
    a: float | None = None
    b: float | None = None
    gamma: float | None = None
    density: float | None = None
    number: int | None = None

    @model_validator(mode="after")
    def _required_parameters(self) -> "LatticeConfig":
        required = {
            "hexagonal": ("a",),
            "triclinic": ("a", "b", "gamma"),
            "poisson_disc": ("density",),
            "blue_noise": ("number",),
        }[self.type]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(
                f"Lattice type '{self.type}' requires {', '.join(missing)}."
            )
        return self

    def to_distribution(self) -> surface.SheetDistribution:
        if self.type == "hexagonal":
            return surface.Hexagonal(self.a)
        if self.type == "triclinic":
            return surface.Triclinic(self.a, self.b, self.gamma)
        if self.type == "poisson_disc":
            return surface.PoissonDisc(self.density)
        return surface.BlueNoise(self.number)


class FillConfig(BaseModel):
    """Volume fill: exactly one of `count` or `density` (points per unit volume)."""

    count: int | None = None
    density: float | None = None

    @model_validator(mode="after")
    def _count_or_density_not_both(self) -> "FillConfig":
        if (self.count is None) == (self.density is None):
            raise ValueError("Provide exactly one of 'count' or 'density'.")
        return self

    def to_spec(self) -> volume.FillSpec:
        return volume.FillSpec(count=self.count, density=self.density)


SURFACE_SHAPES = {"sheet", "circle", "surface_cylinder", "surface_cuboid"}
VOLUME_SHAPES = {"cylinder", "cuboid", "spheroid"}


class ComponentConfig(BaseModel):
    """
    One component of the system.

    Which dimensions are needed depends on `shape`:

        sheet               size: [length, width]
        circle              radius
        surface_cylinder    radius, height   (optional cap: top|bottom|both)
        surface_cuboid      size: [x, y, z]  (optional sides: [x0, ..., z1])
        cylinder            radius, height
        cuboid              size: [x, y, z]
        spheroid            radius

    Surface shapes take a `lattice`, volume shapes a `fill`.
    """

    residue: str
    shape: Literal[
        "sheet", "circle", "surface_cylinder", "surface_cuboid",
        "cylinder", "cuboid", "spheroid",
    ]
    name: str | None = None
    size: list[float] | None = None
    radius: float | None = None
    height: float | None = None
    direction: Literal["x", "y", "z"] = "z"
    cap: Literal["top", "bottom", "both"] | None = None
    sides: list[Literal["x0", "x1", "y0", "y1", "z0", "z1"]] | None = None
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lattice: LatticeConfig | None = None
    fill: FillConfig | None = None

    @field_validator("direction", mode="before")
    @classmethod
    def _lowercase_direction(cls, v):
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _distribution_matches_shape(self) -> "ComponentConfig":
        if self.shape in SURFACE_SHAPES:
            if self.lattice is None or self.fill is not None:
                raise ValueError(
                    f"Shape '{self.shape}' takes a 'lattice' and no 'fill'."
                )
        elif self.fill is None or self.lattice is not None:
            raise ValueError(f"Shape '{self.shape}' takes a 'fill' and no 'lattice'.")
        return self

    @model_validator(mode="after")
    def _dimensions_present(self) -> "ComponentConfig":
        if self.shape == "sheet":
            self._require_size(2)
        elif self.shape in ("surface_cuboid", "cuboid"):
            self._require_size(3)
        else:
            self._require("radius")
            if self.shape in ("surface_cylinder", "cylinder"):
                self._require("height")
        return self

    def _require(self, name: str) -> None:
        if getattr(self, name) is None:
            raise ValueError(f"Shape '{self.shape}' requires '{name}'.")

    def _require_size(self, n: int) -> None:
        if self.size is None or len(self.size) != n:
            raise ValueError(
                f"Shape '{self.shape}' requires 'size' with {n} values, "
                f"got {self.size}."
            )

    def to_shape(self):
        """Build the geometry object for this component."""
        origin = Coord(*self.origin)
        direction = Direction.parse(self.direction)

        if self.shape == "sheet":
            return surface.Sheet(self.size[0], self.size[1], direction, origin)
        if self.shape == "circle":
            return surface.Circle(self.radius, direction, origin)
        if self.shape == "surface_cylinder":
            cap = surface.CylinderCap(self.cap) if self.cap else None
            return surface.SurfaceCylinder(
                self.radius, self.height, direction, cap, origin
            )
        if self.shape == "surface_cuboid":
            return surface.SurfaceCuboid(
                Coord(*self.size), surface.Sides.parse(self.sides), origin
            )
        if self.shape == "cylinder":
            return volume.Cylinder(self.radius, self.height, direction, origin)
        if self.shape == "cuboid":
            return volume.Cuboid(Coord(*self.size), origin)
        return volume.Spheroid(self.radius, origin)

    def to_distribution(self):
        if self.lattice is not None:
            return self.lattice.to_distribution()
        return self.fill.to_spec()


# ---------------------------------------------------------------------------
# Root config model
# ---------------------------------------------------------------------------


class SystemConfig(BaseModel):
    """
    Root configuration object loaded from a system YAML file.

    Example
    -------
    .. code-block:: yaml

        output: graphene.gro
        seed: 42

        residues:
          - code: GRPH
            atoms:
              - [C, 0.071, 0.071, 0.071]

        components:
          - name: sheet
            residue: GRPH
            shape: sheet
            size: [5.0, 5.0]
            lattice:
              type: hexagonal
              a: 0.142
    """

    output: str = "system.gro"
    seed: int | None = None
    residues: list[ResidueConfig]
    components: list[ComponentConfig]

    @model_validator(mode="after")
    def _at_least_one_component(self) -> "SystemConfig":
        if len(self.components) == 0:
            raise ValueError("At least one component must be defined.")
        return self

    @model_validator(mode="after")
    def _unique_residue_codes(self) -> "SystemConfig":
        codes = [r.code for r in self.residues]
        if len(codes) != len(set(codes)):
            raise ValueError(f"Residue codes must be unique, got: {codes}")
        return self

    @model_validator(mode="after")
    def _known_residues(self) -> "SystemConfig":
        codes = {r.code for r in self.residues}
        unknown = sorted({c.residue for c in self.components} - codes)
        if unknown:
            raise ValueError(
                f"Components reference undefined residues: {unknown}"
            )
        return self

    def templates(self) -> dict[str, ResidueTemplate]:
        """Residue templates by code, each built once and shared."""
        return {r.code: r.to_template() for r in self.residues}

    def build(self, rng: np.random.Generator | None = None) -> list[Component]:
        """
        Build every component in order.

        One generator is drawn from `seed` (or `rng`) and each component
        gets its own child generator, so the components are independent.
        """
        if rng is None:
            rng = np.random.default_rng(self.seed)
        templates = self.templates()
        children = rng.spawn(len(self.components))

        return [
            build_component(
                comp.to_shape(),
                templates[comp.residue],
                comp.to_distribution(),
                rng=child,
                name=comp.name,
            )
            for comp, child in zip(self.components, children)
        ]


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> SystemConfig:
    """
    Load and validate a system YAML file.

    Raises
    ------
    FileNotFoundError
        If the YAML file does not exist.
    ValueError
        If the file is empty or its top level is not a mapping.
    pydantic.ValidationError
        If the YAML content fails validation.
    yaml.YAMLError
        If the file is not valid YAML.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)

    if raw is None:
        raise ValueError(
            f"{path} contains no YAML keys.\n"
            "Generate a template with: mdsub init > system.yaml"
        )
    if not isinstance(raw, dict):
        raise ValueError(
            f"Expected a YAML mapping at the top level, got {type(raw).__name__}."
        )

    return SystemConfig.model_validate(raw)


EXAMPLE_CONFIG = """\
# system.yaml: mdsub system definition
# Lengths are in nm.

output: system.gro            # .gro is written in GROMACS format
seed: 42                      # omit for a different random system every run

# ---------------------------------------------------------------------------
# Residue templates: [atom code, x, y, z] relative to each placement point
# ---------------------------------------------------------------------------
residues:
  - code: GRPH
    atoms:
      - [C, 0.071, 0.071, 0.071]

  - code: SIO
    atoms:
      - [O1, 0.1125, 0.075, 0.451]
      - [SI, 0.1125, 0.075, 0.300]
      - [O2, 0.1125, 0.075, 0.149]

  - code: SOL
    atoms:
      - [OW, 0.0, 0.0, 0.0]

# ---------------------------------------------------------------------------
# Components, built in order
# ---------------------------------------------------------------------------
components:
  - name: substrate
    residue: SIO
    shape: sheet
    size: [5.0, 5.0]
    lattice:
      type: triclinic
      a: 0.45
      b: 0.45
      gamma: 60

  - name: graphene
    residue: GRPH
    shape: sheet
    size: [5.0, 5.0]
    origin: [0.0, 0.0, 1.0]
    lattice:
      type: hexagonal
      a: 0.142

  - name: droplet
    residue: SOL
    shape: spheroid
    radius: 1.0
    origin: [2.5, 2.5, 2.5]
    fill:
      density: 33.0          # molecules per nm^3
"""


def generate_example_config(path: str | Path = "system.yaml.example") -> None:
    """Write a commented example system.yaml to disk."""
    path = Path(path)
    path.write_text(EXAMPLE_CONFIG)
