from __future__ import annotations

import textwrap

import numpy as np
import pytest
import yaml


def _write(tmp_path, data) -> str:
    path = tmp_path / "system.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def _minimal(**component) -> dict:
    comp = {
        "residue": "SOL",
        "shape": "cuboid",
        "size": [1.0, 1.0, 1.0],
        "fill": {"count": 5},
    }
    comp.update(component)
    return {
        "residues": [{"code": "SOL", "atoms": [["OW", 0.0, 0.0, 0.0]]}],
        "components": [comp],
    }


class TestLoadConfig:

    def test_loads_fixture(self, system_yaml):
        from mdsub.config import load_config

        cfg = load_config(system_yaml)
        assert cfg.output == "system.gro"
        assert cfg.seed == 7
        assert [c.name for c in cfg.components] == ["graphene", "water"]

    def test_missing_file(self, tmp_path):
        from mdsub.config import load_config

        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        from mdsub.config import load_config

        path = tmp_path / "system.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="no YAML keys"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        from mdsub.config import load_config

        path = tmp_path / "system.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidation:

    def test_unknown_residue(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        with pytest.raises(ValidationError, match="undefined residues"):
            load_config(_write(tmp_path, _minimal(residue="XYZ")))

    def test_duplicate_residue_codes(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal()
        data["residues"].append({"code": "SOL", "atoms": [["HW", 0.1, 0.0, 0.0]]})
        with pytest.raises(ValidationError, match="unique"):
            load_config(_write(tmp_path, data))

    def test_lattice_on_volume_shape(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal(lattice={"type": "hexagonal", "a": 0.142})
        with pytest.raises(ValidationError):
            load_config(_write(tmp_path, data))

    def test_surface_shape_needs_lattice(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal(shape="sheet", size=[1.0, 1.0])
        with pytest.raises(ValidationError, match="lattice"):
            load_config(_write(tmp_path, data))

    def test_missing_dimension(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal(shape="cylinder", size=None, radius=1.0)
        with pytest.raises(ValidationError, match="height"):
            load_config(_write(tmp_path, data))

    def test_wrong_size_length(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        with pytest.raises(ValidationError, match="3 values"):
            load_config(_write(tmp_path, _minimal(size=[1.0, 1.0])))

    def test_fill_needs_exactly_one(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal(fill={"count": 5, "density": 1.0})
        with pytest.raises(ValidationError, match="exactly one"):
            load_config(_write(tmp_path, data))

    def test_lattice_parameters_required(self, tmp_path):
        from pydantic import ValidationError
        from mdsub.config import load_config

        data = _minimal(
            shape="sheet", size=[1.0, 1.0], fill=None,
            lattice={"type": "triclinic", "a": 0.4},
        )
        with pytest.raises(ValidationError, match="b, gamma"):
            load_config(_write(tmp_path, data))

    def test_direction_is_case_insensitive(self, tmp_path):
        from mdsub.config import load_config

        data = _minimal(shape="cylinder", size=None, radius=1.0, height=1.0, direction="Y")
        cfg = load_config(_write(tmp_path, data))
        assert cfg.components[0].direction == "y"


class TestBuild:

    def test_builds_components_in_order(self, system_yaml):
        from mdsub.config import load_config
        from mdsub.geometry.coord import Coord

        components = load_config(system_yaml).build()

        assert [c.name for c in components] == ["graphene", "water"]
        assert components[0].residue.code == "GRPH"
        assert components[1].num_atoms == 25
        assert components[1].origin == Coord(0.0, 0.0, 0.5)

    def test_seed_makes_build_reproducible(self, system_yaml):
        from mdsub.config import load_config

        cfg = load_config(system_yaml)
        first, second = cfg.build(), cfg.build()
        assert first[1].points == second[1].points

    def test_explicit_rng(self, system_yaml):
        from mdsub.config import load_config

        cfg = load_config(system_yaml)
        a = cfg.build(rng=np.random.default_rng(1))
        b = cfg.build(rng=np.random.default_rng(2))
        assert a[1].points != b[1].points

    def test_templates_are_shared(self, tmp_path):
        from mdsub.config import load_config

        data = _minimal()
        data["components"].append(dict(data["components"][0]))
        components = load_config(_write(tmp_path, data)).build()
        assert components[0].residue is components[1].residue

    @pytest.mark.parametrize("component", [
        {"shape": "circle", "radius": 1.0, "lattice": {"type": "poisson_disc", "density": 10.0}},
        {"shape": "surface_cylinder", "radius": 0.5, "height": 1.0, "cap": "both",
         "lattice": {"type": "blue_noise", "number": 30}},
        {"shape": "surface_cuboid", "size": [1.0, 1.0, 1.0], "sides": ["z0", "z1"],
         "lattice": {"type": "triclinic", "a": 0.3, "b": 0.3, "gamma": 90}},
        {"shape": "cylinder", "radius": 1.0, "height": 1.0, "direction": "x",
         "fill": {"density": 10.0}},
        {"shape": "spheroid", "radius": 1.0, "fill": {"count": 12}},
    ])
    def test_every_shape(self, tmp_path, component):
        from mdsub.config import load_config

        data = _minimal()
        base = {"residue": "SOL"}
        base.update(component)
        data["components"] = [base]

        components = load_config(_write(tmp_path, data)).build(np.random.default_rng(0))
        assert components[0].num_atoms > 0

    def test_invalid_numbers_fail_at_build(self, tmp_path):
        from mdsub.config import load_config
        from mdsub.errors import InvalidParameterError

        cfg = load_config(_write(tmp_path, _minimal(size=[1.0, -1.0, 1.0])))
        with pytest.raises(InvalidParameterError):
            cfg.build()


class TestExampleConfig:

    def test_example_round_trip(self, tmp_path):
        from mdsub.config import generate_example_config, load_config

        path = tmp_path / "system.yaml"
        generate_example_config(path)
        cfg = load_config(path)

        assert [c.name for c in cfg.components] == ["substrate", "graphene", "droplet"]
        components = cfg.build()
        assert all(c.num_atoms > 0 for c in components)
