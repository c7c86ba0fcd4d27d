from __future__ import annotations

import math

import numpy as np
import pytest


EPS = 1e-6


class TestCylinderContainment:
    """Cylinder of radius 2, height 5 with its bottom cap centred at (1, 1, 1)."""

    @pytest.fixture
    def cylinder(self):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import Cylinder
        return Cylinder(radius=2.0, height=5.0, origin=Coord(1.0, 1.0, 1.0))

    @pytest.mark.parametrize("point", [
        (3.0, 1.0, 1.0),      # radius R, height 0
        (1.0, 3.0, 6.0),      # radius R, height H
        (1.0, 1.0, 3.5),      # on the axis
        (-1.0, 1.0, 4.0),     # radius R on the far side
    ])
    def test_closed_boundary_is_inside(self, cylinder, point):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import contains

        assert contains(cylinder, Coord(*point))

    @pytest.mark.parametrize("point", [
        (3.0 + EPS, 1.0, 3.0),    # radius R + eps
        (1.0, 1.0, 6.0 + EPS),    # height H + eps
        (1.0, 1.0, 1.0 - EPS),    # height -eps
    ])
    def test_just_outside_is_rejected(self, cylinder, point):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import contains

        assert not contains(cylinder, Coord(*point))

    def test_alignment_along_x(self):
        from mdsub.geometry.coord import Coord, Direction
        from mdsub.geometry.volume import Cylinder, contains

        cyl = Cylinder(radius=1.0, height=4.0, alignment=Direction.X)
        assert contains(cyl, Coord(4.0, 1.0, 0.0))
        assert not contains(cyl, Coord(0.0, 0.0, 2.0))
        assert not contains(cyl, Coord(-EPS, 0.0, 0.0))


class TestOtherContainment:

    def test_cuboid_boundary(self):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import Cuboid, contains

        box = Cuboid(Coord(1.0, 2.0, 3.0), origin=Coord(1.0, 1.0, 1.0))
        assert contains(box, Coord(1.0, 1.0, 1.0))
        assert contains(box, Coord(2.0, 3.0, 4.0))
        assert not contains(box, Coord(2.0 + EPS, 2.0, 2.0))
        assert not contains(box, Coord(1.5, 1.0 - EPS, 2.0))

    def test_spheroid_boundary(self):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import Spheroid, contains

        ball = Spheroid(2.0, origin=Coord(1.0, 0.0, 0.0))
        assert contains(ball, Coord(3.0, 0.0, 0.0))
        assert contains(ball, Coord(1.0, 0.0, -2.0))
        assert not contains(ball, Coord(1.0, 2.0 + EPS, 0.0))


class TestMeasures:

    def test_volumes(self):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import Cuboid, Cylinder, Spheroid, volume

        assert volume(Cylinder(2.0, 3.0)) == pytest.approx(math.pi * 4.0 * 3.0)
        assert volume(Cuboid(Coord(1.0, 2.0, 3.0))) == pytest.approx(6.0)
        assert volume(Spheroid(3.0)) == pytest.approx(4.0 / 3.0 * math.pi * 27.0)

    def test_cylinder_box_runs_along_alignment(self):
        from mdsub.geometry.coord import Coord, Direction
        from mdsub.geometry.volume import Cylinder, box_size

        assert box_size(Cylinder(1.0, 5.0, Direction.Z)) == Coord(2.0, 2.0, 5.0)
        assert box_size(Cylinder(1.0, 5.0, Direction.X)) == Coord(5.0, 2.0, 2.0)

    def test_unknown_shape_rejected(self):
        from mdsub.errors import UnsupportedCombinationError
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import contains

        with pytest.raises(UnsupportedCombinationError):
            contains("sphere", Coord(0.0, 0.0, 0.0))


class TestShapeParameters:

    @pytest.mark.parametrize("factory", [
        lambda v: v.Cylinder(math.inf, 1.0),
        lambda v: v.Cylinder(1.0, math.nan),
        lambda v: v.Cuboid((1.0, math.inf, 1.0)),
        lambda v: v.Spheroid(math.nan),
    ])
    def test_non_finite_dimensions_rejected(self, factory):
        from mdsub.errors import InvalidParameterError
        from mdsub.geometry import volume

        with pytest.raises(InvalidParameterError):
            factory(volume)


class TestFillSpec:

    def test_count_and_density_are_exclusive(self):
        from mdsub.errors import InvalidParameterError
        from mdsub.geometry.volume import FillSpec

        with pytest.raises(InvalidParameterError):
            FillSpec()
        with pytest.raises(InvalidParameterError):
            FillSpec(count=3, density=1.0)

    @pytest.mark.parametrize("kwargs", [
        {"count": -1}, {"count": math.inf}, {"density": 0.0}, {"density": -2.0},
        {"density": math.inf}, {"density": math.nan},
    ])
    def test_out_of_range_rejected(self, kwargs):
        from mdsub.errors import InvalidParameterError
        from mdsub.geometry.volume import FillSpec

        with pytest.raises(InvalidParameterError):
            FillSpec(**kwargs)

    def test_density_rounds_to_nearest(self):
        from mdsub.geometry.volume import FillSpec

        assert FillSpec(density=1.0).num_points(2.4) == 2
        assert FillSpec(density=1.0).num_points(2.5) == 3
        assert FillSpec(count=7).num_points(100.0) == 7


class TestFill:

    @pytest.mark.parametrize("factory", [
        lambda v: v.Cylinder(1.5, 2.0),
        lambda v: v.Cylinder(1.5, 2.0, alignment="y"),
        lambda v: v.Cuboid((1.0, 2.0, 3.0)),
        lambda v: v.Spheroid(1.2),
    ])
    def test_filled_points_are_inside(self, rng, factory):
        from mdsub.geometry import volume
        from mdsub.geometry.volume import FillSpec, contains, fill

        shape = factory(volume)
        points = fill(shape, FillSpec(count=300), rng=rng)

        assert len(points) == 300
        assert all(contains(shape, p + shape.origin) for p in points)

    def test_points_are_relative_to_origin(self, rng):
        from mdsub.geometry.coord import Coord
        from mdsub.geometry.volume import Cuboid, FillSpec, fill

        shape = Cuboid((1.0, 1.0, 1.0), origin=Coord(10.0, 10.0, 10.0))
        xyz = fill(shape, FillSpec(count=50), rng=rng).array
        assert np.all((xyz >= 0.0) & (xyz <= 1.0))

    def test_density_fill_count(self, rng):
        from mdsub.geometry.volume import Cuboid, FillSpec, fill

        points = fill(Cuboid((2.0, 2.0, 2.0)), FillSpec(density=10.0), rng=rng)
        assert len(points) == 80

    def test_density_fill_of_zero_points_fails(self, rng):
        from mdsub.errors import EmptyResultError
        from mdsub.geometry.volume import FillSpec, Spheroid, fill

        with pytest.raises(EmptyResultError):
            fill(Spheroid(0.1), FillSpec(density=1.0), rng=rng)

    def test_zero_count_is_empty(self, rng):
        from mdsub.geometry.volume import Cuboid, FillSpec, fill

        assert len(fill(Cuboid((1.0, 1.0, 1.0)), FillSpec(count=0), rng=rng)) == 0

    def test_uniform_by_volume(self):
        from mdsub.geometry.volume import FillSpec, Spheroid, fill

        points = fill(Spheroid(1.0), FillSpec(count=20000), seed=4)
        r = np.linalg.norm(points.array, axis=1)
        # Half the volume of a unit ball lies outside radius 0.5 ** (1/3)
        assert np.mean(r > 0.5 ** (1.0 / 3.0)) == pytest.approx(0.5, abs=0.03)

    def test_non_fillspec_rejected(self, rng):
        from mdsub.errors import UnsupportedCombinationError
        from mdsub.geometry.surface import Hexagonal
        from mdsub.geometry.volume import Cuboid, fill

        with pytest.raises(UnsupportedCombinationError):
            fill(Cuboid((1.0, 1.0, 1.0)), Hexagonal(0.142), rng=rng)


class TestDegenerateShapes:

    @pytest.mark.parametrize("factory", [
        lambda v: v.Cylinder(0.0, 1.0),
        lambda v: v.Cylinder(1.0, -1.0),
        lambda v: v.Cuboid((1.0, 0.0, 1.0)),
        lambda v: v.Spheroid(-0.5),
    ])
    def test_rejected_at_construction(self, factory):
        from mdsub.errors import InvalidParameterError
        from mdsub.geometry import volume

        with pytest.raises(InvalidParameterError):
            factory(volume)
