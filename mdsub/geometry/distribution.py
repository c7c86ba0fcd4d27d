"""
mdsub/geometry/distribution.py

Randomised 2-D point distributions on a rectangle [0, size_x) x [0, size_y).

Two generators
--------------
poisson_disc(density, size_x, size_y)
    Bridson's algorithm.  No two points are closer than
    r = sqrt(2 / (pi * density)), which makes the mean density match the
    requested one.  The number of points follows from the density.

    R. Bridson, "Fast Poisson disk sampling in arbitrary dimensions",
    ACM SIGGRAPH 2007 Sketches.

blue_noise(number, size_x, size_y)
    Mitchell's best-candidate algorithm.  Exactly `number` points, each the
    best of a fixed number of uniform candidates by distance to its nearest
    accepted neighbour.  There is no hard minimum separation.

    D. P. Mitchell, "Spectrally optimal sampling for distribution ray
    tracing", SIGGRAPH 1991.

Both return PointSets in the z = 0 plane and accept either a `seed` or an
explicit numpy Generator `rng` (see mdsub.geometry.rng).
"""

from __future__ import annotations

import logging
import math

import numpy as np

from mdsub.errors import (
    InvalidParameterError,
    UnderpopulatedError,
    require_count,
    require_positive,
)
from mdsub.geometry.coord import PointSet
from mdsub.geometry.rng import resolve_rng

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Candidate offsets tried around an active point before it is retired.
POISSON_MAX_ATTEMPTS = 30

# Uniform candidates drawn per accepted blue-noise point.
BLUE_NOISE_CANDIDATES = 10

# Poisson-disc output below this fraction of density * area is reported.
POISSON_MIN_FILL_FRACTION = 0.5


def poisson_disc_separation(density: float) -> float:
    """Minimum separation r = sqrt(2 / (pi * density)) for a target density."""
    density = require_positive("Poisson-disc density", density)
    return math.sqrt(2.0 / (math.pi * density))


# ---------------------------------------------------------------------------
# Poisson-disc (Bridson)
# ---------------------------------------------------------------------------

def poisson_disc(
    density: float,
    size_x: float,
    size_y: float,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    max_attempts: int = POISSON_MAX_ATTEMPTS,
    min_fill_fraction: float | None = POISSON_MIN_FILL_FRACTION,
) -> PointSet:
    """
    Sample a Poisson-disc point set at a target density.

    Parameters
    ----------
    density:
        Target number of points per unit area.  Must be positive.
    size_x, size_y:
        Rectangle dimensions.  Must be positive.
    seed, rng:
        Random source; see resolve_rng.
    max_attempts:
        Candidates tried around an active point before it is retired.  This
        cap is what guarantees termination.
    min_fill_fraction:
        If the result holds fewer than this fraction of density * area
        points, UnderpopulatedError is raised.  None disables the check.

    Returns
    -------
    PointSet
        Points with pairwise distance >= sqrt(2 / (pi * density)).

    Raises
    ------
    InvalidParameterError
        For non-positive density or sizes.
    UnderpopulatedError
        If the sample falls short of min_fill_fraction of the target.
    """
    rmin = poisson_disc_separation(density)
    size_x = require_positive("Poisson-disc size along x", size_x)
    size_y = require_positive("Poisson-disc size along y", size_y)
    max_attempts = require_count("Poisson-disc attempt cap", max_attempts)
    if max_attempts < 1:
        raise InvalidParameterError("Poisson-disc attempt cap must be >= 1.")
    rng = resolve_rng(seed, rng)

    rmin_sq = rmin * rmin
    cell = rmin / math.sqrt(2.0)
    nx_cells = max(1, math.ceil(size_x / cell))
    ny_cells = max(1, math.ceil(size_y / cell))

    # Each cell holds at most one point since its diagonal equals rmin
    grid = np.full((nx_cells, ny_cells), -1, dtype=int)
    points: list[tuple[float, float]] = []
    active: list[int] = []

    def cell_of(x: float, y: float) -> tuple[int, int]:
        return min(int(x / cell), nx_cells - 1), min(int(y / cell), ny_cells - 1)

    def is_free(x: float, y: float) -> bool:
        i, j = cell_of(x, y)
        for ii in range(max(i - 2, 0), min(i + 3, nx_cells)):
            for jj in range(max(j - 2, 0), min(j + 3, ny_cells)):
                k = grid[ii, jj]
                if k >= 0:
                    px, py = points[k]
                    if (px - x) ** 2 + (py - y) ** 2 < rmin_sq:
                        return False
        return True

    def add(x: float, y: float) -> None:
        grid[cell_of(x, y)] = len(points)
        active.append(len(points))
        points.append((x, y))

    add(float(rng.uniform(0.0, size_x)), float(rng.uniform(0.0, size_y)))

    while active:
        slot = int(rng.integers(len(active)))
        px, py = points[active[slot]]

        # Radii drawn uniformly by area within the annulus [r, 2r)
        radii = np.sqrt(rng.uniform(rmin_sq, 4.0 * rmin_sq, size=max_attempts))
        angles = rng.uniform(0.0, 2.0 * math.pi, size=max_attempts)
        xs = px + radii * np.cos(angles)
        ys = py + radii * np.sin(angles)

        for x, y in zip(xs.tolist(), ys.tolist()):
            if 0.0 <= x < size_x and 0.0 <= y < size_y and is_free(x, y):
                add(x, y)
                break
        else:
            active[slot] = active[-1]
            active.pop()

    result = PointSet([(x, y, 0.0) for x, y in points])
    expected = density * size_x * size_y
    log.debug(
        f"Poisson-disc sample: {len(result)} points "
        f"(target {expected:.1f}, separation {rmin:.4g})"
    )

    if min_fill_fraction is not None:
        threshold = min_fill_fraction * expected
        if threshold >= 1.0 and len(result) < threshold:
            raise UnderpopulatedError(
                f"Poisson-disc sampling produced {len(result)} points, below "
                f"{min_fill_fraction:.0%} of the {expected:.1f} expected for "
                f"density {density:g} on a {size_x:g} x {size_y:g} area.",
                points=result,
                expected=expected,
            )

    return result


# ---------------------------------------------------------------------------
# Blue noise (Mitchell's best candidate)
# ---------------------------------------------------------------------------

def blue_noise(
    number: int,
    size_x: float,
    size_y: float,
    *,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    candidates: int = BLUE_NOISE_CANDIDATES,
) -> PointSet:
    """
    Sample exactly `number` well-spread points with Mitchell's algorithm.

    Parameters
    ----------
    number:
        Number of points to produce.  Zero gives an empty set.
    size_x, size_y:
        Rectangle dimensions.  Must be positive.
    seed, rng:
        Random source; see resolve_rng.
    candidates:
        Uniform candidates drawn for every point after the first.

    Returns
    -------
    PointSet
        Exactly `number` points.
    """
    number = require_count("Blue-noise point count", number)
    size_x = require_positive("Blue-noise size along x", size_x)
    size_y = require_positive("Blue-noise size along y", size_y)
    candidates = require_count("Blue-noise candidate count", candidates)
    if candidates < 1:
        raise InvalidParameterError("Blue-noise candidate count must be >= 1.")
    rng = resolve_rng(seed, rng)

    size = np.array([size_x, size_y])
    accepted = np.empty((number, 2))

    for i in range(number):
        if i == 0:
            accepted[0] = rng.random(2) * size
            continue

        trial = rng.random((candidates, 2)) * size
        diff = trial[:, None, :] - accepted[None, :i, :]
        nearest_sq = np.einsum("ijk,ijk->ij", diff, diff).min(axis=1)
        accepted[i] = trial[int(np.argmax(nearest_sq))]

    log.debug(f"Blue-noise sample: {number} points from {candidates} candidates each")
    return PointSet(np.column_stack([accepted, np.zeros(number)]))
