"""
mdsub/geometry/rng.py

Random-number source handling shared by every stochastic generator.

Generators never touch hidden global state.  Each call takes either a
`seed` (a fresh, reproducible numpy Generator is created for that call) or
an explicit `rng` handle.  With neither, a new Generator seeded from OS
entropy is created.

A single np.random.Generator is not safe to share between threads without
external locking.  Pass an independent Generator to each concurrent call,
for example from `np.random.default_rng(seed).spawn(n)`.
"""

from __future__ import annotations

import numpy as np

from mdsub.errors import InvalidParameterError


def resolve_rng(
    seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> np.random.Generator:
    """
    Return the random generator to use for one generation call.

    Parameters
    ----------
    seed:
        Seed for a fresh generator.  Mutually exclusive with rng.
    rng:
        An existing generator to draw from.  It is advanced in place.

    Raises
    ------
    InvalidParameterError
        If both seed and rng are given.
    """
    if seed is not None and rng is not None:
        raise InvalidParameterError("Pass either 'seed' or 'rng', not both.")
    if rng is not None:
        return rng
    return np.random.default_rng(seed)
