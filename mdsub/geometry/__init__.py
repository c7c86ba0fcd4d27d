"""
mdsub.geometry

Point generation and shape geometry.

Submodules
----------
coord         Coord, Direction and the immutable PointSet
rng           Resolve a seed or explicit numpy Generator for one call
lattice       Crystal bases and periodic 2-D lattices (hexagonal, triclinic)
distribution  Poisson-disc (Bridson) and blue-noise (Mitchell) samples
volume        Cylinder, Cuboid, Spheroid: containment, volume, uniform fill
surface       Sheets, circles, cylinder mantles and cuboid faces populated
              from a lattice or random sheet distribution
"""
