"""
mdsub.system

Residue templates, atom stamping and component assembly.

Submodules
----------
residue     Atom and ResidueTemplate; the resbase() shorthand
iterator    Lazy per-atom stream over a residue stamped on a point set
component   Immutable Component and build_component()
"""
