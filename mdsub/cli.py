"""
mdsub/cli.py

Command-line interface for mdsub.

Commands
--------
  mdsub init      Write a commented example system.yaml (stdout or a file).
  mdsub build     Build every component in system.yaml and write the system.
  mdsub info      Build the components and print a summary without writing.

Usage
-----
    mdsub init [--output system.yaml]
    mdsub build [--config system.yaml] [--output system.gro] [--seed N] [--verbose]
    mdsub info  [--config system.yaml] [--seed N]
"""

from __future__ import annotations

import sys
import logging
from pathlib import Path

import click

# ---------------------------------------------------------------------------
# Logging setup, configured once at CLI entry and never at import time
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%H:%M:%S",
        level=level,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_config_option = click.option(
    "--config", "-c",
    default="system.yaml",
    show_default=True,
    type=click.Path(exists=False, dir_okay=False),
    help="Path to the system.yaml definition.",
)

_seed_option = click.option(
    "--seed", type=int, default=None,
    help="Random seed; overrides the seed in the config.",
)

_verbose_option = click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)


def _load(config: str):
    """Load the config or exit with code 1 and a readable message."""
    config_path = Path(config)
    if not config_path.exists():
        click.echo(f"Error: config file not found: {config_path}", err=True)
        raise SystemExit(1)

    try:
        from mdsub.config import load_config
        return load_config(config_path)
    except Exception as exc:
        click.echo(f"Error: config validation failed:\n  {exc}", err=True)
        raise SystemExit(1)


def _build(cfg, seed: int | None):
    """Build the components or exit with code 1 on a geometry error."""
    import numpy as np
    from mdsub.errors import GeometryError

    rng = np.random.default_rng(seed if seed is not None else cfg.seed)
    try:
        return cfg.build(rng=rng)
    except GeometryError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(package_name="mdsub")
def cli() -> None:
    """
    mdsub: build substrate and solvent geometries for molecular simulations.

    Start with `mdsub init > system.yaml`, edit the components, then run
    `mdsub build`.
    """


# ---------------------------------------------------------------------------
# mdsub init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "-o", default=None,
              type=click.Path(dir_okay=False),
              help="Write the example here instead of to stdout.")
def cmd_init(output: str | None) -> None:
    """
    Print a fully commented example system definition.

        mdsub init > system.yaml
    """
    from mdsub.config import EXAMPLE_CONFIG, generate_example_config

    if output is None:
        click.echo(EXAMPLE_CONFIG, nl=False)
        return

    output_path = Path(output)
    if output_path.exists() and output_path.stat().st_size > 0:
        click.echo(f"Error: {output_path} already exists.", err=True)
        raise SystemExit(1)

    generate_example_config(output_path)
    click.echo(f"✓ Example written: {output_path}")


# ---------------------------------------------------------------------------
# mdsub build
# ---------------------------------------------------------------------------

@cli.command("build")
@_config_option
@click.option("--output", "-o", default=None,
              type=click.Path(dir_okay=False),
              help="Output file; overrides the output in the config.")
@click.option("--title", default=None,
              help="Title line for .gro output.")
@_seed_option
@_verbose_option
def cmd_build(
    config: str,
    output: str | None,
    title: str | None,
    seed: int | None,
    verbose: bool,
) -> None:
    """
    Build every component and write the combined system.

    Components are written in the order they appear in the config, with
    residues numbered across the whole system.
    """
    _setup_logging(verbose)
    cfg = _load(config)
    components = _build(cfg, seed)

    from mdsub.io import write_system
    output_path = Path(output or cfg.output)
    try:
        n_atoms = write_system(output_path, components, title=title)
    except OSError as exc:
        click.echo(f"Error: could not write {output_path}: {exc}", err=True)
        raise SystemExit(1)

    click.echo(f"✓ {len(components)} components, {n_atoms} atoms → {output_path}")


# ---------------------------------------------------------------------------
# mdsub info
# ---------------------------------------------------------------------------

@cli.command("info")
@_config_option
@_seed_option
def cmd_info(config: str, seed: int | None) -> None:
    """
    Print each component with its residue count, atom count and box.
    """
    _setup_logging(verbose=False)
    cfg = _load(config)
    components = _build(cfg, seed)

    from mdsub.system.component import merge_box

    click.echo(f"{'component':<16} {'residue':<8} {'residues':>9} {'atoms':>9}  box (nm)")
    for i, component in enumerate(components):
        label = component.name or f"#{i}"
        code = component.residue.code if component.residue else "-"
        click.echo(
            f"{label:<16} {code:<8} {component.num_residues:>9d} "
            f"{component.num_atoms:>9d}  {component.box_size}"
        )

    total = sum(c.num_atoms for c in components)
    click.echo(f"\nTotal atoms: {total}")
    click.echo(f"System box:  {merge_box(components)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main() -> None:
    cli()


if __name__ == "__main__":
    main()
