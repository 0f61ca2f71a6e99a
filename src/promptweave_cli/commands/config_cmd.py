"""CLI commands for engine configuration."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from promptweave_core import ConfigError
from promptweave_core.config import create_example_config, write_engine_config

from ..util import load_config

app = typer.Typer(help="Engine configuration inspection and validation")


@app.command("show")
def show_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to configuration file (TOML)"),
) -> None:
    """Show the effective engine configuration with environment overrides applied."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"Error loading engine configuration: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(config.to_dict(), indent=2))


@app.command("validate")
def validate_config(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to configuration file (TOML)"),
) -> None:
    """Validate engine configuration."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.echo(f"✗ Configuration validation failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("✓ Configuration is valid")
    typer.echo(f"  Max template bytes: {config.max_template_bytes}")
    typer.echo(f"  Max nesting depth: {config.max_nesting_depth}")
    typer.echo(f"  Default format: {config.default_format}")
    typer.echo(f"  Fallback on error: {str(config.fallback_on_error).lower()}")


@app.command("init")
def init_config(
    output: Path = typer.Argument(..., help="Where to write the TOML file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the effective configuration (defaults plus environment overrides) as TOML."""
    if output.exists() and not force:
        typer.echo(f"Error: {output} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(1)
    try:
        write_engine_config(load_config(), output)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Wrote {output}")


@app.command("example")
def example_config() -> None:
    """Print a commented example configuration."""
    typer.echo(create_example_config())
