"""Render a prompt file to its final text."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from promptweave_core import ConfigError, TemplateParseError, TemplateTooLargeError

from ..prompt_file import PromptFileError, load_prompt_file
from ..util import build_engine, collect_values


def render(
    prompt_file: Path = typer.Argument(
        ..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Markdown prompt file"
    ),
    set_values: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="Value as key=value (repeatable)"
    ),
    values_file: Optional[Path] = typer.Option(
        None, "--values", exists=True, dir_okay=False, help="JSON object of values"
    ),
    use_preview_values: bool = typer.Option(
        False, "--preview-values", help="Start from each variable's preview/default value"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write result to this file"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config (TOML)"),
) -> None:
    """Render PROMPT_FILE with the given values."""
    try:
        prompt = load_prompt_file(prompt_file)
        engine = build_engine(config_path)
    except (PromptFileError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    values = collect_values(prompt.variables, set_values, values_file, use_preview_values)
    try:
        text = engine.render(prompt.template, values, prompt.variables)
    except (TemplateParseError, TemplateTooLargeError) as e:
        # Only reachable with fallback_on_error = false
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output is not None:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {output}", err=True)
    else:
        typer.echo(text)
