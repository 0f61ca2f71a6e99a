"""List the variables a prompt template references."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from promptweave_core import extract_variables, sync_variables

from ..prompt_file import PromptFileError, load_prompt_file

console = Console()


def variables(
    prompt_file: Path = typer.Argument(
        ..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Markdown prompt file"
    ),
    sync: bool = typer.Option(
        False, "--sync", help="Show definitions reconciled with the keys used in the template"
    ),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List variable keys found in PROMPT_FILE."""
    try:
        prompt = load_prompt_file(prompt_file)
    except PromptFileError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    keys = extract_variables(prompt.template)
    declared = {definition.key for definition in prompt.variables}

    if sync:
        synced = sync_variables(prompt.variables, prompt.template)
        if as_json:
            payload = [definition.model_dump(mode="json", exclude_none=True) for definition in synced]
            typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        table = Table(title=f"{prompt.name}: synced variables")
        table.add_column("Key", style="cyan")
        table.add_column("Label")
        table.add_column("Type")
        table.add_column("Default")
        table.add_column("Status")
        for definition in synced:
            status = "declared" if definition.key in declared else "[green]added[/green]"
            default = "" if definition.default is None else str(definition.default)
            table.add_row(definition.key, definition.label, definition.type.value, default, status)
        for key in sorted(declared - set(keys)):
            table.add_row(key, "", "", "", "[red]removed[/red]")
        console.print(table)
        return

    if as_json:
        typer.echo(json.dumps({"keys": keys, "undeclared": [k for k in keys if k not in declared]}, indent=2))
        return

    if not keys:
        typer.echo("No variables referenced")
        return

    table = Table(title=f"{prompt.name}: variables")
    table.add_column("Key", style="cyan")
    table.add_column("Declared")
    for key in keys:
        table.add_row(key, "yes" if key in declared else "[yellow]no[/yellow]")
    console.print(table)
