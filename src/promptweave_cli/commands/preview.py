"""Show the annotated structure of a prompt template."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from promptweave_core import (
    AnnotatedBlock,
    AnnotatedText,
    AnnotatedVariable,
    ConfigError,
    DisplayState,
    TemplateParseError,
    TemplateTooLargeError,
)
from promptweave_core.preview import AnnotatedNode

from ..prompt_file import PromptFileError, load_prompt_file
from ..util import build_engine, collect_values

console = Console()

STATE_STYLES = {
    DisplayState.EXPLICIT: "bold cyan",
    DisplayState.DEFAULT: "yellow",
    DisplayState.UNRESOLVED: "bold red",
}

_TEXT_PREVIEW_CHARS = 60


def _text_label(node: AnnotatedText) -> Text:
    shown = node.text if len(node.text) <= _TEXT_PREVIEW_CHARS else node.text[:_TEXT_PREVIEW_CHARS] + "…"
    return Text(repr(shown), style="" if node.visible else "dim")


def _variable_label(node: AnnotatedVariable) -> Text:
    label = Text()
    label.append(f"{{{{{node.key}}}}}", style="bold" if node.visible else "dim")
    label.append(" = ")
    label.append(repr(node.displayed_value), style=STATE_STYLES[node.display_state])
    label.append(f"  ({node.display_state.value})", style="dim")
    return label


def _block_label(node: AnnotatedBlock) -> Text:
    if node.comparison is not None:
        parts = [node.comparison.op, node.key]
        if node.comparison.other is not None:
            parts.append(node.comparison.other)
        if node.comparison.literal is not None:
            parts.append(repr(node.comparison.literal))
        condition = f"({' '.join(parts)})"
    else:
        condition = node.key
    label = Text(f"#{node.helper} {condition}", style="bold magenta" if node.visible else "dim")
    label.append(f" -> {str(node.condition_value).lower()}", style="green" if node.condition_value else "red")
    if node.comparison_error:
        label.append(f"  [{node.comparison_error}]", style="red")
    return label


def _add_children(parent: Tree, children: tuple) -> None:
    for child in children:
        _add_node(parent, child)


def _add_node(parent: Tree, node: AnnotatedNode) -> None:
    if isinstance(node, AnnotatedText):
        parent.add(_text_label(node))
    elif isinstance(node, AnnotatedVariable):
        parent.add(_variable_label(node))
    else:
        block = parent.add(_block_label(node))
        branch = block.add(Text("then" + (" (taken)" if node.consequent.taken else ""), style="italic"))
        _add_children(branch, node.consequent.children)
        if node.alternate is not None:
            branch = block.add(Text("else" + (" (taken)" if node.alternate.taken else ""), style="italic"))
            _add_children(branch, node.alternate.children)


def preview(
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
    as_json: bool = typer.Option(False, "--json", help="Print the annotated tree as JSON"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config (TOML)"),
) -> None:
    """Show which parts of PROMPT_FILE come from which variable or condition."""
    try:
        prompt = load_prompt_file(prompt_file)
        engine = build_engine(config_path)
    except (PromptFileError, ConfigError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    values = collect_values(prompt.variables, set_values, values_file, use_preview_values)
    try:
        annotated = engine.annotate(prompt.template, values, prompt.variables)
    except (TemplateParseError, TemplateTooLargeError) as e:
        typer.echo(f"Template has errors: {e}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(annotated.to_dict(), indent=2, ensure_ascii=False))
        return

    tree = Tree(Text(prompt.name, style="bold"))
    _add_children(tree, annotated.children)
    console.print(tree)
