from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from promptweave_core import EngineConfig, TemplateEngine, load_engine_config

# Global variable to store custom config file path
_global_config_file: Optional[Path] = None


def set_global_config_file(config_file: Path) -> None:
    """Set the global config file path for use by utility functions."""
    global _global_config_file
    _global_config_file = config_file.resolve()


def get_global_config_file() -> Optional[Path]:
    """Get the global config file path if set."""
    return _global_config_file


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings.

    Some Windows terminals use a non-UTF8 encoding (e.g., cp1252). Rendered
    prompts can contain any Unicode, so configure stdout/stderr to replace
    unencodable characters instead of crashing.
    """

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        reconfigure = getattr(stream, "reconfigure", None)
        if reconfigure is not None:
            reconfigure(errors="replace")


def load_config(config_path: Optional[Path] = None) -> EngineConfig:
    """Load engine config from an explicit path, the global --config-file, or defaults."""
    return load_engine_config(config_path=config_path or get_global_config_file())


def build_engine(config_path: Optional[Path] = None) -> TemplateEngine:
    return TemplateEngine(load_config(config_path))


def parse_set_options(pairs: List[str]) -> Dict[str, Any]:
    """Parse repeated ``--set key=value`` options.

    Raises:
        typer.BadParameter: If an entry has no ``=``.
    """
    values: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--set")
        key, value = pair.split("=", 1)
        values[key.strip()] = value
    return values


def load_values_file(path: Path) -> Dict[str, Any]:
    """Load a JSON object of values.

    Raises:
        typer.BadParameter: If the file is not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise typer.BadParameter(f"Cannot read values from {path}: {e}", param_hint="--values")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a JSON object", param_hint="--values")
    return data


def collect_values(
    definitions: List[Any],
    pairs: Optional[List[str]] = None,
    values_file: Optional[Path] = None,
    use_preview_values: bool = False,
) -> Dict[str, Any]:
    """Merge values for one render: preview values < values file < --set pairs."""
    from promptweave_core import preview_values

    values: Dict[str, Any] = {}
    if use_preview_values:
        values.update(preview_values(definitions))
    if values_file is not None:
        values.update(load_values_file(values_file))
    values.update(parse_set_options(pairs or []))
    return values
