from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .util import configure_stdio, set_global_config_file

app = typer.Typer(help="promptweave: render and preview prompt templates")


@app.callback()
def _init(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config-file",
        help="Path to engine config file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    configure_stdio()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Store the config file path globally for use by utility functions
    if config_file:
        set_global_config_file(config_file)


from .commands import config_cmd as config_cmd  # noqa: E402
from .commands.preview import preview as preview_fn  # noqa: E402
from .commands.render import render as render_fn  # noqa: E402
from .commands.variables import variables as variables_fn  # noqa: E402

app.add_typer(config_cmd.app, name="config", help="Config inspection and validation")
app.command(name="render")(render_fn)
app.command(name="preview")(preview_fn)
app.command(name="variables")(variables_fn)


def main():
    app()
