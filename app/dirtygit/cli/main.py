"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from dirtygit import __version__
from dirtygit.cli.commands import config, scan, watch

# Create main Typer app
app = typer.Typer(
    name="dirtygit",
    help="Find git repositories in need of commitment.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dirtygit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging on stderr.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Location of config file.",
        ),
    ] = None,
) -> None:
    """dirtygit - find git repositories in need of commitment.

    Walks the configured directories, runs git status in every
    repository found, and lists the ones with uncommitted changes.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path


# Register commands
app.add_typer(scan.app, name="scan")
app.add_typer(watch.app, name="watch")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
