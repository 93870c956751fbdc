"""Configuration commands.

Show, locate and initialize the dirtygit configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from dirtygit.cli.types import get_config_option
from dirtygit.core.config import (
    ConfigError,
    ConfigNotFoundError,
    config_to_dict,
    default_config,
    load_config,
    save_config,
)
from dirtygit.core.paths import get_config_path
from dirtygit.utils.formatting import console, print_error, print_success, print_warning

app = typer.Typer(
    help="Show or initialize the configuration file.",
    no_args_is_help=True,
)


@app.command()
def path(ctx: typer.Context) -> None:
    """Print the location of the configuration file."""
    console.print(str(get_config_option(ctx) or get_config_path()), markup=False)


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the effective configuration as TOML."""
    explicit = get_config_option(ctx)
    try:
        config = load_config(explicit)
    except ConfigNotFoundError as e:
        if explicit is not None:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_warning("No config file found, showing defaults.")
        config = default_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a default configuration file."""
    target = get_config_option(ctx) or get_config_path()

    if target.exists() and not force:
        print_error(f"Config already exists: {target} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(default_config(), target)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")
