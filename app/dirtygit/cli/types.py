"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path

import typer

from dirtygit.core.config import (
    ConfigError,
    ConfigNotFoundError,
    ScanConfig,
    default_config,
    load_config,
)
from dirtygit.core.paths import get_config_path
from dirtygit.scanner.probe import GitStatusProbe, StatusProbe
from dirtygit.utils.formatting import print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def get_config_option(ctx: typer.Context) -> Path | None:
    """Return the ``--config`` path given to the main command, if any."""
    obj = ctx.find_root().obj
    if isinstance(obj, dict):
        return obj.get("config_path")
    return None


def load_scan_config(
    ctx: typer.Context,
    *,
    roots: list[Path] | None = None,
    follow_symlinks: bool | None = None,
) -> ScanConfig:
    """Load the configuration for a scan command and apply overrides.

    An explicit ``--config`` file must exist. Without one, a missing
    default file falls back to the built-in defaults with a warning.

    Args:
        ctx: Typer context of the running command.
        roots: Include roots given on the command line.
        follow_symlinks: Symlink policy given on the command line.

    Returns:
        Validated configuration.

    Raises:
        typer.Exit: If the configuration cannot be loaded or has no roots.
    """
    explicit = get_config_option(ctx)
    try:
        config = load_config(explicit)
    except ConfigNotFoundError as e:
        if explicit is not None:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        if not roots:
            print_warning(f"No config at {get_config_path()}, using defaults.")
        config = default_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    config = config.with_overrides(
        include=[str(r) for r in roots] if roots else None,
        follow_symlinks=follow_symlinks,
    )

    if not config.include_roots:
        print_error("No directories to scan. Add scandirs.include to the config.")
        raise typer.Exit(code=1)

    return config


def get_probe() -> StatusProbe:
    """Create the status probe used by CLI commands.

    Raises:
        typer.Exit: If git is not installed.
    """
    probe = GitStatusProbe()
    if not probe.is_available():
        print_error("git executable not found on PATH.")
        raise typer.Exit(code=1)
    return probe
