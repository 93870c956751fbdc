"""CLI package for dirtygit.

This package contains the Typer application and all subcommands.
"""

from dirtygit.cli.main import app

__all__ = ["app"]
