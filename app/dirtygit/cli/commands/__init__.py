"""CLI commands for dirtygit.

This package contains all subcommand implementations.
"""

from dirtygit.cli.commands import config, scan, watch

__all__ = ["config", "scan", "watch"]
