"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dirtygit.core.theme import get_theme
from dirtygit.scanner.models import StatusCode

if TYPE_CHECKING:
    from dirtygit.scanner.models import FileStatus, RepoStatus


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def _column_style(code: StatusCode, *, staged: bool) -> str:
    """Pick the theme style for one status column."""
    if code == StatusCode.UPDATED_BUT_UNMERGED:
        return "conflicted"
    if code in (StatusCode.UNTRACKED, StatusCode.IGNORED):
        return "untracked"
    return "staged" if staged else "unstaged"


def format_status_code(status: FileStatus) -> str:
    """Format the two status columns with Rich markup.

    Conflicted paths are highlighted as a whole.

    Args:
        status: Status of one path.

    Returns:
        Markup string with the staging and worktree characters.
    """
    if status.is_conflicted:
        return f"[conflicted]{status.code}[/]"
    staging = _column_style(status.staging, staged=True)
    worktree = _column_style(status.worktree, staged=False)
    return f"[{staging}]{status.staging.value}[/][{worktree}]{status.worktree.value}[/]"


def create_repo_table(repo: str, status: RepoStatus) -> Table:
    """Create a table listing the changed paths of one repository.

    Args:
        repo: Repository root, used as the table title.
        status: Filtered status of the repository.

    Returns:
        Rich Table with an ``SW`` code column and a path column, sorted by path.
    """
    table = Table(
        title=f"[repo]{escape(repo)}[/]",
        title_justify="left",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("SW", width=4, justify="center", no_wrap=True)
    table.add_column("Path", style="text", overflow="fold")

    for path in sorted(status.files):
        table.add_row(format_status_code(status.files[path]), escape(path))

    return table


def print_scan_report(result: Mapping[str, RepoStatus]) -> None:
    """Print one table per dirty repository followed by a summary line.

    Args:
        result: Scan result mapping repository root to status.
    """
    if not result:
        print_success("All repositories are clean.")
        return

    for repo in sorted(result):
        console.print(create_repo_table(repo, result[repo]))

    files = sum(len(status.files) for status in result.values())
    console.print(f"\n[dim]{len(result)} dirty repositories, {files} changed paths[/]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
