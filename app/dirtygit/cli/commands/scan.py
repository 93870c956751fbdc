"""Scan command implementation.

Runs a single scan and lists repositories with uncommitted changes.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from dirtygit.cli.types import OutputFormat, get_probe, load_scan_config
from dirtygit.scanner.coordinator import ScanCoordinator
from dirtygit.scanner.models import ScanState, result_to_dict
from dirtygit.utils.formatting import console, err_console, print_error, print_scan_report

app = typer.Typer(
    help="Scan for git repositories with uncommitted changes.",
    invoke_without_command=True,
)


def _progress_message(state: ScanState) -> str:
    return f"Scanning... {state.repos_found} repositories found, {state.repos_probed} checked"


@app.callback(invoke_without_command=True)
def scan_repositories(
    ctx: typer.Context,
    roots: Annotated[
        list[Path] | None,
        typer.Option(
            "--root",
            "-r",
            help="Directory to scan (repeatable). Replaces scandirs.include.",
        ),
    ] = None,
    follow_symlinks: Annotated[
        bool | None,
        typer.Option(
            "--follow-symlinks/--no-follow-symlinks",
            help="Override the followsymlinks setting.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Scan the configured directories once and report dirty repositories.

    Examples:
        dirtygit scan                       # Scan scandirs.include
        dirtygit scan --root ~/src          # Scan a single directory
        dirtygit scan --format json         # Output as JSON
    """
    # Skip if a subcommand is being invoked
    if ctx.invoked_subcommand is not None:
        return

    config = load_scan_config(ctx, roots=roots, follow_symlinks=follow_symlinks)
    probe = get_probe()

    with err_console.status("Scanning...") as status:

        def on_change(state: ScanState) -> None:
            if state.busy:
                status.update(_progress_message(state))

        with ScanCoordinator(config, probe=probe, on_change=on_change) as coordinator:
            coordinator.request_scan()
            coordinator.wait_until_idle()
            state = coordinator.current_state()

    if state.last_error is not None:
        print_error(str(state.last_error))
        raise typer.Exit(code=1)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result_to_dict(state.last_result)))
        return

    print_scan_report(state.last_result)
