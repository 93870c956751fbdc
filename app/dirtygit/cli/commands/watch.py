"""Watch command implementation.

Rescans on a fixed interval and prints a fresh report after each scan.
"""

import time
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from dirtygit.cli.types import get_probe, load_scan_config
from dirtygit.scanner.coordinator import ScanCoordinator
from dirtygit.scanner.models import ScanState
from dirtygit.utils.formatting import console, err_console, print_error, print_info, print_scan_report

app = typer.Typer(
    help="Rescan periodically and report dirty repositories.",
    invoke_without_command=True,
)


def _print_state(state: ScanState) -> None:
    """Print the outcome of the scan that just finished."""
    stamp = datetime.now().strftime("%H:%M:%S")
    duration = f"{state.last_duration:.1f}s" if state.last_duration is not None else "-"
    console.rule(f"[dim]Scan #{state.scan_count} at {stamp} ({duration})[/]")
    if state.last_error is not None:
        print_error(str(state.last_error))
        return
    print_scan_report(state.last_result)


@app.callback(invoke_without_command=True)
def watch_repositories(
    ctx: typer.Context,
    interval: Annotated[
        float,
        typer.Option(
            "--interval",
            "-i",
            min=1.0,
            help="Seconds to wait between scans.",
        ),
    ] = 30.0,
    iterations: Annotated[
        int,
        typer.Option(
            "--iterations",
            "-n",
            min=0,
            help="Stop after this many scans (0 = run until interrupted).",
        ),
    ] = 0,
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
) -> None:
    """Scan repeatedly until interrupted with Ctrl-C.

    Examples:
        dirtygit watch                      # Rescan every 30 seconds
        dirtygit watch --interval 300       # Rescan every 5 minutes
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_scan_config(ctx, roots=roots, follow_symlinks=follow_symlinks)
    probe = get_probe()

    coordinator = ScanCoordinator(config, probe=probe)
    coordinator.start()
    completed = 0
    try:
        while True:
            coordinator.request_scan()
            with err_console.status("Scanning..."):
                coordinator.wait_until_idle()
            _print_state(coordinator.current_state())

            completed += 1
            if iterations and completed >= iterations:
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        print_info("Stopped.")
    finally:
        coordinator.stop()
