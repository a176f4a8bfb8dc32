"""``runwarden snapshot RUN_ROOT`` -- print one snapshot of a run.

Reads every source once and prints the result, either as a Rich panel or
as JSON for scripting.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from runwarden.config import config
from runwarden.core.journal import JournalTailer
from runwarden.core.run_loader import RunLoadError, load_run
from runwarden.core.snapshot import build_snapshot
from runwarden.monitor.renderer import SnapshotRenderer

console = Console()


def snapshot_cmd(
    run_root: Path = typer.Argument(..., help="The run directory to read."),
    as_json: bool = typer.Option(False, "--json", help="Print the snapshot as JSON."),
) -> None:
    """Print a point-in-time snapshot of a run."""
    try:
        run = load_run(run_root)
    except RunLoadError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    result = build_snapshot(run, JournalTailer(), [], config.snapshot_limits)

    if as_json:
        typer.echo(result.snapshot.model_dump_json(indent=2, by_alias=True))
        return
    SnapshotRenderer(console=console).print_snapshot(result.snapshot)
