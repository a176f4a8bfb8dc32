"""``runwarden runs`` -- list the runs found under a runs root."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from runwarden.config import config
from runwarden.core.run_loader import discover_runs
from runwarden.monitor.renderer import _STATUS_STYLES

console = Console()


def runs_cmd(
    root: Path = typer.Option(
        None,
        "--root",
        "-r",
        help="Directory holding one sub-directory per run. Defaults to RUNWARDEN_RUNS_ROOT.",
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Show at most this many runs."),
) -> None:
    """List runs, most recently updated first."""
    runs_root = root or config.runs_root
    runs = discover_runs(runs_root)
    if not runs:
        console.print(f"[dim]No runs found under {runs_root}.[/dim]")
        return

    table = Table(title=f"Runs in {runs_root}")
    table.add_column("Run ID", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Updated")
    table.add_column("Root", style="dim")

    for run in runs[:limit]:
        style = _STATUS_STYLES.get(run.status, "")
        table.add_row(
            escape(run.id),
            f"[{style}]{run.status.value}[/{style}]",
            run.timestamps.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
            escape(str(run.paths.run_root)),
        )
    console.print(table)
    if len(runs) > limit:
        console.print(f"[dim]... and {len(runs) - limit} more[/dim]")
