"""``runwarden watch RUN_ROOT`` -- live view of a run in the terminal.

Wires the polling watcher, the change batcher and the surface controller
together and redraws in Rich Live mode until Ctrl+C.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from runwarden.config import config
from runwarden.core.run_loader import RunLoadError, load_run
from runwarden.monitor.terminal import TerminalHost, TerminalSurface, run_live
from runwarden.surface.batching import RunChangeBatcher
from runwarden.surface.controller import RunSurfaceController
from runwarden.surface.watcher import RunTreeWatcher

console = Console()


def watch_cmd(
    run_root: Path = typer.Argument(..., help="The run directory to watch."),
    preview: Path = typer.Option(
        None,
        "--preview",
        "-p",
        help="A file inside the run to follow (e.g. a work summary).",
    ),
    refresh_hz: float = typer.Option(
        None,
        "--refresh",
        "-r",
        help="Polls per second. Defaults to 1 / RUNWARDEN_POLL_INTERVAL_SECONDS.",
    ),
) -> None:
    """Watch a run live.  Press Ctrl+C to exit."""
    try:
        run = load_run(run_root)
    except RunLoadError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    surface = TerminalSurface()
    controller: RunSurfaceController
    batcher = RunChangeBatcher(
        lambda batch: controller.on_run_change_batch(batch),
        window_seconds=config.batch_window_seconds,
    )
    controller = RunSurfaceController(
        lambda _run: surface,
        host=TerminalHost(console),
        limits=config.snapshot_limits,
        batcher=batcher,
        tail_max_bytes=config.tail_max_bytes,
        preview_max_bytes=config.text_preview_max_bytes,
    )
    watcher = RunTreeWatcher(batcher, max_files_per_root=config.max_files_per_root)

    run_surface = controller.open(run)
    if preview is not None:
        run_surface.handle_message(
            {"type": "loadTextFile", "fsPath": str(preview.resolve()), "tail": True}
        )

    poll_interval = 1.0 / refresh_hz if refresh_hz else config.poll_interval_seconds
    console.print(
        f"[dim]Watching run {run.id} every {poll_interval:.2f}s. Press Ctrl+C to exit.[/dim]"
    )
    try:
        run_live(surface, batcher, watcher, console=console, poll_interval=poll_interval)
    finally:
        controller.dispose_all()
