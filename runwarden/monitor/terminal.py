"""Terminal surface: a ``SurfaceChannel`` / ``SurfaceHost`` pair backed by Rich.

``TerminalSurface`` keeps the latest snapshot, the latest file preview and
the latest error it was posted, and renders them on demand.  Snapshots are
full-state replacements, so the last one received always wins.
``run_live`` drives the single cooperative refresh loop: poll the watcher,
flush due batches into the controller, redraw.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console, RenderableType
from rich.live import Live
from rich.text import Text

from runwarden.models.messages import (
    ErrorMessage,
    OutboundMessage,
    SnapshotMessage,
    TextFileErrorMessage,
    TextFileMessage,
)
from runwarden.models.snapshot import RunDetailsSnapshot
from runwarden.monitor.renderer import SnapshotRenderer
from runwarden.surface.batching import RunChangeBatcher
from runwarden.surface.watcher import RunTreeWatcher

logger = logging.getLogger(__name__)


class TerminalSurface:
    """Collects outbound messages for one run and renders them."""

    def __init__(self, renderer: SnapshotRenderer | None = None) -> None:
        self.renderer = renderer or SnapshotRenderer()
        self.snapshot: RunDetailsSnapshot | None = None
        self.preview: tuple[str, str, bool] | None = None
        self.error: str | None = None
        self.posted = 0

    def post(self, message: OutboundMessage) -> None:
        self.posted += 1
        if isinstance(message, SnapshotMessage):
            self.snapshot = message.snapshot
        elif isinstance(message, TextFileMessage):
            self.preview = (message.fs_path, message.content, message.truncated)
            self.error = None
        elif isinstance(message, TextFileErrorMessage):
            self.error = f"{message.fs_path}: {message.message}"
        elif isinstance(message, ErrorMessage):
            self.error = message.message

    def reveal(self) -> None:
        # A terminal surface is always in front.
        return None

    def render(self) -> RenderableType:
        if self.snapshot is None:
            return Text("Waiting for the first snapshot...", style="dim")
        return self.renderer.render_snapshot(
            self.snapshot, preview=self.preview, error=self.error
        )


class TerminalHost:
    """``SurfaceHost`` for a terminal session."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def open_in_editor(self, path: Path) -> None:
        if typer.launch(str(path)) != 0:
            raise OSError(f"No application could open {path}")

    def reveal_in_explorer(self, path: Path) -> None:
        if typer.launch(str(path), locate=True) != 0:
            raise OSError(f"Could not reveal {path}")

    def copy_text(self, text: str) -> None:
        # No clipboard in a plain terminal; echo so the operator can select it.
        self.console.print(text, markup=False, highlight=False)


def run_live(
    surface: TerminalSurface,
    batcher: RunChangeBatcher,
    watcher: RunTreeWatcher,
    *,
    console: Console,
    poll_interval: float = 0.5,
    max_cycles: int | None = None,
) -> None:
    """Redraw *surface* until Ctrl+C (or *max_cycles* polls).

    Every cycle polls the watcher once and flushes the batcher if its
    window elapsed; the batcher's callback performs the refresh.
    """
    interval = max(poll_interval, 0.05)
    cycles = 0
    with Live(
        surface.render(),
        console=console,
        refresh_per_second=max(1.0, 1.0 / interval),
        transient=False,
    ) as live:
        try:
            while max_cycles is None or cycles < max_cycles:
                watcher.poll()
                batcher.flush_due()
                live.update(surface.render())
                cycles += 1
                time.sleep(interval)
        except KeyboardInterrupt:
            logger.debug("Live view interrupted")
        # Final state on exit
        batcher.flush()
        live.update(surface.render())
