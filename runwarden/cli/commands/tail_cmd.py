"""``runwarden tail FILE`` -- bounded tail of a growing text file."""

from __future__ import annotations

import time
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.text import Text

from runwarden.config import config
from runwarden.core.text_tail import TailError, TailSet, TextTailSession

console = Console()


def _render(update: TailSet) -> Text:
    text = Text(update.content)
    if update.truncated:
        text = Text("(showing the last bytes only)\n", style="dim") + text
    return text


def tail_cmd(
    path: Path = typer.Argument(..., help="The file to tail."),
    max_bytes: int = typer.Option(
        None, "--max-bytes", "-b", help="Bytes to show. Defaults to RUNWARDEN_TAIL_MAX_BYTES."
    ),
    follow: bool = typer.Option(False, "--follow", "-f", help="Keep following the file."),
) -> None:
    """Print the end of a text file, optionally following it."""
    session = TextTailSession(max_bytes or config.tail_max_bytes)
    first = session.start(path)
    if isinstance(first, TailError):
        console.print(f"[bold red]Cannot read {first.fs_path}:[/bold red] {first.message}")
        raise typer.Exit(code=1)

    if not follow:
        console.print(_render(first), markup=False, highlight=False)
        return

    with Live(_render(first), console=console, transient=False) as live:
        try:
            while True:
                time.sleep(config.poll_interval_seconds)
                update = session.poll()
                if isinstance(update, TailSet):
                    live.update(_render(update))
                elif isinstance(update, TailError):
                    live.update(Text(f"{update.fs_path}: {update.message}", style="red"))
        except KeyboardInterrupt:
            pass
        finally:
            session.stop()
