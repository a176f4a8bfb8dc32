"""Rich terminal renderer for run details snapshots.

Turns a ``RunDetailsSnapshot`` (plus the current file preview and the last
error, if any) into Rich renderables for terminal display.

Color scheme
------------
- yellow    : running
- cyan      : paused
- green     : completed
- bold red  : failed
- dim       : unknown
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from rich.console import Console, Group, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from runwarden.models.run import RunStatus
from runwarden.models.snapshot import FileItem, RunDetailsSnapshot

_STATUS_STYLES: dict[RunStatus, str] = {
    RunStatus.RUNNING: "bold yellow",
    RunStatus.PAUSED: "bold cyan",
    RunStatus.COMPLETED: "bold green",
    RunStatus.FAILED: "bold red",
    RunStatus.UNKNOWN: "dim",
}

# Journal entries shown in the events table
_EVENT_ROWS = 10
_PREVIEW_LINES = 20


def format_bytes(size: int | None) -> str:
    if size is None:
        return ""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def _summarize_entry(entry: Any) -> tuple[str, str]:
    """(kind, detail) columns for one journal entry."""
    if isinstance(entry, dict):
        kind = str(entry.get("type") or entry.get("event") or entry.get("kind") or "-")
        rest = {k: v for k, v in entry.items() if k not in ("type", "event", "kind")}
        detail = json.dumps(rest, ensure_ascii=False, default=str)
    else:
        kind = type(entry).__name__
        detail = json.dumps(entry, ensure_ascii=False, default=str)
    if len(detail) > 120:
        detail = detail[:117] + "..."
    return kind, detail


class SnapshotRenderer:
    """Renders snapshots as Rich panels.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_snapshot(
        self,
        snapshot: RunDetailsSnapshot,
        *,
        preview: tuple[str, str, bool] | None = None,
        error: str | None = None,
    ) -> Panel:
        """Render *snapshot* as one Panel.

        *preview* is ``(fs_path, content, truncated)`` for the file being
        previewed; *error* is the last error message to show.
        """
        parts: list[RenderableType] = [self._build_summary(snapshot)]

        if snapshot.awaiting_input.awaiting:
            prompt = snapshot.awaiting_input.prompt or "The process appears to be waiting for input."
            source = f" [dim]({escape(snapshot.awaiting_input.source)})[/dim]" if snapshot.awaiting_input.source else ""
            parts.append(Text.from_markup(f"[bold magenta]Awaiting input{source}:[/bold magenta] ") + Text(prompt))

        if snapshot.state.issues:
            issues = "  |  ".join(f"[{i.code.value}] {i.message}" for i in snapshot.state.issues)
            parts.append(Text(f"State issues: {issues}", style="yellow"))

        parts.append(self._build_journal_table(snapshot))
        if snapshot.journal.errors:
            errs = "  |  ".join(f"Line {e.line}: {e.message}" for e in snapshot.journal.errors[:2])
            parts.append(Text(f"Journal errors: {errs}", style="red"))

        parts.append(self._build_files_table("Work summaries", snapshot.work_summaries))
        parts.append(self._build_files_table("Prompts", snapshot.prompts))
        parts.append(self._build_files_table("Artifacts", snapshot.artifacts, limit=15))

        if preview is not None:
            parts.append(self._build_preview(*preview))
        if error:
            parts.append(Text(f"Error: {error}", style="bold red"))

        updated = snapshot.run.timestamps.updated_at
        return Panel(
            Group(*parts),
            title=f"[bold]Run {snapshot.run.id}[/bold]",
            subtitle=f"Updated: {_fmt_time(updated)}",
            border_style="blue",
            padding=(1, 2),
        )

    def _build_summary(self, snapshot: RunDetailsSnapshot) -> Text:
        run = snapshot.run
        style = _STATUS_STYLES.get(run.status, "")
        main_js = (
            format_bytes(snapshot.main_js.size) if snapshot.main_js is not None else "missing"
        )
        summary = Text.from_markup(
            f"[bold]Status:[/bold] [{style}]{run.status.value}[/{style}]  |  "
            f"[bold]Root:[/bold] {escape(str(run.paths.run_root))}  |  "
            f"[bold]Events:[/bold] {len(snapshot.journal.entries)}  |  "
            f"[bold]Artifacts:[/bold] {len(snapshot.artifacts)}  |  "
            f"[bold]main.js:[/bold] {main_js}"
        )
        return summary

    def _build_journal_table(self, snapshot: RunDetailsSnapshot) -> Table:
        table = Table(
            title="Latest events",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("#", style="dim", width=5, justify="right")
        table.add_column("Type", min_width=14)
        table.add_column("Details")

        entries = snapshot.journal.entries
        offset = max(0, len(entries) - _EVENT_ROWS)
        for i, entry in enumerate(entries[offset:], start=offset + 1):
            kind, detail = _summarize_entry(entry)
            table.add_row(str(i), kind, Text(detail))
        if not entries:
            table.add_row("", "[dim]-[/dim]", "[dim]No events yet[/dim]")
        return table

    def _build_files_table(
        self, title: str, items: list[FileItem], *, limit: int = 10
    ) -> Table:
        table = Table(
            title=f"{title} ({len(items)})",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("Path")
        table.add_column("Size", justify="right", width=10)
        table.add_column("Updated", width=20)
        for item in items[:limit]:
            name = item.rel_path + ("/" if item.is_directory else "")
            size = "Folder" if item.is_directory else format_bytes(item.size)
            updated = _fmt_time(item.mtime_ms / 1000.0) if item.mtime_ms else ""
            table.add_row(Text(name), size, updated)
        if len(items) > limit:
            table.add_row(f"[dim]... and {len(items) - limit} more[/dim]", "", "")
        if not items:
            table.add_row("[dim]None[/dim]", "", "")
        return table

    def _build_preview(self, fs_path: str, content: str, truncated: bool) -> Panel:
        lines = content.splitlines()[-_PREVIEW_LINES:]
        body = Text("\n".join(lines))
        title = f"{fs_path}" + (" (truncated)" if truncated else "")
        return Panel(body, title=title, border_style="dim")

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_snapshot(self, snapshot: RunDetailsSnapshot) -> None:
        """Print a single snapshot to the console."""
        self.console.print(self.render_snapshot(snapshot))


def _fmt_time(value: datetime | float) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    return datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M:%S")
