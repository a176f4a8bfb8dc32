"""Unit tests for the Rich snapshot renderer and the terminal surface."""

from __future__ import annotations

import io

from rich.console import Console
from rich.panel import Panel

from runwarden.core.journal import JournalTailer
from runwarden.core.snapshot import build_snapshot
from runwarden.models.messages import ErrorMessage, SnapshotMessage, TextFileMessage
from runwarden.models.run import Run, RunStatus
from runwarden.monitor.renderer import SnapshotRenderer, _STATUS_STYLES, format_bytes
from runwarden.monitor.terminal import TerminalSurface


def _render_text(renderable) -> str:
    console = Console(file=io.StringIO(), width=160, color_system=None)
    console.print(renderable)
    return console.file.getvalue()


class TestFormatBytes:
    def test_units(self):
        assert format_bytes(None) == ""
        assert format_bytes(512) == "512 B"
        assert format_bytes(2048) == "2.0 KB"
        assert format_bytes(5 * 1024 * 1024) == "5.0 MB"


class TestSnapshotRenderer:
    """Every run status has a style and the panel shows each section."""

    def test_all_statuses_styled(self):
        assert set(_STATUS_STYLES) == set(RunStatus)

    def test_render_returns_panel(self, run: Run):
        snap = build_snapshot(run, JournalTailer()).snapshot
        panel = SnapshotRenderer().render_snapshot(snap)
        assert isinstance(panel, Panel)

    def test_render_contains_sections(self, run: Run):
        snap = build_snapshot(run, JournalTailer()).snapshot
        text = _render_text(SnapshotRenderer().render_snapshot(snap))
        assert run.id in text
        assert "RUN_CREATED" in text
        assert "report.md" in text
        assert "step-1.md" in text
        assert "running" in text

    def test_render_preview_and_error(self, run: Run):
        snap = build_snapshot(run, JournalTailer()).snapshot
        text = _render_text(
            SnapshotRenderer().render_snapshot(
                snap, preview=("notes.md", "hello preview", True), error="it broke"
            )
        )
        assert "hello preview" in text
        assert "truncated" in text
        assert "it broke" in text


class TestTerminalSurface:
    """The terminal surface keeps the latest state it was posted."""

    def test_waiting_before_first_snapshot(self):
        assert "Waiting" in _render_text(TerminalSurface().render())

    def test_collects_messages(self, run: Run):
        surface = TerminalSurface()
        snap = build_snapshot(run, JournalTailer()).snapshot
        surface.post(SnapshotMessage(snapshot=snap))
        surface.post(TextFileMessage(fs_path="a.md", content="abc", truncated=False, size=3))
        assert surface.snapshot is snap
        assert surface.preview == ("a.md", "abc", False)
        surface.post(ErrorMessage(message="nope"))
        assert surface.error == "nope"
        assert surface.posted == 3
        assert "nope" in _render_text(surface.render())
