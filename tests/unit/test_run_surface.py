"""Unit tests for RunSurface: refresh, inbound actions and disposal."""

from __future__ import annotations

from pathlib import Path

import pytest

from runwarden.interaction.process_registry import ENTER, ESC, ProcessInteractionRegistry
from runwarden.models.messages import (
    ErrorMessage,
    SnapshotMessage,
    TextFileErrorMessage,
    TextFileMessage,
)
from runwarden.models.run import Run
from runwarden.surface.run_surface import RunSurface


def _errors(channel) -> list[str]:
    return [m.message for m in channel.messages if isinstance(m, ErrorMessage)]


@pytest.fixture
def surface(run: Run, channel, host) -> RunSurface:
    return RunSurface(run, channel, host=host)


# ---------------------------------------------------------------------------
# Test: refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    """Every refresh posts a full snapshot."""

    def test_refresh_posts_snapshot(self, surface: RunSurface, channel):
        snap = surface.refresh()
        assert snap is not None
        assert isinstance(channel.messages[-1], SnapshotMessage)
        assert channel.messages[-1].snapshot.run.id == surface.run_id

    def test_ready_and_refresh_messages_trigger_refresh(self, surface: RunSurface, channel):
        surface.handle_message({"type": "ready"})
        surface.handle_message('{"type": "refresh"}')
        assert len(channel.of_type("snapshot")) == 2

    def test_journal_accumulates_across_refreshes(self, surface: RunSurface, run: Run):
        surface.refresh()
        with run.paths.journal_jsonl.open("a", encoding="utf-8") as fh:
            fh.write('{"type":"RUN_COMPLETED"}\n')
        snap = surface.refresh()
        assert snap is not None
        assert snap.journal.entries[-1] == {"type": "RUN_COMPLETED"}
        assert len(surface.journal_entries) == 3

    def test_refresh_failure_posts_error(
        self, surface: RunSurface, channel, monkeypatch: pytest.MonkeyPatch
    ):
        def _boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr("runwarden.surface.run_surface.build_snapshot", _boom)
        assert surface.refresh() is None
        assert _errors(channel) == ["Failed to refresh run details: disk on fire"]

    def test_failing_channel_does_not_raise(self, run: Run, host):
        class BrokenChannel:
            def post(self, message):
                raise ConnectionError("surface closed")

            def reveal(self):
                pass

        surface = RunSurface(run, BrokenChannel(), host=host)
        assert surface.refresh() is not None

    def test_refresh_forwards_followed_file_changes(self, surface: RunSurface, run: Run, channel):
        summary = run.paths.work_summaries_dir / "step-1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(summary)})
        with summary.open("a", encoding="utf-8") as fh:
            fh.write("more\n")
        surface.refresh()
        files = channel.of_type("textFile")
        assert files[-1].content == "did things\nmore\n"
        # snapshot first, then the tail update
        assert isinstance(channel.messages[-2], SnapshotMessage)

    def test_refresh_reports_followed_file_errors(self, surface: RunSurface, run: Run, channel):
        prompt = run.paths.prompts_dir / "p1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(prompt)})
        prompt.unlink()
        surface.refresh()
        assert isinstance(channel.messages[-1], TextFileErrorMessage)
        assert surface.active_tail_path == str(prompt)

    def test_followed_file_error_is_posted_once(self, surface: RunSurface, run: Run, channel):
        prompt = run.paths.prompts_dir / "p1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(prompt)})
        prompt.unlink()
        for _ in range(3):
            surface.refresh()
        assert len(channel.of_type("textFileError")) == 1
        assert len(channel.of_type("snapshot")) == 3

        prompt.write_text("back again\n", encoding="utf-8")
        surface.refresh()
        assert channel.of_type("textFile")[-1].content == "back again\n"

    def test_refresh_without_file_change_sends_no_text(self, surface: RunSurface, run: Run, channel):
        summary = run.paths.work_summaries_dir / "step-1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(summary)})
        before = len(channel.of_type("textFile"))
        surface.refresh()
        assert len(channel.of_type("textFile")) == before


# ---------------------------------------------------------------------------
# Test: file actions
# ---------------------------------------------------------------------------


class TestFileActions:
    """File actions are guarded by the run root."""

    def test_open_inside_root(self, surface: RunSurface, run: Run, host):
        target = run.paths.artifacts_dir / "report.md"
        surface.handle_message({"type": "openInEditor", "fsPath": str(target)})
        assert host.opened == [target]

    def test_reveal_inside_root(self, surface: RunSurface, run: Run, host):
        surface.handle_message({"type": "revealInExplorer", "fsPath": "artifacts"})
        assert host.revealed == [run.paths.run_root / "artifacts"]

    def test_open_outside_root_is_refused(self, surface: RunSurface, host, channel, tmp_path: Path):
        outside = tmp_path / "secret.txt"
        outside.write_text("s", encoding="utf-8")
        surface.handle_message({"type": "openInEditor", "fsPath": str(outside)})
        assert host.opened == []
        assert _errors(channel) == ["Refusing to open a path outside the run directory."]

    def test_no_host_reports_error(self, run: Run, channel):
        surface = RunSurface(run, channel)
        surface.handle_message(
            {"type": "openInEditor", "fsPath": str(run.paths.state_json)}
        )
        assert _errors(channel) == ["No editor is available to open files."]

    def test_host_failure_reports_error(self, run: Run, channel):
        class FailingHost:
            def open_in_editor(self, path):
                raise OSError("no handler")

            def reveal_in_explorer(self, path):
                raise OSError("no file manager")

            def copy_text(self, text):
                pass

        surface = RunSurface(run, channel, host=FailingHost())
        surface.handle_message({"type": "openInEditor", "fsPath": str(run.paths.state_json)})
        assert _errors(channel) == ["Could not open: state.json"]

    def test_load_text_file_tail(self, surface: RunSurface, run: Run, channel):
        prompt = run.paths.prompts_dir / "p1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(prompt)})
        msg = channel.messages[-1]
        assert isinstance(msg, TextFileMessage)
        assert msg.fs_path == str(prompt)
        assert msg.content == "do things\n"
        assert surface.active_tail_path == str(prompt)

    def test_load_text_file_one_shot(self, run: Run, channel, host):
        surface = RunSurface(run, channel, host=host, preview_max_bytes=4)
        prompt = run.paths.prompts_dir / "p1.md"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(prompt), "tail": False})
        msg = channel.messages[-1]
        assert isinstance(msg, TextFileMessage)
        assert msg.content == "do t"
        assert msg.truncated is True
        assert surface.active_tail_path is None

    def test_load_missing_file_posts_text_file_error(self, surface: RunSurface, run: Run, channel):
        missing = run.paths.run_root / "nope.txt"
        surface.handle_message({"type": "loadTextFile", "fsPath": str(missing), "tail": False})
        assert isinstance(channel.messages[-1], TextFileErrorMessage)

    def test_load_outside_root_is_refused(self, surface: RunSurface, channel):
        surface.handle_message({"type": "loadTextFile", "fsPath": "../../etc/passwd"})
        assert _errors(channel) == ["Refusing to load a path outside the run directory."]
        assert surface.active_tail_path is None

    def test_copy_text(self, surface: RunSurface, host):
        surface.handle_message({"type": "copyText", "text": "run-test-001"})
        assert host.copied == ["run-test-001"]

    def test_invalid_message_is_dropped(self, surface: RunSurface, channel):
        surface.handle_message({"type": "rm -rf"})
        surface.handle_message("not json")
        assert channel.messages == []


# ---------------------------------------------------------------------------
# Test: interaction forwarding
# ---------------------------------------------------------------------------


class TestForwarding:
    """Keystrokes reach the process of this run only."""

    def test_forwarding_without_controller(self, surface: RunSurface, channel, run_id: str):
        surface.handle_message({"type": "sendEnter", "runId": run_id})
        assert _errors(channel) == ["No interactive process is available to send Enter."]

    def test_forwarding_without_process(self, run: Run, channel, run_id: str):
        surface = RunSurface(run, channel, interaction=ProcessInteractionRegistry())
        surface.handle_message({"type": "sendEsc", "runId": run_id})
        assert _errors(channel) == ["Could not send ESC: no associated process."]

    def test_forwarding_writes_to_process(self, run: Run, channel, run_id: str, make_stream):
        registry = ProcessInteractionRegistry()
        stream = make_stream()
        registry.attach(run_id, stream)
        surface = RunSurface(run, channel, interaction=registry)
        surface.handle_message({"type": "sendUserInput", "runId": run_id, "text": "  yes  "})
        surface.handle_message({"type": "sendEnter", "runId": run_id})
        surface.handle_message({"type": "sendEsc", "runId": run_id})
        assert stream.written == ["yes" + ENTER, ENTER, ESC]
        assert _errors(channel) == []

    def test_blank_input_is_ignored(self, run: Run, channel, run_id: str, make_stream):
        registry = ProcessInteractionRegistry()
        stream = make_stream()
        registry.attach(run_id, stream)
        surface = RunSurface(run, channel, interaction=registry)
        surface.handle_message({"type": "sendUserInput", "runId": run_id, "text": "   "})
        assert stream.written == []

    def test_other_run_id_is_refused(self, run: Run, channel, make_stream):
        registry = ProcessInteractionRegistry()
        stream = make_stream()
        registry.attach("someone-else", stream)
        surface = RunSurface(run, channel, interaction=registry)
        surface.handle_message({"type": "sendEnter", "runId": "someone-else"})
        assert stream.written == []
        assert _errors(channel) == ["Refusing to send Enter to a different run."]

    def test_interaction_change_triggers_refresh(self, run: Run, channel, run_id: str):
        registry = ProcessInteractionRegistry()
        surface = RunSurface(run, channel, interaction=registry)
        registry.mark_awaiting(run_id, prompt="Approve?")
        snaps = channel.of_type("snapshot")
        assert len(snaps) == 1
        assert snaps[0].snapshot.awaiting_input.awaiting is True
        registry.mark_awaiting("other-run")
        assert len(channel.of_type("snapshot")) == 1
        surface.dispose()


# ---------------------------------------------------------------------------
# Test: disposal
# ---------------------------------------------------------------------------


class TestDispose:
    """Disposal releases everything exactly once."""

    def test_dispose_releases_resources(self, run: Run, channel, run_id: str):
        registry = ProcessInteractionRegistry()
        disposed: list[bool] = []
        surface = RunSurface(
            run, channel, interaction=registry, on_disposed=lambda: disposed.append(True)
        )
        surface.handle_message(
            {"type": "loadTextFile", "fsPath": str(run.paths.state_json)}
        )
        surface.dispose()
        surface.dispose()
        assert disposed == [True]
        assert surface.disposed is True
        assert surface.active_tail_path is None

        before = len(channel.messages)
        registry.mark_awaiting(run_id)
        surface.refresh()
        surface.handle_message({"type": "refresh"})
        assert len(channel.messages) == before
