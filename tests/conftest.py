"""Shared test fixtures for runwarden."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from runwarden.core.run_loader import load_run
from runwarden.models.messages import OutboundMessage
from runwarden.models.run import Run


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test run trees."""
    return tmp_path


@pytest.fixture
def run_id() -> str:
    """Provide a deterministic test run ID."""
    return "run-test-001"


# ---------------------------------------------------------------------------
# Run tree factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_run_root(tmp_dir: Path, run_id: str) -> Callable[..., Path]:
    """Factory fixture: lay out a run directory on disk.

    ``state`` is written as JSON unless it is a ``str`` (written verbatim)
    or ``None`` (no state file).  ``journal`` is written verbatim.
    ``files`` maps run-relative paths to text content.
    """

    def _factory(
        name: str | None = None,
        state: Any = None,
        journal: str | None = None,
        files: dict[str, str] | None = None,
    ) -> Path:
        root = tmp_dir / (name or run_id)
        root.mkdir(parents=True, exist_ok=True)
        if state is not None:
            text = state if isinstance(state, str) else json.dumps(state)
            (root / "state.json").write_text(text, encoding="utf-8")
        if journal is not None:
            (root / "journal.jsonl").write_text(journal, encoding="utf-8")
        for rel, content in (files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _factory


@pytest.fixture
def run_root(make_run_root: Callable[..., Path], run_id: str) -> Path:
    """A healthy run: valid state, two journal entries, one file per listing."""
    return make_run_root(
        state={"runId": run_id, "status": "running"},
        journal='{"type":"RUN_CREATED"}\n{"type":"EFFECT_REQUESTED","effectId":"e1"}\n',
        files={
            "artifacts/report.md": "# Report\n",
            "work-summaries/step-1.md": "did things\n",
            "prompts/p1.md": "do things\n",
            "code/main.js": "console.log('hi');\n",
        },
    )


@pytest.fixture
def run(run_root: Path) -> Run:
    """The ``Run`` description of ``run_root``."""
    return load_run(run_root)


# ---------------------------------------------------------------------------
# Host doubles
# ---------------------------------------------------------------------------


class RecordingChannel:
    """SurfaceChannel that keeps every posted message."""

    def __init__(self) -> None:
        self.messages: list[OutboundMessage] = []
        self.reveals = 0

    def post(self, message: OutboundMessage) -> None:
        self.messages.append(message)

    def reveal(self) -> None:
        self.reveals += 1

    def of_type(self, kind: str) -> list[OutboundMessage]:
        return [m for m in self.messages if m.type.value == kind]


class RecordingHost:
    """SurfaceHost that records every action instead of performing it."""

    def __init__(self) -> None:
        self.opened: list[Path] = []
        self.revealed: list[Path] = []
        self.copied: list[str] = []

    def open_in_editor(self, path: Path) -> None:
        self.opened.append(path)

    def reveal_in_explorer(self, path: Path) -> None:
        self.revealed.append(path)

    def copy_text(self, text: str) -> None:
        self.copied.append(text)


class RecordingStream:
    """Input stream double for interaction tests."""

    def __init__(self, fail: bool = False) -> None:
        self.written: list[str] = []
        self.flushes = 0
        self.fail = fail

    def write(self, data: str) -> int:
        if self.fail:
            raise BrokenPipeError("pipe closed")
        self.written.append(data)
        return len(data)

    def flush(self) -> None:
        self.flushes += 1


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def make_stream() -> Callable[..., RecordingStream]:
    return RecordingStream


@pytest.fixture
def make_channel() -> Callable[[], RecordingChannel]:
    return RecordingChannel
