"""Run details snapshot models: a frozen, point-in-time view of a run.

Every field is derived by re-reading the run directory.  A snapshot is
never persisted; it is computed fresh on every refresh and replaces the
previous one wholesale on the surface.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from runwarden.models.run import WIRE_MODEL_CONFIG, Run


class StateIssueCode(str, Enum):
    """Why the state section could not be populated."""

    STATE_MISSING = "STATE_MISSING"
    STATE_UNREADABLE = "STATE_UNREADABLE"
    STATE_INVALID_JSON = "STATE_INVALID_JSON"
    STATE_NOT_OBJECT = "STATE_NOT_OBJECT"


class StateIssue(BaseModel):
    model_config = WIRE_MODEL_CONFIG

    code: StateIssueCode
    message: str


class StateSection(BaseModel):
    """Parsed ``state.json``.  ``state`` is ``{}`` whenever issues exist."""

    model_config = WIRE_MODEL_CONFIG

    state: dict[str, Any] = {}
    issues: list[StateIssue] = []


class JournalError(BaseModel):
    """A journal line that could not be parsed.

    ``line`` is 1-based.  ``line == 0`` marks a file-level read failure.
    """

    model_config = WIRE_MODEL_CONFIG

    line: int
    message: str


class JournalSection(BaseModel):
    model_config = WIRE_MODEL_CONFIG

    entries: list[Any] = []
    errors: list[JournalError] = []


class FileItem(BaseModel):
    """One entry of a bounded directory listing."""

    model_config = WIRE_MODEL_CONFIG

    rel_path: str
    fs_path: str
    size: int | None = None
    mtime_ms: float | None = None
    is_directory: bool = False


class AwaitingInputStatus(BaseModel):
    """Whether the attached interactive process is blocked on the operator."""

    model_config = WIRE_MODEL_CONFIG

    awaiting: bool = False
    source: str | None = None
    prompt: str | None = None


class RunDetailsSnapshot(BaseModel):
    """Everything a surface needs to render one run."""

    model_config = WIRE_MODEL_CONFIG

    run: Run
    state: StateSection = StateSection()
    journal: JournalSection = JournalSection()
    work_summaries: list[FileItem] = []
    prompts: list[FileItem] = []
    main_js: FileItem | None = None
    artifacts: list[FileItem] = []
    awaiting_input: AwaitingInputStatus = AwaitingInputStatus()

    @property
    def has_state_issues(self) -> bool:
        return bool(self.state.issues)

    @property
    def journal_error_count(self) -> int:
        return len(self.journal.errors)


class SnapshotLimits(BaseModel):
    """Caps applied while building a snapshot.

    Items beyond a listing cap are omitted without error; journal entries
    beyond ``max_journal_entries`` are dropped oldest-first from the
    returned set (never from the file).
    """

    model_config = ConfigDict(frozen=True)

    max_journal_entries: int = 30
    max_artifacts: int = 500
    max_work_summaries: int = 50
    max_prompts: int = 50
    # Files examined per recent-files listing before sorting
    max_scanned_files: int = 5000
