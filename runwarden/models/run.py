"""Run models: the read-only description of one externally orchestrated run."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

STATE_FILE_NAME = "state.json"
JOURNAL_FILE_NAME = "journal.jsonl"
ARTIFACTS_DIR_NAME = "artifacts"
WORK_SUMMARIES_DIR_NAME = "work-summaries"
PROMPTS_DIR_NAME = "prompts"
MAIN_JS_REL_PATH = Path("code") / "main.js"

# Models carried inside a ``snapshot`` message are camelCase on the wire.
WIRE_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RunStatus(str, Enum):
    """Lifecycle status reported by the orchestration engine."""

    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"


class RunPaths(BaseModel):
    """Well-known locations inside a run root."""

    model_config = WIRE_MODEL_CONFIG

    run_root: Path
    state_json: Path
    journal_jsonl: Path
    artifacts_dir: Path
    work_summaries_dir: Path
    prompts_dir: Path
    main_js: Path | None = None

    @classmethod
    def for_root(cls, run_root: Path) -> RunPaths:
        """Derive the standard layout for *run_root*."""
        root = Path(run_root)
        main_js = root / MAIN_JS_REL_PATH
        return cls(
            run_root=root,
            state_json=root / STATE_FILE_NAME,
            journal_jsonl=root / JOURNAL_FILE_NAME,
            artifacts_dir=root / ARTIFACTS_DIR_NAME,
            work_summaries_dir=root / WORK_SUMMARIES_DIR_NAME,
            prompts_dir=root / PROMPTS_DIR_NAME,
            main_js=main_js if main_js.is_file() else None,
        )


class RunTimestamps(BaseModel):
    model_config = WIRE_MODEL_CONFIG

    created_at: datetime
    updated_at: datetime


class Run(BaseModel):
    """One observed run.

    Created and mutated entirely by the external engine.  runwarden only
    ever builds this description from what it finds on disk.
    """

    model_config = WIRE_MODEL_CONFIG

    id: str
    paths: RunPaths
    timestamps: RunTimestamps
    status: RunStatus = RunStatus.UNKNOWN
