"""Describe runs found on disk.

The engine owns every file under a run root.  This module only derives a
``Run`` description (id, paths, timestamps, status) from what is there,
tolerating a missing or half-written ``state.json``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from runwarden.models.run import (
    JOURNAL_FILE_NAME,
    STATE_FILE_NAME,
    Run,
    RunPaths,
    RunStatus,
    RunTimestamps,
)

logger = logging.getLogger(__name__)

# state.json keys the engine has used for status, id and timestamps
_STATUS_KEYS = ("status", "runStatus")
_ID_KEYS = ("runId", "run_id", "id")
_CREATED_KEYS = ("createdAt", "created_at")
_UPDATED_KEYS = ("updatedAt", "updated_at")


class RunLoadError(RuntimeError):
    """Raised when a path cannot be described as a run at all."""


def _read_state_quietly(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _first(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _mtime(path: Path) -> datetime | None:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
    except OSError:
        return None


def _parse_status(value: Any) -> RunStatus:
    if isinstance(value, str):
        try:
            return RunStatus(value.strip().lower())
        except ValueError:
            return RunStatus.UNKNOWN
    return RunStatus.UNKNOWN


def load_run(run_root: Path | str) -> Run:
    """Build a ``Run`` for the directory *run_root*.

    Raises
    ------
    RunLoadError
        If *run_root* is not an existing directory.
    """
    root = Path(run_root).expanduser()
    if not root.is_dir():
        raise RunLoadError(f"Run directory not found: {root}")

    paths = RunPaths.for_root(root)
    state = _read_state_quietly(paths.state_json)

    run_id = _first(state, _ID_KEYS)
    if not isinstance(run_id, str):
        run_id = root.name

    dir_mtime = _mtime(root) or datetime.now(timezone.utc)
    created_at = _parse_timestamp(_first(state, _CREATED_KEYS)) or dir_mtime
    candidates = [
        t
        for t in (
            _parse_timestamp(_first(state, _UPDATED_KEYS)),
            _mtime(paths.state_json),
            _mtime(paths.journal_jsonl),
        )
        if t is not None
    ]
    updated_at = max(candidates) if candidates else created_at

    return Run(
        id=run_id,
        paths=paths,
        timestamps=RunTimestamps(created_at=created_at, updated_at=updated_at),
        status=_parse_status(_first(state, _STATUS_KEYS)),
    )


def looks_like_run_root(path: Path) -> bool:
    """A run root holds a state file or a journal."""
    return (path / STATE_FILE_NAME).is_file() or (path / JOURNAL_FILE_NAME).is_file()


def discover_runs(runs_root: Path | str) -> list[Run]:
    """Return every run directly under *runs_root*, most recently updated first.

    Directories that do not look like runs are skipped.  A missing
    *runs_root* yields an empty list.
    """
    base = Path(runs_root).expanduser()
    if not base.is_dir():
        logger.info("Runs root %s does not exist", base)
        return []

    runs: list[Run] = []
    for child in sorted(base.iterdir()):
        if not child.is_dir() or not looks_like_run_root(child):
            continue
        try:
            runs.append(load_run(child))
        except RunLoadError as exc:
            # Removed between iterdir() and load
            logger.debug("Skipping %s: %s", child, exc)
    runs.sort(key=lambda r: r.timestamps.updated_at, reverse=True)
    return runs
