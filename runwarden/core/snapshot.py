"""Snapshot builder: one consistent, bounded view of a run.

Each section of the snapshot is read independently.  A broken
``state.json`` degrades only the state section (issues are recorded and
``state`` falls back to ``{}``); the journal, listings and awaiting-input
status are still computed.  The builder holds no state of its own: the
caller owns the ``JournalTailer`` and the accumulated journal entries and
passes them back in on every refresh.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from runwarden.core.journal import JournalTailer
from runwarden.interaction.contract import InteractionController
from runwarden.models.run import MAIN_JS_REL_PATH, Run
from runwarden.models.snapshot import (
    AwaitingInputStatus,
    FileItem,
    JournalSection,
    RunDetailsSnapshot,
    SnapshotLimits,
    StateIssue,
    StateIssueCode,
    StateSection,
)

logger = logging.getLogger(__name__)

DEFAULT_SCAN_LIMIT = 5000


class SnapshotResult(BaseModel):
    """A fresh snapshot plus the journal history the caller should retain."""

    model_config = ConfigDict(frozen=True)

    snapshot: RunDetailsSnapshot
    next_journal_entries: list[Any] = []


def build_snapshot(
    run: Run,
    journal_tailer: JournalTailer,
    existing_entries: list[Any] | None = None,
    limits: SnapshotLimits | None = None,
    *,
    interaction: InteractionController | None = None,
) -> SnapshotResult:
    """Read every source of *run* and compose a ``RunDetailsSnapshot``.

    Parameters
    ----------
    run:
        The run to describe.
    journal_tailer:
        Tailer owning the journal cursor for this run.  Invoked exactly once.
    existing_entries:
        Journal entries accumulated by previous refreshes.
    limits:
        Listing and journal caps.  Defaults to ``SnapshotLimits()``.
    interaction:
        Optional interaction controller consulted for awaiting-input status.
    """
    limits = limits or SnapshotLimits()
    paths = run.paths

    state = read_state_section(paths.state_json)

    tail = journal_tailer.tail(
        paths.journal_jsonl,
        existing_entries or [],
        max_entries=limits.max_journal_entries,
    )
    journal = JournalSection(entries=tail.accumulated, errors=tail.errors)

    snapshot = RunDetailsSnapshot(
        run=run,
        state=state,
        journal=journal,
        work_summaries=list_recent_files(
            paths.work_summaries_dir,
            limits.max_work_summaries,
            scan_limit=limits.max_scanned_files,
        ),
        prompts=list_recent_files(
            paths.prompts_dir, limits.max_prompts, scan_limit=limits.max_scanned_files
        ),
        main_js=describe_file(paths.run_root / MAIN_JS_REL_PATH, paths.run_root),
        artifacts=list_tree(paths.artifacts_dir, limits.max_artifacts),
        awaiting_input=_awaiting_input(run.id, interaction),
    )
    return SnapshotResult(snapshot=snapshot, next_journal_entries=tail.accumulated)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


def read_state_section(state_path: Path) -> StateSection:
    """Parse ``state.json``; on any failure return ``{}`` plus an issue."""

    def degraded(code: StateIssueCode, message: str) -> StateSection:
        logger.warning("State file %s: %s", state_path, message)
        return StateSection(state={}, issues=[StateIssue(code=code, message=message)])

    try:
        raw = Path(state_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return degraded(StateIssueCode.STATE_MISSING, f"{state_path.name} not found")
    except (OSError, UnicodeDecodeError) as exc:
        return degraded(
            StateIssueCode.STATE_UNREADABLE, f"Could not read {state_path.name}: {exc}"
        )

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return degraded(
            StateIssueCode.STATE_INVALID_JSON,
            f"Invalid JSON in {state_path.name} (line {exc.lineno}, column {exc.colno}): {exc.msg}",
        )

    if not isinstance(data, dict):
        return degraded(
            StateIssueCode.STATE_NOT_OBJECT,
            f"{state_path.name} must contain a JSON object, got {type(data).__name__}",
        )
    return StateSection(state=data, issues=[])


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def describe_file(path: Path, base: Path) -> FileItem | None:
    """``FileItem`` for an existing regular file, else ``None``."""
    try:
        st = path.stat()
    except OSError:
        return None
    if not path.is_file():
        return None
    return FileItem(
        rel_path=_rel(path, base),
        fs_path=str(path),
        size=st.st_size,
        mtime_ms=st.st_mtime * 1000.0,
        is_directory=False,
    )


def list_recent_files(
    directory: Path, max_items: int, *, scan_limit: int = DEFAULT_SCAN_LIMIT
) -> list[FileItem]:
    """Files under *directory*, newest first, at most *max_items*.

    Ties on modification time are broken by relative path.  A missing
    directory yields an empty list.  At most *scan_limit* files are
    examined, in name-sorted walk order, so a runaway folder costs no more
    than the limit; files beyond it are not considered.
    """
    if max_items <= 0 or not directory.is_dir():
        return []

    items: list[FileItem] = []
    examined = 0
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for name in sorted(filenames):
            if examined >= scan_limit:
                logger.debug("Listing of %s capped at %d files", directory, scan_limit)
                break
            examined += 1
            item = describe_file(Path(dirpath) / name, directory)
            if item is not None:
                items.append(item)
        if examined >= scan_limit:
            break

    items.sort(key=lambda i: (-(i.mtime_ms or 0.0), i.rel_path))
    return items[:max_items]


def list_tree(directory: Path, max_items: int) -> list[FileItem]:
    """Files and folders under *directory* in relative-path order, at most *max_items*.

    A folder is listed immediately before its contents.  The walk stops as
    soon as the cap is reached, so huge artifact trees cost no more than
    the cap.  Symlinked folders are listed but not entered.
    """
    if max_items <= 0 or not directory.is_dir():
        return []

    items: list[FileItem] = []
    _walk_sorted(directory, directory, items, max_items)
    return items


def _walk_sorted(current: Path, base: Path, items: list[FileItem], max_items: int) -> bool:
    """Depth-first, name-sorted walk.  Returns ``True`` once the cap is hit."""
    try:
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", current, exc)
        return False

    for entry in entries:
        path = Path(entry.path)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            items.append(
                FileItem(
                    rel_path=_rel(path, base),
                    fs_path=str(path),
                    mtime_ms=_mtime_ms(path),
                    is_directory=True,
                )
            )
        else:
            item = describe_file(path, base)
            if item is None:
                continue
            items.append(item)
        if len(items) >= max_items:
            return True
        if is_dir and _walk_sorted(path, base, items, max_items):
            return True
    return False


def _rel(path: Path, base: Path) -> str:
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.name


def _mtime_ms(path: Path) -> float | None:
    try:
        return path.stat().st_mtime * 1000.0
    except OSError:
        return None


# ---------------------------------------------------------------------------
# Awaiting input
# ---------------------------------------------------------------------------


def _awaiting_input(
    run_id: str, interaction: InteractionController | None
) -> AwaitingInputStatus:
    if interaction is None:
        return AwaitingInputStatus(awaiting=False)
    try:
        status = interaction.get_awaiting_input(run_id)
    except Exception:  # noqa: BLE001
        logger.exception("Awaiting-input query failed for run %s", run_id)
        return AwaitingInputStatus(awaiting=False)
    return status if status is not None else AwaitingInputStatus(awaiting=False)
