"""Collapse bursts of filesystem change notifications into per-run batches.

A busy engine can touch dozens of files under a run in a few
milliseconds.  ``RunChangeBatcher`` maps each changed path to the run
whose tree contains it and holds the run ids until the batch window has
elapsed since the first pending notification.  One batch then triggers at
most one refresh per run, however many events fed it.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 0.25


class RunChangeBatch(BaseModel):
    """Run ids with at least one changed file since the previous batch."""

    model_config = ConfigDict(frozen=True)

    run_ids: list[str]
    change_count: int = 0


class RunChangeBatcher:
    """Windowed, per-run de-duplication of change notifications.

    Parameters
    ----------
    on_batch:
        Called with each emitted ``RunChangeBatch``.
    window_seconds:
        How long after the first pending notification the batch is held.
    clock:
        Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        on_batch: Callable[[RunChangeBatch], None] | None = None,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_batch = on_batch
        self._window = max(0.0, window_seconds)
        self._clock = clock
        self._roots: dict[str, Path] = {}
        self._pending: dict[str, None] = {}
        self._pending_count = 0
        self._first_pending_at: float | None = None

    # ------------------------------------------------------------------
    # Run tracking
    # ------------------------------------------------------------------

    def track(self, run_id: str, run_root: Path | str) -> None:
        self._roots[run_id] = Path(os.path.abspath(run_root))

    def untrack(self, run_id: str) -> None:
        self._roots.pop(run_id, None)
        self._pending.pop(run_id, None)
        if not self._pending:
            self._first_pending_at = None
            self._pending_count = 0

    @property
    def tracked_roots(self) -> dict[str, Path]:
        return dict(self._roots)

    def runs_for_path(self, path: Path | str) -> list[str]:
        """Tracked run ids whose root is *path* or one of its ancestors."""
        changed = Path(os.path.abspath(path))
        return [
            run_id
            for run_id, root in self._roots.items()
            if changed == root or root in changed.parents
        ]

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def notify(self, path: Path | str) -> None:
        """Record that *path* changed.  Paths outside every run are ignored."""
        for run_id in self.runs_for_path(path):
            self.notify_run(run_id)

    def notify_run(self, run_id: str) -> None:
        if run_id not in self._roots:
            return
        if self._first_pending_at is None:
            self._first_pending_at = self._clock()
        self._pending[run_id] = None
        self._pending_count += 1

    def flush_due(self) -> RunChangeBatch | None:
        """Emit the pending batch if its window has elapsed."""
        if self._first_pending_at is None:
            return None
        if self._clock() - self._first_pending_at < self._window:
            return None
        return self.flush()

    def flush(self) -> RunChangeBatch | None:
        """Emit whatever is pending now, window or not."""
        if not self._pending:
            self._first_pending_at = None
            return None
        batch = RunChangeBatch(run_ids=list(self._pending), change_count=self._pending_count)
        self._pending = {}
        self._pending_count = 0
        self._first_pending_at = None
        logger.debug(
            "Change batch: %d notification(s) for %s", batch.change_count, batch.run_ids
        )
        if self._on_batch is not None:
            self._on_batch(batch)
        return batch
