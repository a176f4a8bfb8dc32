"""Polling watcher for run directory trees.

Stats every file under each watched run root and reports the paths whose
size or modification time changed, appeared or vanished since the last
poll.  Folders are reported when they appear or vanish, so an empty
folder created under ``artifacts/`` still triggers a refresh.  Polling
keeps it portable and needs no native notification support.  Each root is
scanned up to ``max_files_per_root`` entries (files and folders) so that a
huge artifact tree cannot stall the loop.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from runwarden.surface.batching import RunChangeBatcher

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILES_PER_ROOT = 5000

_Signature = tuple[int, int]
_DIR_SIGNATURE: _Signature = (-1, 0)


class RunTreeWatcher:
    """Detects file changes under the roots tracked by a ``RunChangeBatcher``."""

    def __init__(
        self,
        batcher: RunChangeBatcher,
        *,
        max_files_per_root: int = DEFAULT_MAX_FILES_PER_ROOT,
    ) -> None:
        self._batcher = batcher
        self._max_files = max_files_per_root
        self._signatures: dict[str, dict[str, _Signature]] = {}

    def poll(self) -> list[Path]:
        """Scan every tracked root, notify the batcher, return changed paths.

        The first scan of a root only records a baseline.
        """
        changed: list[Path] = []
        roots = self._batcher.tracked_roots
        for run_id in list(self._signatures):
            if run_id not in roots:
                del self._signatures[run_id]

        for run_id, root in roots.items():
            current = self._scan(root)
            previous = self._signatures.get(run_id)
            self._signatures[run_id] = current
            if previous is None:
                continue
            for path_str in current.keys() | previous.keys():
                if current.get(path_str) != previous.get(path_str):
                    changed.append(Path(path_str))

        for path in changed:
            self._batcher.notify(path)
        return changed

    def _scan(self, root: Path) -> dict[str, _Signature]:
        signatures: dict[str, _Signature] = {}
        if not root.is_dir():
            return signatures
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            # Folders are recorded by presence only.
            entries = [(name, True) for name in dirnames]
            entries += [(name, False) for name in sorted(filenames)]
            for name, is_dir in entries:
                if len(signatures) >= self._max_files:
                    logger.debug("Scan of %s capped at %d entries", root, self._max_files)
                    return signatures
                path = os.path.join(dirpath, name)
                if is_dir:
                    signatures[path] = _DIR_SIGNATURE
                    continue
                try:
                    st = os.stat(path)
                except OSError:
                    continue
                signatures[path] = (st.st_size, st.st_mtime_ns)
        return signatures
