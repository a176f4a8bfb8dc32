"""Incremental tailer for an append-only JSONL journal.

The journal is written by the external engine, one JSON value per line.
``JournalTailer`` turns it into an ordered stream of parsed entries while
reading only the bytes appended since the previous call.

Behaviour
---------
- One private ``TailCursor`` per path, starting at offset 0.
- A final line without a trailing ``\\n`` is held back as a pending partial
  line and completed on a later call.  A writer flushing mid-line never
  produces a premature entry.
- Each complete line is parsed on its own.  A parse failure is recorded as a
  ``JournalError`` with its 1-based line number and parsing carries on.
- Rotation or truncation resets the cursor and re-parses from the start.
  Rotation is detected when the file shrinks, or when its modification time
  moved and the fingerprint of the already-consumed head no longer matches.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from runwarden.core.hasher import head_fingerprint
from runwarden.models.snapshot import JournalError

logger = logging.getLogger(__name__)

DEFAULT_FINGERPRINT_BYTES = 256


class TailCursor:
    """Read position for one tailed file.

    Owned by exactly one ``JournalTailer``; never shared.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.byte_offset = 0
        # Bytes after the last newline, kept raw so a multi-byte character
        # split across two reads is decoded whole.
        self.pending_partial_line = b""
        self.lines_consumed = 0
        self.last_size = 0
        self.last_mtime_ns = 0
        self.head_fingerprint = ""
        self.fingerprint_length = 0

    def __repr__(self) -> str:
        return (
            f"TailCursor(path={str(self.path)!r}, byte_offset={self.byte_offset}, "
            f"pending={len(self.pending_partial_line)}B)"
        )


class TailResult(BaseModel):
    """Outcome of one ``tail()`` call.

    ``entries`` holds only what was newly observed by this call.
    ``accumulated`` is the caller's retained history (discarded when
    ``reset`` is true) followed by ``entries``, capped to the most recent
    ``max_entries`` when a cap was given.
    """

    model_config = ConfigDict(frozen=True)

    entries: list[Any] = []
    errors: list[JournalError] = []
    accumulated: list[Any] = []
    reset: bool = False


class JournalTailer:
    """Incremental, partial-failure tolerant JSONL reader.

    Parameters
    ----------
    fingerprint_bytes:
        How many leading bytes are hashed to detect a replaced file whose
        size did not shrink.  ``0`` disables the fingerprint check.
    """

    def __init__(self, *, fingerprint_bytes: int = DEFAULT_FINGERPRINT_BYTES) -> None:
        self._fingerprint_bytes = max(0, fingerprint_bytes)
        self._cursors: dict[str, TailCursor] = {}

    def cursor_for(self, path: Path | str) -> TailCursor | None:
        """Return the cursor tracked for *path*, if any."""
        return self._cursors.get(str(Path(path)))

    def forget(self, path: Path | str | None = None) -> None:
        """Drop the cursor for *path*, or every cursor when *path* is None."""
        if path is None:
            self._cursors.clear()
        else:
            self._cursors.pop(str(Path(path)), None)

    # ------------------------------------------------------------------
    # Tail
    # ------------------------------------------------------------------

    def tail(
        self,
        path: Path | str,
        existing_entries: list[Any] | None = None,
        *,
        max_entries: int | None = None,
    ) -> TailResult:
        """Read and parse everything appended to *path* since the last call.

        A missing file yields an empty result: the engine may simply not
        have written its journal yet.  A file that exists but cannot be read
        yields a single error with ``line == 0``.
        """
        fs_path = Path(path)
        key = str(fs_path)
        existing = list(existing_entries or [])
        cursor = self._cursors.get(key)
        if cursor is None:
            cursor = TailCursor(fs_path)
            self._cursors[key] = cursor

        try:
            st = os.stat(fs_path)
        except FileNotFoundError:
            return TailResult(accumulated=_cap(existing, max_entries))
        except OSError as exc:
            logger.warning("Cannot stat journal %s: %s", fs_path, exc)
            return TailResult(
                errors=[JournalError(line=0, message=f"Could not read journal: {exc}")],
                accumulated=_cap(existing, max_entries),
            )

        try:
            reset = self._detect_rotation(cursor, st.st_size, st.st_mtime_ns)
        except OSError as exc:
            logger.warning("Cannot fingerprint journal %s: %s", fs_path, exc)
            return TailResult(
                errors=[JournalError(line=0, message=f"Could not read journal: {exc}")],
                accumulated=_cap(existing, max_entries),
            )

        if reset:
            logger.info(
                "Journal %s rotated or truncated; re-reading from the start", fs_path
            )
            cursor = TailCursor(fs_path)
            self._cursors[key] = cursor
            existing = []

        cursor.last_mtime_ns = st.st_mtime_ns
        cursor.last_size = st.st_size

        if st.st_size == cursor.byte_offset:
            return TailResult(accumulated=_cap(existing, max_entries), reset=reset)

        try:
            data = self._read_delta(cursor, st.st_size)
        except OSError as exc:
            logger.warning("Cannot read journal %s: %s", fs_path, exc)
            return TailResult(
                errors=[JournalError(line=0, message=f"Could not read journal: {exc}")],
                accumulated=_cap(existing, max_entries),
                reset=reset,
            )

        entries, errors = self._parse_lines(cursor, data)
        self._refresh_fingerprint(cursor)

        if errors:
            logger.warning(
                "Journal %s: %d unparsable line(s) skipped", fs_path, len(errors)
            )

        return TailResult(
            entries=entries,
            errors=errors,
            accumulated=_cap(existing + entries, max_entries),
            reset=reset,
        )

    def tail_merged(
        self,
        path: Path | str,
        existing_entries: list[Any] | None = None,
        max_entries: int | None = None,
    ) -> tuple[list[Any], list[JournalError]]:
        """``(accumulated entries, new errors)`` for callers that keep no result object."""
        result = self.tail(path, existing_entries, max_entries=max_entries)
        return result.accumulated, result.errors

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _detect_rotation(self, cursor: TailCursor, size: int, mtime_ns: int) -> bool:
        if size < cursor.last_size:
            return True
        if (
            cursor.fingerprint_length
            and mtime_ns != cursor.last_mtime_ns
            and size >= cursor.fingerprint_length
        ):
            current = head_fingerprint(cursor.path, cursor.fingerprint_length)
            return current != cursor.head_fingerprint
        return False

    @staticmethod
    def _read_delta(cursor: TailCursor, size: int) -> bytes:
        # Bounded by the size observed at stat time; anything written after
        # that is picked up by the next call.
        with cursor.path.open("rb") as fh:
            fh.seek(cursor.byte_offset)
            data = fh.read(size - cursor.byte_offset)
        cursor.byte_offset += len(data)
        return data

    @staticmethod
    def _parse_lines(
        cursor: TailCursor, data: bytes
    ) -> tuple[list[Any], list[JournalError]]:
        buffer = cursor.pending_partial_line + data
        *complete, cursor.pending_partial_line = buffer.split(b"\n")

        entries: list[Any] = []
        errors: list[JournalError] = []
        for raw in complete:
            cursor.lines_consumed += 1
            line_no = cursor.lines_consumed
            text = raw.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                entries.append(json.loads(text))
            except json.JSONDecodeError as exc:
                errors.append(
                    JournalError(
                        line=line_no,
                        message=f"Invalid JSON on line {line_no}: {exc.msg}",
                    )
                )
        return entries, errors

    def _refresh_fingerprint(self, cursor: TailCursor) -> None:
        wanted = min(cursor.byte_offset, self._fingerprint_bytes)
        if wanted <= cursor.fingerprint_length:
            return
        try:
            cursor.head_fingerprint = head_fingerprint(cursor.path, wanted)
            cursor.fingerprint_length = wanted
        except OSError as exc:
            logger.debug("Fingerprint of %s skipped: %s", cursor.path, exc)


def _cap(entries: list[Any], max_entries: int | None) -> list[Any]:
    if max_entries is None or max_entries < 0:
        return entries
    if max_entries == 0:
        return []
    return entries[-max_entries:]
