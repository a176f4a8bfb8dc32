"""Bounded previews of arbitrarily large, growing text files.

``TextTailSession`` follows one file at a time and serves only its most
recent bytes, since the consumer wants current progress rather than the
beginning of the file.  ``read_text_file_with_limit`` is the one-shot
counterpart that serves the head of a file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 200_000


class TailSet(BaseModel):
    """New content for the bound file."""

    model_config = ConfigDict(frozen=True)

    fs_path: str
    content: str
    truncated: bool
    size: int


class TailError(BaseModel):
    """The bound file could not be read.  The binding is kept."""

    model_config = ConfigDict(frozen=True)

    fs_path: str
    message: str


TailUpdate = TailSet | TailError


class TextFileRead(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    truncated: bool
    size: int


def _strip_leading_continuation(data: bytes) -> bytes:
    # A cut in the middle of a multi-byte UTF-8 sequence leaves up to three
    # continuation bytes at the front.
    skip = 0
    while skip < min(3, len(data)) and (data[skip] & 0xC0) == 0x80:
        skip += 1
    return data[skip:]


def _limit_chars(content: str, max_chars: int | None, *, keep_tail: bool) -> tuple[str, bool]:
    if max_chars is None or len(content) <= max_chars:
        return content, False
    if keep_tail:
        return content[len(content) - max_chars:], True
    return content[:max_chars], True


def read_text_file_with_limit(
    path: Path | str,
    max_bytes: int = DEFAULT_MAX_BYTES,
    *,
    max_chars: int | None = None,
) -> TextFileRead:
    """Read at most *max_bytes* from the start of *path*.

    Raises ``OSError`` when the file cannot be read.
    """
    fs_path = Path(path)
    size = fs_path.stat().st_size
    with fs_path.open("rb") as fh:
        data = fh.read(max(0, max_bytes))
    truncated = size > len(data)
    content = data.decode("utf-8", errors="replace")
    content, char_cut = _limit_chars(content, max_chars, keep_tail=False)
    return TextFileRead(content=content, truncated=truncated or char_cut, size=size)


def read_text_file_tail(
    path: Path | str,
    max_bytes: int = DEFAULT_MAX_BYTES,
    *,
    max_chars: int | None = None,
) -> TextFileRead:
    """Read at most the last *max_bytes* of *path*.

    Raises ``OSError`` when the file cannot be read.
    """
    fs_path = Path(path)
    with fs_path.open("rb") as fh:
        size = os.fstat(fh.fileno()).st_size
        start = max(0, size - max(0, max_bytes))
        fh.seek(start)
        data = fh.read(size - start)
    truncated = start > 0
    if truncated:
        data = _strip_leading_continuation(data)
    content = data.decode("utf-8", errors="replace")
    content, char_cut = _limit_chars(content, max_chars, keep_tail=True)
    return TextFileRead(content=content, truncated=truncated or char_cut, size=size)


class TextTailSession:
    """Follows a single file and reports bounded tail content when it changes.

    Parameters
    ----------
    max_bytes:
        Upper bound on the bytes read from the end of the file.
    max_chars:
        Optional upper bound on the characters served after decoding.

    Starting a session on a new path silently replaces the previous
    binding; there is never more than one followed file per session.
    """

    def __init__(
        self,
        max_bytes: int = DEFAULT_MAX_BYTES,
        *,
        max_chars: int | None = None,
    ) -> None:
        self.max_bytes = max_bytes
        self.max_chars = max_chars
        self._bound: Path | None = None
        self._content: str | None = None
        self._truncated = False
        self._last_size: int | None = None
        self._last_mtime_ns: int | None = None
        self._last_error: str | None = None

    @property
    def bound_fs_path(self) -> str | None:
        return str(self._bound) if self._bound is not None else None

    @property
    def truncated(self) -> bool:
        return self._truncated

    @property
    def last_known_size(self) -> int | None:
        return self._last_size

    def start(self, path: Path | str) -> TailUpdate:
        """Bind to *path* and return its current tail."""
        if self._bound is not None and Path(path) != self._bound:
            logger.debug("Tail session rebinding %s -> %s", self._bound, path)
        self._bind(Path(path))
        update = self._read()
        return update if update is not None else self._current()

    def poll(self) -> TailUpdate | None:
        """Return new content, an error, or ``None`` when nothing changed.

        A failure is reported once; polling a file that keeps failing with
        the same error returns ``None`` until it recovers or fails differently.
        """
        if self._bound is None:
            return None
        try:
            st = self._bound.stat()
        except OSError as exc:
            return self._error(exc)
        if st.st_size == self._last_size and st.st_mtime_ns == self._last_mtime_ns:
            return None
        return self._read()

    def stop(self) -> None:
        """Release the current binding."""
        self._bind(None)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bind(self, path: Path | None) -> None:
        self._bound = path
        self._content = None
        self._truncated = False
        self._last_size = None
        self._last_mtime_ns = None
        self._last_error = None

    def _current(self) -> TailSet:
        return TailSet(
            fs_path=str(self._bound),
            content=self._content or "",
            truncated=self._truncated,
            size=self._last_size or 0,
        )

    def _error(self, exc: OSError) -> TailError | None:
        # Forget what was last served so a recovered file is re-sent.
        self._content = None
        self._last_size = None
        self._last_mtime_ns = None
        message = str(exc)
        if message == self._last_error:
            return None
        self._last_error = message
        logger.warning("Tail of %s failed: %s", self._bound, exc)
        return TailError(fs_path=str(self._bound), message=message)

    def _read(self) -> TailUpdate | None:
        assert self._bound is not None
        try:
            mtime_ns = self._bound.stat().st_mtime_ns
            result = read_text_file_tail(
                self._bound, self.max_bytes, max_chars=self.max_chars
            )
        except OSError as exc:
            return self._error(exc)

        self._last_error = None
        changed = result.content != self._content or result.truncated != self._truncated
        self._content = result.content
        self._truncated = result.truncated
        self._last_size = result.size
        self._last_mtime_ns = mtime_ns
        if not changed:
            return None
        return self._current()
