"""Canonical JSON and hashing helpers.

Used for the message wire format and for fingerprinting the head of a
tailed file so that a replaced file is detected even when its size did
not shrink.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: sorted keys, compact separators, UTF-8.

    ``ensure_ascii`` is off so previews of non-ASCII text stay readable on
    the wire.
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def head_fingerprint(path: Path, length: int) -> str:
    """SHA-256 of the first *length* bytes of *path*.

    Returns ``""`` for ``length <= 0``.  Raises ``OSError`` when the file
    cannot be read; callers decide how to degrade.
    """
    if length <= 0:
        return ""
    with Path(path).open("rb") as fh:
        return sha256_hex(fh.read(length))
