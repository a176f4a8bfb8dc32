"""Path safety guard: operator actions may only touch files inside a run root.

Every inbound action that names a filesystem path must pass
``is_inside_root`` before any I/O is attempted on that path.  Both sides
are fully resolved first (``..`` segments collapsed, symlinks followed), so
neither a traversal string nor a symlink planted inside the run directory
can point an action somewhere else.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class PathOutsideRunRootError(PermissionError):
    """Raised by ``ensure_inside_root`` for a path that escapes the run root."""


def _resolve(path: Path | str) -> Path:
    # strict=False: the candidate may legitimately not exist yet, and the
    # guard answers a containment question, not an existence one.
    return Path(os.path.expanduser(os.fspath(path))).resolve(strict=False)


def is_inside_root(root: Path | str, candidate: Path | str | None) -> bool:
    """Return ``True`` if *candidate* is *root* or a descendant of it.

    A relative *candidate* is interpreted relative to *root*.  Empty or
    non-path values are never inside.
    """
    if not isinstance(candidate, (str, os.PathLike)):
        return False
    if isinstance(candidate, str) and (not candidate.strip() or "\x00" in candidate):
        return False

    try:
        resolved_root = _resolve(root)
        candidate_path = Path(os.fspath(candidate))
        if not candidate_path.is_absolute():
            candidate_path = Path(root) / candidate_path
        resolved_candidate = _resolve(candidate_path)
    except (OSError, RuntimeError, ValueError) as exc:
        logger.warning("Could not resolve %r against %s: %s", candidate, root, exc)
        return False

    return resolved_candidate == resolved_root or resolved_root in resolved_candidate.parents


def ensure_inside_root(root: Path | str, candidate: Path | str) -> Path:
    """Return the resolved *candidate*, or raise ``PathOutsideRunRootError``."""
    if not is_inside_root(root, candidate):
        raise PathOutsideRunRootError(
            f"Refusing to access a path outside the run directory: {candidate}"
        )
    candidate_path = Path(os.fspath(candidate))
    if not candidate_path.is_absolute():
        candidate_path = Path(root) / candidate_path
    return _resolve(candidate_path)
