"""runwarden: live monitoring core for on-disk orchestration runs.

Reads a run directory (state.json, journal.jsonl, artifacts, work
summaries, prompts, code/main.js) into point-in-time snapshots, tails the
journal and followed text files incrementally, and routes a closed set of
operator messages between a display surface and the controller.
"""

__version__ = "0.1.0"
__description__ = "Live monitoring core for on-disk orchestration runs"

from runwarden.surface.controller import RunSurfaceController
from runwarden.core.snapshot import build_snapshot
from runwarden.cli.app import app as cli

__all__ = ["RunSurfaceController", "build_snapshot", "cli", "__version__"]
