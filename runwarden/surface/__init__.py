"""Run surfaces: registry, refresh orchestration and the message protocol.

Modules
-------
controller
    ``RunSurfaceController`` keeps one ``RunSurface`` per run id and routes
    refresh triggers and inbound messages to it.
run_surface
    ``RunSurface`` owns a run's journal cursor, text tail session and
    interaction subscription.
channel
    ``SurfaceChannel`` / ``SurfaceHost`` protocols implemented by hosts.
batching
    ``RunChangeBatcher`` collapses change notifications into per-run batches.
watcher
    ``RunTreeWatcher`` polls run trees and feeds the batcher.
"""

from runwarden.surface.batching import RunChangeBatch, RunChangeBatcher
from runwarden.surface.channel import SurfaceChannel, SurfaceHost
from runwarden.surface.controller import RunSurfaceController
from runwarden.surface.run_surface import RunSurface
from runwarden.surface.watcher import RunTreeWatcher

__all__ = [
    "RunChangeBatch",
    "RunChangeBatcher",
    "RunSurface",
    "RunSurfaceController",
    "RunTreeWatcher",
    "SurfaceChannel",
    "SurfaceHost",
]
