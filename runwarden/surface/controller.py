"""RunSurfaceController: the registry of open run surfaces.

Exactly one surface exists per run id.  The controller creates surfaces
through a host-supplied channel factory, routes inbound messages and
refresh triggers to them, and removes each entry when its surface is
disposed.

Refresh triggers
----------------
1. Explicit operator request (``ready`` / ``refresh`` messages, or
   ``refresh(run_id)``).
2. Batched filesystem changes (``on_run_change_batch``).
3. Interaction change events (each surface subscribes for its own run).
"""

from __future__ import annotations

import logging
from typing import Any

from runwarden.core.text_tail import DEFAULT_MAX_BYTES
from runwarden.interaction.contract import InteractionController
from runwarden.models.messages import InboundMessage
from runwarden.models.run import Run
from runwarden.models.snapshot import SnapshotLimits
from runwarden.surface.batching import RunChangeBatch, RunChangeBatcher
from runwarden.surface.channel import ChannelFactory, SurfaceHost
from runwarden.surface.run_surface import RunSurface

logger = logging.getLogger(__name__)


class RunSurfaceController:
    """Owns one ``RunSurface`` per run id.

    Parameters
    ----------
    channel_factory:
        Creates the outbound channel for a newly opened run.
    host:
        Shared ``SurfaceHost`` for editor, file manager and clipboard.
    interaction:
        Shared interaction controller, if an interactive process can be
        attached to runs.
    limits:
        Snapshot caps applied by every surface.
    batcher:
        When given, opened runs are tracked by it and untracked on dispose.
    """

    def __init__(
        self,
        channel_factory: ChannelFactory,
        *,
        host: SurfaceHost | None = None,
        interaction: InteractionController | None = None,
        limits: SnapshotLimits | None = None,
        batcher: RunChangeBatcher | None = None,
        tail_max_bytes: int = DEFAULT_MAX_BYTES,
        preview_max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self._channel_factory = channel_factory
        self._host = host
        self._interaction = interaction
        self._limits = limits or SnapshotLimits()
        self._batcher = batcher
        self._tail_max_bytes = tail_max_bytes
        self._preview_max_bytes = preview_max_bytes
        self._surfaces: dict[str, RunSurface] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def __contains__(self, run_id: object) -> bool:
        return run_id in self._surfaces

    def __len__(self) -> int:
        return len(self._surfaces)

    @property
    def run_ids(self) -> list[str]:
        return list(self._surfaces)

    def get(self, run_id: str) -> RunSurface | None:
        return self._surfaces.get(run_id)

    def open(self, run: Run) -> RunSurface:
        """Show *run*, reusing its surface if one is already open.

        Either way the surface is refreshed before returning.
        """
        existing = self._surfaces.get(run.id)
        if existing is not None:
            existing.reveal()
            existing.refresh()
            return existing

        surface = RunSurface(
            run,
            self._channel_factory(run),
            host=self._host,
            interaction=self._interaction,
            limits=self._limits,
            tail_max_bytes=self._tail_max_bytes,
            preview_max_bytes=self._preview_max_bytes,
            on_disposed=lambda: self._forget(run.id),
        )
        self._surfaces[run.id] = surface
        if self._batcher is not None:
            self._batcher.track(run.id, run.paths.run_root)
        logger.info("Opened surface for run %s", run.id)
        surface.refresh()
        return surface

    def dispose(self, run_id: str) -> bool:
        """Close the surface for *run_id*.  ``False`` if none was open."""
        surface = self._surfaces.get(run_id)
        if surface is None:
            return False
        surface.dispose()
        return True

    def dispose_all(self) -> None:
        for surface in list(self._surfaces.values()):
            surface.dispose()

    def _forget(self, run_id: str) -> None:
        self._surfaces.pop(run_id, None)
        if self._batcher is not None:
            self._batcher.untrack(run_id)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    def refresh(self, run_id: str) -> bool:
        surface = self._surfaces.get(run_id)
        if surface is None:
            return False
        surface.refresh()
        return True

    def on_run_change_batch(self, batch: RunChangeBatch) -> None:
        """Refresh each open surface named in *batch* once."""
        for run_id in dict.fromkeys(batch.run_ids):
            surface = self._surfaces.get(run_id)
            if surface is not None:
                surface.refresh()

    def handle_message(
        self, run_id: str, raw: InboundMessage | bytes | str | dict[str, Any]
    ) -> bool:
        """Route an inbound message to the surface of *run_id*."""
        surface = self._surfaces.get(run_id)
        if surface is None:
            logger.warning("Message for run %s without an open surface dropped", run_id)
            return False
        surface.handle_message(raw)
        return True
