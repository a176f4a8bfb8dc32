"""Protocols a host implements to put a run surface on screen.

``SurfaceChannel`` is the transport to one surface: the controller posts
outbound messages to it and asks it to come to the front.  ``SurfaceHost``
performs the operator actions that leave the surface (opening a file in an
editor, revealing it in a file manager, copying text).
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from runwarden.models.messages import OutboundMessage
from runwarden.models.run import Run


@runtime_checkable
class SurfaceChannel(Protocol):
    """Outbound side of one surface."""

    def post(self, message: OutboundMessage) -> None:
        """Deliver *message*.  May raise; the controller logs and carries on."""
        ...

    def reveal(self) -> None:
        """Bring the surface to the front."""
        ...


ChannelFactory = Callable[[Run], SurfaceChannel]


@runtime_checkable
class SurfaceHost(Protocol):
    """Actions that act outside the surface.  Paths are already guarded."""

    def open_in_editor(self, path: Path) -> None:
        """Raise ``OSError`` when the file cannot be opened."""
        ...

    def reveal_in_explorer(self, path: Path) -> None:
        ...

    def copy_text(self, text: str) -> None:
        ...
