"""Interaction forwarding contract.

An ``InteractionController`` knows whether the interactive process attached
to a run is blocked on the operator, and forwards operator keystrokes to it.
runwarden never owns that process; it only talks to it through this
protocol.

Forwarding calls return ``False`` when no process is attached to the run.
That is an ordinary answer, never an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from runwarden.models.snapshot import AwaitingInputStatus

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[str], None]


class Subscription:
    """Disposable handle returned by every subscribe-style call.

    ``dispose()`` is idempotent.
    """

    def __init__(self, on_dispose: Callable[[], None]) -> None:
        self._on_dispose: Callable[[], None] | None = on_dispose

    @property
    def disposed(self) -> bool:
        return self._on_dispose is None

    def dispose(self) -> None:
        callback, self._on_dispose = self._on_dispose, None
        if callback is not None:
            callback()


@runtime_checkable
class InteractionController(Protocol):
    """Protocol every interaction backend must implement."""

    def get_awaiting_input(self, run_id: str) -> AwaitingInputStatus | None:
        """Current awaiting-input status for *run_id*.  Pure query."""
        ...

    def send_user_input(self, run_id: str, text: str) -> bool:
        """Send a line of text.  ``False`` when no process is attached."""
        ...

    def send_enter(self, run_id: str) -> bool:
        ...

    def send_esc(self, run_id: str) -> bool:
        ...

    def on_did_change(self, handler: ChangeHandler) -> Subscription:
        """Call *handler(run_id)* whenever a run's awaiting status changes."""
        ...


class ChangeEmitter:
    """Fan-out of run-id change notifications to subscribed handlers.

    A failing handler is logged and does not prevent delivery to the
    remaining handlers.
    """

    def __init__(self) -> None:
        self._handlers: list[ChangeHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: ChangeHandler) -> Subscription:
        self._handlers.append(handler)
        return Subscription(lambda: self._unsubscribe(handler))

    def _unsubscribe(self, handler: ChangeHandler) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def fire(self, run_id: str) -> None:
        for handler in list(self._handlers):
            try:
                handler(run_id)
            except Exception:  # noqa: BLE001
                logger.exception("Interaction change handler failed for run %s", run_id)
