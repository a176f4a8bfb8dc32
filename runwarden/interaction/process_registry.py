"""In-process ``InteractionController`` backed by attached input streams.

The host that launched an interactive process attaches its stdin (or a pty
master wrapper) under the run id, and reports when the process appears to
be waiting for the operator.  Forwarded keystrokes are written to that
stream.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from runwarden.interaction.contract import ChangeEmitter, ChangeHandler, Subscription
from runwarden.models.snapshot import AwaitingInputStatus

logger = logging.getLogger(__name__)

ENTER = "\r"
ESC = "\x1b"


@runtime_checkable
class InputStream(Protocol):
    """Anything with a text ``write`` method, e.g. ``Popen(..., text=True).stdin``."""

    def write(self, data: str) -> object:
        ...


class ProcessInteractionRegistry:
    """Run-id keyed registry of attached interactive processes."""

    def __init__(self) -> None:
        self._streams: dict[str, InputStream] = {}
        self._awaiting: dict[str, AwaitingInputStatus] = {}
        self._changes = ChangeEmitter()

    # ------------------------------------------------------------------
    # Host side
    # ------------------------------------------------------------------

    def attach(self, run_id: str, stream: InputStream) -> None:
        """Attach *stream* as the input of the process driving *run_id*."""
        self._streams[run_id] = stream
        logger.info("Interactive process attached to run %s", run_id)

    def detach(self, run_id: str) -> None:
        """Forget the process for *run_id* and clear its awaiting status."""
        had_stream = self._streams.pop(run_id, None) is not None
        had_status = self._awaiting.pop(run_id, None) is not None
        if had_stream:
            logger.info("Interactive process detached from run %s", run_id)
        if had_status:
            self._changes.fire(run_id)

    def is_attached(self, run_id: str) -> bool:
        return run_id in self._streams

    def mark_awaiting(
        self, run_id: str, *, prompt: str | None = None, source: str | None = None
    ) -> None:
        status = AwaitingInputStatus(awaiting=True, prompt=prompt, source=source)
        if self._awaiting.get(run_id) == status:
            return
        self._awaiting[run_id] = status
        self._changes.fire(run_id)

    def clear_awaiting(self, run_id: str) -> None:
        if self._awaiting.pop(run_id, None) is not None:
            self._changes.fire(run_id)

    # ------------------------------------------------------------------
    # InteractionController
    # ------------------------------------------------------------------

    def get_awaiting_input(self, run_id: str) -> AwaitingInputStatus | None:
        return self._awaiting.get(run_id)

    def send_user_input(self, run_id: str, text: str) -> bool:
        return self._write(run_id, text + ENTER)

    def send_enter(self, run_id: str) -> bool:
        return self._write(run_id, ENTER)

    def send_esc(self, run_id: str) -> bool:
        return self._write(run_id, ESC)

    def on_did_change(self, handler: ChangeHandler) -> Subscription:
        return self._changes.subscribe(handler)

    def _write(self, run_id: str, data: str) -> bool:
        stream = self._streams.get(run_id)
        if stream is None:
            return False
        try:
            stream.write(data)
            flush = getattr(stream, "flush", None)
            if callable(flush):
                flush()
        except (OSError, ValueError) as exc:
            # Broken pipe or closed file: the process is gone.
            logger.warning("Input to run %s failed, detaching: %s", run_id, exc)
            self.detach(run_id)
            return False
        # Input answers the prompt.
        self.clear_awaiting(run_id)
        return True
