"""One live surface for one run.

A ``RunSurface`` owns everything that is private to a single on-screen
view: the journal tailer and the entries it has accumulated, the text
tail session for the file being previewed, and its subscription to
interaction changes.  It turns inbound messages into actions and posts
outbound messages back through its channel.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from runwarden.core.journal import JournalTailer
from runwarden.core.message_bus import MessageBus, MessageValidationError
from runwarden.core.path_guard import is_inside_root
from runwarden.core.snapshot import build_snapshot
from runwarden.core.text_tail import (
    DEFAULT_MAX_BYTES,
    TailError,
    TailSet,
    TextTailSession,
    read_text_file_with_limit,
)
from runwarden.interaction.contract import InteractionController, Subscription
from runwarden.models.messages import (
    CopyTextMessage,
    ErrorMessage,
    InboundMessage,
    LoadTextFileMessage,
    OpenInEditorMessage,
    OutboundMessage,
    ReadyMessage,
    RefreshMessage,
    RevealInExplorerMessage,
    SendEnterMessage,
    SendEscMessage,
    SendUserInputMessage,
    SnapshotMessage,
    TextFileErrorMessage,
    TextFileMessage,
)
from runwarden.models.run import Run
from runwarden.models.snapshot import RunDetailsSnapshot, SnapshotLimits
from runwarden.surface.channel import SurfaceChannel, SurfaceHost

logger = logging.getLogger(__name__)

# Operator-facing forwarding verbs, keyed by message class
_FORWARD_VERBS: dict[type, str] = {
    SendUserInputMessage: "input",
    SendEnterMessage: "Enter",
    SendEscMessage: "ESC",
}


class RunSurface:
    """Controller-side state and message handling for one run's surface.

    Parameters
    ----------
    run:
        The run shown on this surface.
    channel:
        Transport for outbound messages.
    host:
        Performs editor / file manager / clipboard actions.  Without a
        host those actions answer with an ``error`` message.
    interaction:
        Optional interaction controller for awaiting-input status and
        keystroke forwarding.
    limits:
        Snapshot caps.
    tail_max_bytes:
        Bound for followed previews (``loadTextFile`` with ``tail``).
    preview_max_bytes:
        Bound for one-shot previews (``loadTextFile`` without ``tail``).
    on_disposed:
        Called once after the surface has released its resources.
    """

    def __init__(
        self,
        run: Run,
        channel: SurfaceChannel,
        *,
        host: SurfaceHost | None = None,
        interaction: InteractionController | None = None,
        limits: SnapshotLimits | None = None,
        tail_max_bytes: int = DEFAULT_MAX_BYTES,
        preview_max_bytes: int = DEFAULT_MAX_BYTES,
        on_disposed: Callable[[], None] | None = None,
    ) -> None:
        self.run = run
        self._channel = channel
        self._host = host
        self._interaction = interaction
        self._limits = limits or SnapshotLimits()
        self._preview_max_bytes = preview_max_bytes
        self._on_disposed = on_disposed

        self._journal_tailer = JournalTailer()
        self._journal_entries: list[Any] = []
        self._tail_session = TextTailSession(tail_max_bytes)
        self._last_snapshot: RunDetailsSnapshot | None = None
        self._disposed = False

        self._subscription: Subscription | None = None
        if interaction is not None:
            self._subscription = interaction.on_did_change(self._on_interaction_change)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def run_id(self) -> str:
        return self.run.id

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def last_snapshot(self) -> RunDetailsSnapshot | None:
        return self._last_snapshot

    @property
    def journal_entries(self) -> list[Any]:
        return list(self._journal_entries)

    @property
    def active_tail_path(self) -> str | None:
        return self._tail_session.bound_fs_path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reveal(self) -> None:
        try:
            self._channel.reveal()
        except Exception:  # noqa: BLE001
            logger.exception("Could not reveal surface for run %s", self.run_id)

    def dispose(self) -> None:
        """Release the tail session and the interaction subscription."""
        if self._disposed:
            return
        self._disposed = True
        self._tail_session.stop()
        if self._subscription is not None:
            self._subscription.dispose()
            self._subscription = None
        self._journal_tailer.forget()
        logger.info("Surface for run %s disposed", self.run_id)
        if self._on_disposed is not None:
            self._on_disposed()

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> RunDetailsSnapshot | None:
        """Rebuild the snapshot, post it, then forward any followed-file update."""
        if self._disposed:
            return None
        try:
            result = build_snapshot(
                self.run,
                self._journal_tailer,
                self._journal_entries,
                self._limits,
                interaction=self._interaction,
            )
            self._journal_entries = result.next_journal_entries
            self._last_snapshot = result.snapshot
            self._post(SnapshotMessage(snapshot=result.snapshot))

            if self._tail_session.bound_fs_path is not None:
                self._post_tail_update(self._tail_session.poll())
        except Exception as exc:  # noqa: BLE001
            logger.exception("Refresh of run %s failed", self.run_id)
            self._post(ErrorMessage(message=f"Failed to refresh run details: {exc}"))
            return None
        return self._last_snapshot

    def _on_interaction_change(self, run_id: str) -> None:
        if run_id == self.run_id:
            self.refresh()

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def handle_message(self, raw: InboundMessage | bytes | str | dict[str, Any]) -> None:
        """Validate and act on one inbound message.

        Malformed or unknown messages are dropped with a warning.
        """
        if self._disposed:
            return
        if isinstance(raw, (bytes, str, dict)):
            try:
                message = MessageBus.receive(raw)
            except MessageValidationError as exc:
                logger.warning("Dropping inbound message for run %s: %s", self.run_id, exc)
                return
        else:
            message = raw

        try:
            self._dispatch(message)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Handling %s for run %s failed", message.type.value, self.run_id)
            self._post(ErrorMessage(message=f"Action failed: {exc}"))

    def _dispatch(self, message: InboundMessage) -> None:
        if isinstance(message, (ReadyMessage, RefreshMessage)):
            self.refresh()
        elif isinstance(message, OpenInEditorMessage):
            self._open_in_editor(message.fs_path)
        elif isinstance(message, RevealInExplorerMessage):
            self._reveal_in_explorer(message.fs_path)
        elif isinstance(message, LoadTextFileMessage):
            self._load_text_file(message.fs_path, message.tail)
        elif isinstance(message, CopyTextMessage):
            self._copy_text(message.text)
        elif isinstance(message, (SendUserInputMessage, SendEnterMessage, SendEscMessage)):
            self._forward(message)
        else:
            logger.warning("Unhandled message type %r", getattr(message, "type", None))

    def _guard(self, fs_path: str, action: str) -> Path | None:
        root = self.run.paths.run_root
        if not is_inside_root(root, fs_path):
            logger.warning(
                "Rejected %s of %r: outside run root %s", action, fs_path, root
            )
            self._post(
                ErrorMessage(message=f"Refusing to {action} a path outside the run directory.")
            )
            return None
        path = Path(fs_path)
        return path if path.is_absolute() else root / path

    def _open_in_editor(self, fs_path: str) -> None:
        path = self._guard(fs_path, "open")
        if path is None:
            return
        if self._host is None:
            self._post(ErrorMessage(message="No editor is available to open files."))
            return
        try:
            self._host.open_in_editor(path)
        except OSError as exc:
            logger.warning("Could not open %s: %s", path, exc)
            self._post(ErrorMessage(message=f"Could not open: {path.name}"))

    def _reveal_in_explorer(self, fs_path: str) -> None:
        path = self._guard(fs_path, "reveal")
        if path is None:
            return
        if self._host is None:
            self._post(ErrorMessage(message="No file manager is available."))
            return
        try:
            self._host.reveal_in_explorer(path)
        except OSError as exc:
            logger.warning("Could not reveal %s: %s", path, exc)
            self._post(ErrorMessage(message=f"Could not reveal: {path.name}"))

    def _load_text_file(self, fs_path: str, tail: bool) -> None:
        path = self._guard(fs_path, "load")
        if path is None:
            return

        if not tail:
            self._tail_session.stop()
            try:
                res = read_text_file_with_limit(path, self._preview_max_bytes)
            except OSError as exc:
                self._post(TextFileErrorMessage(fs_path=fs_path, message=str(exc)))
                return
            self._post(
                TextFileMessage(
                    fs_path=fs_path,
                    content=res.content,
                    truncated=res.truncated,
                    size=res.size,
                )
            )
            return

        self._post_tail_update(self._tail_session.start(path), fs_path=fs_path)

    def _post_tail_update(
        self, update: TailSet | TailError | None, *, fs_path: str | None = None
    ) -> None:
        if update is None:
            return
        shown_path = fs_path or update.fs_path
        if isinstance(update, TailSet):
            self._post(
                TextFileMessage(
                    fs_path=shown_path,
                    content=update.content,
                    truncated=update.truncated,
                    size=update.size,
                )
            )
        else:
            self._post(TextFileErrorMessage(fs_path=shown_path, message=update.message))

    def _copy_text(self, text: str) -> None:
        if not text:
            return
        if self._host is None:
            self._post(ErrorMessage(message="No clipboard is available."))
            return
        try:
            self._host.copy_text(text)
        except OSError as exc:
            logger.warning("Copy to clipboard failed: %s", exc)

    def _forward(
        self, message: SendUserInputMessage | SendEnterMessage | SendEscMessage
    ) -> None:
        verb = _FORWARD_VERBS[type(message)]
        if message.run_id != self.run_id:
            logger.warning(
                "Rejected %s for run %s from surface of run %s",
                verb,
                message.run_id,
                self.run_id,
            )
            self._post(ErrorMessage(message=f"Refusing to send {verb} to a different run."))
            return
        if self._interaction is None:
            self._post(
                ErrorMessage(message=f"No interactive process is available to send {verb}.")
            )
            return

        if isinstance(message, SendUserInputMessage):
            text = message.text.strip()
            if not text:
                return
            ok = self._interaction.send_user_input(message.run_id, text)
        elif isinstance(message, SendEnterMessage):
            ok = self._interaction.send_enter(message.run_id)
        else:
            ok = self._interaction.send_esc(message.run_id)

        if not ok:
            self._post(
                ErrorMessage(message=f"Could not send {verb}: no associated process.")
            )

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def _post(self, message: OutboundMessage) -> None:
        try:
            self._channel.post(message)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Posting %s to surface of run %s failed", message.type.value, self.run_id
            )
