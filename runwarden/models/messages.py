"""Surface message protocol: closed sets of tagged messages in both directions.

Every message exchanged between a surface and the controller is one of the
models below.  No freeform payloads: unknown tags and unexpected fields are
rejected at validation time.  On the wire, messages are JSON objects tagged
by ``type`` with camelCase field names (``fsPath``, ``runId``).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from runwarden.models.snapshot import RunDetailsSnapshot


class InboundKind(str, Enum):
    """Messages a surface may send to the controller."""

    READY = "ready"
    REFRESH = "refresh"
    OPEN_IN_EDITOR = "openInEditor"
    REVEAL_IN_EXPLORER = "revealInExplorer"
    LOAD_TEXT_FILE = "loadTextFile"
    COPY_TEXT = "copyText"
    SEND_USER_INPUT = "sendUserInput"
    SEND_ENTER = "sendEnter"
    SEND_ESC = "sendEsc"


class OutboundKind(str, Enum):
    """Messages the controller posts to a surface."""

    SNAPSHOT = "snapshot"
    TEXT_FILE = "textFile"
    TEXT_FILE_ERROR = "textFileError"
    ERROR = "error"


class MessageBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")


# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class ReadyMessage(MessageBase):
    type: InboundKind = InboundKind.READY


class RefreshMessage(MessageBase):
    type: InboundKind = InboundKind.REFRESH


class OpenInEditorMessage(MessageBase):
    type: InboundKind = InboundKind.OPEN_IN_EDITOR
    fs_path: str = Field(alias="fsPath")


class RevealInExplorerMessage(MessageBase):
    type: InboundKind = InboundKind.REVEAL_IN_EXPLORER
    fs_path: str = Field(alias="fsPath")


class LoadTextFileMessage(MessageBase):
    """Preview a file.  ``tail=True`` (the default) keeps following it."""

    type: InboundKind = InboundKind.LOAD_TEXT_FILE
    fs_path: str = Field(alias="fsPath")
    tail: bool = True


class CopyTextMessage(MessageBase):
    type: InboundKind = InboundKind.COPY_TEXT
    text: str


class SendUserInputMessage(MessageBase):
    type: InboundKind = InboundKind.SEND_USER_INPUT
    run_id: str = Field(alias="runId")
    text: str


class SendEnterMessage(MessageBase):
    type: InboundKind = InboundKind.SEND_ENTER
    run_id: str = Field(alias="runId")


class SendEscMessage(MessageBase):
    type: InboundKind = InboundKind.SEND_ESC
    run_id: str = Field(alias="runId")


InboundMessage = (
    ReadyMessage
    | RefreshMessage
    | OpenInEditorMessage
    | RevealInExplorerMessage
    | LoadTextFileMessage
    | CopyTextMessage
    | SendUserInputMessage
    | SendEnterMessage
    | SendEscMessage
)

INBOUND_TYPE_MAP: dict[InboundKind, type[MessageBase]] = {
    InboundKind.READY: ReadyMessage,
    InboundKind.REFRESH: RefreshMessage,
    InboundKind.OPEN_IN_EDITOR: OpenInEditorMessage,
    InboundKind.REVEAL_IN_EXPLORER: RevealInExplorerMessage,
    InboundKind.LOAD_TEXT_FILE: LoadTextFileMessage,
    InboundKind.COPY_TEXT: CopyTextMessage,
    InboundKind.SEND_USER_INPUT: SendUserInputMessage,
    InboundKind.SEND_ENTER: SendEnterMessage,
    InboundKind.SEND_ESC: SendEscMessage,
}


# ---------------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------------


class SnapshotMessage(MessageBase):
    type: OutboundKind = OutboundKind.SNAPSHOT
    snapshot: RunDetailsSnapshot


class TextFileMessage(MessageBase):
    type: OutboundKind = OutboundKind.TEXT_FILE
    fs_path: str = Field(alias="fsPath")
    content: str
    truncated: bool
    size: int


class TextFileErrorMessage(MessageBase):
    type: OutboundKind = OutboundKind.TEXT_FILE_ERROR
    fs_path: str = Field(alias="fsPath")
    message: str


class ErrorMessage(MessageBase):
    type: OutboundKind = OutboundKind.ERROR
    message: str


OutboundMessage = (
    SnapshotMessage | TextFileMessage | TextFileErrorMessage | ErrorMessage
)

OUTBOUND_TYPE_MAP: dict[OutboundKind, type[MessageBase]] = {
    OutboundKind.SNAPSHOT: SnapshotMessage,
    OutboundKind.TEXT_FILE: TextFileMessage,
    OutboundKind.TEXT_FILE_ERROR: TextFileErrorMessage,
    OutboundKind.ERROR: ErrorMessage,
}
