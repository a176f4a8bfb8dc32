"""runwarden data models: all Pydantic v2, all frozen (immutable)."""

from runwarden.models.messages import (
    INBOUND_TYPE_MAP,
    OUTBOUND_TYPE_MAP,
    CopyTextMessage,
    ErrorMessage,
    InboundKind,
    InboundMessage,
    LoadTextFileMessage,
    OpenInEditorMessage,
    OutboundKind,
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
from runwarden.models.run import Run, RunPaths, RunStatus, RunTimestamps
from runwarden.models.snapshot import (
    AwaitingInputStatus,
    FileItem,
    JournalError,
    JournalSection,
    RunDetailsSnapshot,
    SnapshotLimits,
    StateIssue,
    StateIssueCode,
    StateSection,
)

__all__ = [
    # run
    "Run",
    "RunPaths",
    "RunStatus",
    "RunTimestamps",
    # snapshot
    "AwaitingInputStatus",
    "FileItem",
    "JournalError",
    "JournalSection",
    "RunDetailsSnapshot",
    "SnapshotLimits",
    "StateIssue",
    "StateIssueCode",
    "StateSection",
    # messages
    "InboundKind",
    "OutboundKind",
    "InboundMessage",
    "OutboundMessage",
    "INBOUND_TYPE_MAP",
    "OUTBOUND_TYPE_MAP",
    "ReadyMessage",
    "RefreshMessage",
    "OpenInEditorMessage",
    "RevealInExplorerMessage",
    "LoadTextFileMessage",
    "CopyTextMessage",
    "SendUserInputMessage",
    "SendEnterMessage",
    "SendEscMessage",
    "SnapshotMessage",
    "TextFileMessage",
    "TextFileErrorMessage",
    "ErrorMessage",
]
