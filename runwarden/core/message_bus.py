"""Message bus: validates and serializes surface protocol messages.

All surface traffic uses the closed message models in
``runwarden.models.messages``.  Nothing else gets through: inbound JSON is
decoded against its tag and rejected when the tag is unknown or the fields
do not match.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from runwarden.core.hasher import canonical_json_bytes
from runwarden.models.messages import (
    INBOUND_TYPE_MAP,
    OUTBOUND_TYPE_MAP,
    InboundKind,
    InboundMessage,
    MessageBase,
    OutboundKind,
    OutboundMessage,
)


class MessageValidationError(ValueError):
    """Raised when a message fails validation."""


def _decode(raw: bytes | str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MessageValidationError(f"Invalid UTF-8: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MessageValidationError(f"Invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MessageValidationError(
            f"Message must be a JSON object, got {type(data).__name__}"
        )
    return data


def _validate(
    data: dict[str, Any],
    kind_enum: type[InboundKind] | type[OutboundKind],
    type_map: dict[Any, type[MessageBase]],
) -> MessageBase:
    kind_str = data.get("type")
    if not kind_str:
        raise MessageValidationError("Missing type field")
    try:
        kind = kind_enum(kind_str)
    except ValueError as exc:
        raise MessageValidationError(f"Unknown message type: {kind_str!r}") from exc

    model_cls = type_map.get(kind)
    if model_cls is None:
        raise MessageValidationError(f"No model registered for message type: {kind_str!r}")
    try:
        return model_cls.model_validate(data)
    except ValidationError as exc:
        raise MessageValidationError(f"Message validation failed: {exc}") from exc


class MessageBus:
    """Decode inbound and encode outbound surface messages."""

    @staticmethod
    def receive(raw: bytes | str | dict[str, Any]) -> InboundMessage:
        """Deserialize and validate an inbound message.

        Accepts raw JSON (bytes or str) or an already-decoded dict.
        """
        return _validate(_decode(raw), InboundKind, INBOUND_TYPE_MAP)  # type: ignore[return-value]

    @staticmethod
    def receive_outbound(raw: bytes | str | dict[str, Any]) -> OutboundMessage:
        """Validate an outbound message; used by surfaces that consume JSON."""
        return _validate(_decode(raw), OutboundKind, OUTBOUND_TYPE_MAP)  # type: ignore[return-value]

    @staticmethod
    def to_wire(message: MessageBase) -> dict[str, Any]:
        """JSON-ready dict with camelCase field names."""
        return message.model_dump(mode="json", by_alias=True)

    @classmethod
    def serialize(cls, message: MessageBase) -> bytes:
        """Serialize a message to canonical JSON bytes."""
        return canonical_json_bytes(cls.to_wire(message))
