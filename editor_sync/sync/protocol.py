"""
Sync Protocol

Defines the wire format for editor state broadcasts between the two IDEs.

Wire format (UTF-8 JSON)::

    {"messageId": "...", "senderIdentifier": "...",
     "payload": {"action": "NAVIGATE", "filePath": "...", "isActive": true,
                 "timestamp": 1718000000000, "line": 3, "column": 7, ...}}

Timestamps are epoch milliseconds. ISO-8601 strings are accepted as a
fallback and read as UTC when they carry no offset.
"""

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from editor_sync.logging import get_logger

logger = get_logger("sync.protocol")


class MessageParseError(ValueError):
    """Raised when an inbound message cannot be decoded."""


class ActionType(Enum):
    """What the sending editor just did."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"
    NAVIGATE = "NAVIGATE"
    WORKSPACE_SYNC = "WORKSPACE_SYNC"


# Payload keys the dataclass maps explicitly; anything else lands in ``extra``
_STATE_KEYS = {
    "action": "action",
    "filePath": "file_path",
    "isActive": "is_active",
    "timestamp": "timestamp",
    "line": "line",
    "column": "column",
    "selectionStartLine": "selection_start_line",
    "selectionStartColumn": "selection_start_column",
    "selectionEndLine": "selection_end_line",
    "selectionEndColumn": "selection_end_column",
    "source": "source",
}


def parse_timestamp(value: Any) -> int:
    """
    Convert a wire timestamp to epoch milliseconds.

    Raises:
        MessageParseError: If the value is missing or not a recognised format
    """
    if isinstance(value, bool) or value is None:
        raise MessageParseError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError) as e:
            raise MessageParseError(f"Invalid timestamp: {value!r}") from e
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as e:
            raise MessageParseError(f"Invalid timestamp: {value!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)
    raise MessageParseError(f"Invalid timestamp: {value!r}")


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MessageParseError(f"Field '{key}' must be a number, got {value!r}")
    try:
        return int(value)
    except (ValueError, OverflowError) as e:
        raise MessageParseError(f"Field '{key}' is not finite: {value!r}") from e


@dataclass
class EditorState:
    """Editor focus/cursor/selection snapshot sent by the peer."""

    action: ActionType | str
    file_path: str
    is_active: bool
    timestamp: int  # epoch ms, producer side
    line: int | None = None
    column: int | None = None
    selection_start_line: int | None = None
    selection_start_column: int | None = None
    selection_end_line: int | None = None
    selection_end_column: int | None = None
    source: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def has_selection(self) -> bool:
        """True when the state carries a non-empty selection range."""
        if None in (
            self.selection_start_line,
            self.selection_start_column,
            self.selection_end_line,
            self.selection_end_column,
        ):
            return False
        return (self.selection_start_line, self.selection_start_column) != (
            self.selection_end_line,
            self.selection_end_column,
        )

    def cursor_log(self) -> str:
        if self.line is None:
            return "cursor: -"
        return f"cursor: {self.line}:{self.column if self.column is not None else 0}"

    def selection_log(self) -> str:
        if not self.has_selection():
            return "selection: -"
        return (
            f"selection: {self.selection_start_line}:{self.selection_start_column}"
            f"-{self.selection_end_line}:{self.selection_end_column}"
        )

    @property
    def action_name(self) -> str:
        return self.action.value if isinstance(self.action, ActionType) else str(self.action)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire dictionary."""
        data: dict[str, Any] = dict(self.extra)
        for wire_key, attr in _STATE_KEYS.items():
            value = getattr(self, attr)
            if attr == "action":
                value = self.action_name
            if value is not None:
                data[wire_key] = value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "EditorState":
        """
        Build a state from a decoded payload.

        Raises:
            MessageParseError: If required fields are missing or mistyped
        """
        if isinstance(data, str):
            # Some senders double-encode the payload
            data = _loads(data)
        if not isinstance(data, dict):
            raise MessageParseError("Payload must be a JSON object")

        file_path = data.get("filePath", "")
        if file_path is None:
            file_path = ""
        if not isinstance(file_path, str):
            raise MessageParseError("Field 'filePath' must be a string")

        is_active = data.get("isActive", False)
        if not isinstance(is_active, bool):
            raise MessageParseError("Field 'isActive' must be a boolean")

        if "timestamp" not in data:
            raise MessageParseError("Missing field 'timestamp'")

        raw_action = data.get("action", "")
        try:
            action: ActionType | str = ActionType(raw_action)
        except ValueError:
            action = str(raw_action)

        source = data.get("source")
        return cls(
            action=action,
            file_path=file_path,
            is_active=is_active,
            timestamp=parse_timestamp(data["timestamp"]),
            line=_optional_int(data, "line"),
            column=_optional_int(data, "column"),
            selection_start_line=_optional_int(data, "selectionStartLine"),
            selection_start_column=_optional_int(data, "selectionStartColumn"),
            selection_end_line=_optional_int(data, "selectionEndLine"),
            selection_end_column=_optional_int(data, "selectionEndColumn"),
            source=str(source) if source is not None else None,
            extra={k: v for k, v in data.items() if k not in _STATE_KEYS},
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "EditorState":
        return cls.from_dict(_loads(raw))


@dataclass
class InboundEnvelope:
    """Routing metadata wrapped around an EditorState."""

    message_id: str
    sender_identifier: str
    payload: EditorState

    def to_dict(self) -> dict[str, Any]:
        return {
            "messageId": self.message_id,
            "senderIdentifier": self.sender_identifier,
            "payload": self.payload.to_dict(),
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    @classmethod
    def create(cls, sender_identifier: str, payload: EditorState) -> "InboundEnvelope":
        """Wrap a state in a fresh envelope with a new message id."""
        return cls(
            message_id=str(uuid.uuid4()),
            sender_identifier=sender_identifier,
            payload=payload,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> "InboundEnvelope":
        """
        Deserialize from JSON.

        Raises:
            MessageParseError: If the message is malformed
        """
        parsed = _loads(raw)
        if not isinstance(parsed, dict):
            raise MessageParseError("Message must be a JSON object")

        message_id = parsed.get("messageId")
        if not isinstance(message_id, str) or not message_id:
            raise MessageParseError("Missing or invalid 'messageId'")

        sender = parsed.get("senderIdentifier")
        if not isinstance(sender, str) or not sender:
            raise MessageParseError("Missing or invalid 'senderIdentifier'")

        if "payload" not in parsed:
            raise MessageParseError("Missing 'payload'")

        return cls(
            message_id=message_id,
            sender_identifier=sender,
            payload=EditorState.from_dict(parsed["payload"]),
        )


def _loads(raw: str | bytes) -> Any:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MessageParseError(f"Message is not valid UTF-8: {e}") from e
    if not isinstance(raw, str):
        raise MessageParseError(f"Unsupported message type: {type(raw).__name__}")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MessageParseError(f"Invalid JSON: {e}") from e


def parse_envelope(raw: str | bytes) -> InboundEnvelope:
    """Decode a raw broadcast into an InboundEnvelope."""
    return InboundEnvelope.from_json(raw)


def parse_state(raw: str | bytes) -> EditorState:
    """Decode a bare EditorState message (no envelope)."""
    return EditorState.from_json(raw)
