"""Map raw session events onto store updates."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from wahoo.core.exceptions import EventMappingError
from wahoo.models import GROUP_JID_SUFFIX
from wahoo.schemas import InboundMessage

MESSAGE_EVENTS = frozenset({"message", "message.received", "message.sent"})
CONTACT_EVENTS = frozenset({"contact", "contact.update", "contacts.update"})
CHAT_EVENTS = frozenset({"chat", "chat.update", "group.update"})

MEDIA_TYPES = frozenset({"image", "audio", "video", "document", "sticker"})

# Unix timestamps above this are taken as milliseconds
_MILLIS_THRESHOLD = 10**11
_DIGITS = re.compile(r"^\d+(\.\d+)?$")
_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no"})


@dataclass(frozen=True)
class ContactUpdate:
    jid: str
    name: str | None = None
    push_name: str | None = None


@dataclass(frozen=True)
class ChatUpdate:
    jid: str
    name: str | None = None
    is_group: bool | None = None


StoreUpdate = InboundMessage | ContactUpdate | ChatUpdate


def event_type_of(event_data: dict[str, Any]) -> str:
    """Event type, which the API may send as event, type or code."""
    event_type = (
        event_data.get("event")
        or event_data.get("type")
        or event_data.get("code")
        or "unknown"
    )
    return str(event_type).lower()


def map_event(event_data: dict[str, Any]) -> StoreUpdate | None:
    """Map one event to a store update.

    Returns None for events the store does not track (acks, QR codes,
    connection notices).

    Raises:
        EventMappingError: If a tracked event is malformed
    """
    if not isinstance(event_data, dict):
        raise EventMappingError(f"Event is not an object: {type(event_data).__name__}")

    event_type = event_type_of(event_data)
    data = event_data.get("data", event_data)
    if not isinstance(data, dict):
        raise EventMappingError(f"Event '{event_type}' has no data object")

    if event_type in MESSAGE_EVENTS:
        return map_message(data, sent=event_type == "message.sent")
    if event_type in CONTACT_EVENTS:
        return _map_contact(data)
    if event_type in CHAT_EVENTS:
        return _map_chat(data)
    return None


def map_message(data: dict[str, Any], *, sent: bool = False) -> InboundMessage:
    """Build an ``InboundMessage`` from a message event payload."""
    is_from_me = parse_flag(data.get("fromMe", data.get("is_from_me")), default=sent)

    chat_jid = _first_str(data, "chat_jid", "chat", "chatId")
    if not chat_jid:
        # Outgoing messages are filed under the recipient
        chat_jid = _first_str(data, "to") if is_from_me else _first_str(data, "from")
    sender = _first_str(data, "sender", "participant", "author")
    if not sender:
        sender = _first_str(data, "from")
    if not chat_jid or not sender:
        raise EventMappingError("Message event without chat or sender")

    content = _first_text(data, "body", "text", "content", "message")
    media_type = _first_str(data, "mediaType", "media_type")
    message_type = _first_str(data, "type")
    if not media_type and message_type in MEDIA_TYPES:
        media_type = message_type
    if media_type and not content:
        content = _first_text(data, "caption")

    is_group = parse_flag(data.get("isGroup", data.get("is_group")))
    push_name = _first_str(data, "pushName", "push_name", "senderName")
    chat_name = _first_str(data, "chatName", "chat_name", "groupName")
    if not chat_name and not is_from_me and not chat_jid.endswith(GROUP_JID_SUFFIX):
        # In a one-to-one chat the other party names the chat
        chat_name = push_name

    try:
        return InboundMessage(
            message_id=_first_str(data, "id", "message_id", "messageId"),
            chat_jid=chat_jid,
            sender=sender,
            content=content,
            timestamp=parse_timestamp(data.get("timestamp")),
            is_from_me=is_from_me,
            media_type=media_type,
            chat_name=chat_name,
            is_group=is_group,
            sender_name=push_name,
        )
    except ValidationError as e:
        raise EventMappingError(f"Invalid message event: {e}") from e


def parse_timestamp(value: Any) -> datetime:
    """Parse unix seconds, unix milliseconds or ISO-8601 into aware UTC."""
    if value is None or isinstance(value, bool):
        raise EventMappingError(f"Invalid timestamp: {value!r}")

    if isinstance(value, str):
        value = value.strip()
        if _DIGITS.match(value):
            value = float(value)
        else:
            try:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
                if parsed.tzinfo is None:
                    return parsed.replace(tzinfo=timezone.utc)
                return parsed.astimezone(timezone.utc)
            except (ValueError, OverflowError) as e:
                raise EventMappingError(f"Invalid timestamp: {value!r}") from e

    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > _MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise EventMappingError(f"Invalid timestamp: {value!r}") from e

    raise EventMappingError(f"Invalid timestamp: {value!r}")


def _map_contact(data: dict[str, Any]) -> ContactUpdate:
    jid = _first_str(data, "jid", "id")
    if not jid:
        raise EventMappingError("Contact event without jid")
    return ContactUpdate(
        jid=jid,
        name=_first_str(data, "name", "fullName", "full_name"),
        push_name=_first_str(data, "pushName", "push_name", "notify"),
    )


def _map_chat(data: dict[str, Any]) -> ChatUpdate:
    jid = _first_str(data, "jid", "chat_jid", "id")
    if not jid:
        raise EventMappingError("Chat event without jid")
    return ChatUpdate(
        jid=jid,
        name=_first_str(data, "name", "subject", "chatName"),
        is_group=parse_flag(data.get("isGroup", data.get("is_group"))),
    )


def parse_flag(value: Any, default: bool | None = None) -> bool | None:
    """Read a boolean field that may arrive as a bool, number or string.

    Raises:
        EventMappingError: If the value is not recognizable as a boolean
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
        if not normalized:
            return default
    raise EventMappingError(f"Invalid boolean: {value!r}")


def _first_str(data: dict[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return _valid_utf8(value.strip())
    return None


def _first_text(data: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return _valid_utf8(value)
    return ""


def _valid_utf8(value: str) -> str:
    # JSON may carry lone surrogate escapes, which cannot be stored
    return value.encode("utf-8", "replace").decode("utf-8")
