"""Pydantic schemas for request/response models."""

from wahoo.schemas.chat import ChatSummary
from wahoo.schemas.contact import ContactDetail
from wahoo.schemas.message import (
    InboundMessage,
    MessageDetail,
    SendMessageRequest,
    SendMessageResponse,
)
from wahoo.schemas.options import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    ChatSortOrder,
    ListChatsOptions,
    ListMessagesOptions,
)
from wahoo.schemas.session import ConnectionStatus, SessionDetail

__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "ChatSortOrder",
    "ChatSummary",
    "ConnectionStatus",
    "ContactDetail",
    "InboundMessage",
    "ListChatsOptions",
    "ListMessagesOptions",
    "MessageDetail",
    "SendMessageRequest",
    "SendMessageResponse",
    "SessionDetail",
]
