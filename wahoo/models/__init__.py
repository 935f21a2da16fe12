"""SQLAlchemy models."""

from wahoo.models.chat import GROUP_JID_SUFFIX, Chat
from wahoo.models.contact import Contact
from wahoo.models.message import Message

__all__ = [
    "Chat",
    "Contact",
    "GROUP_JID_SUFFIX",
    "Message",
]
