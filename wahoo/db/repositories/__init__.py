"""Repository classes for database operations."""

from wahoo.db.repositories.base import BaseRepository
from wahoo.db.repositories.chat import ChatRepository
from wahoo.db.repositories.contact import ContactRepository
from wahoo.db.repositories.message import MessageRepository

__all__ = [
    "BaseRepository",
    "ChatRepository",
    "ContactRepository",
    "MessageRepository",
]
