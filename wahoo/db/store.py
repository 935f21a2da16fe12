"""Durable store for chats, messages and contacts.

The store is the single shared mutable resource of the service. Readers run
on independent sessions; writers are serialized by one lock and each write
runs in one transaction, so a message row and the chat preview it advances
become visible together.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from wahoo.core.exceptions import StoreError
from wahoo.db.base import Base
from wahoo.db.repositories import ChatRepository, ContactRepository, MessageRepository
from wahoo.db.session import create_engine, create_session_maker
from wahoo.schemas import (
    DEFAULT_LIMIT,
    ChatSummary,
    ContactDetail,
    InboundMessage,
    ListChatsOptions,
    ListMessagesOptions,
    MessageDetail,
)

logger = logging.getLogger(__name__)


class Store:
    """Async facade over the SQLite mirror."""

    def __init__(self, database_url: str, *, echo: bool = False):
        self.database_url = database_url
        self.engine: AsyncEngine = create_engine(database_url, echo=echo)
        self._session_maker = create_session_maker(self.engine)
        self._write_lock = asyncio.Lock()

    async def init(self) -> None:
        """Create the schema and check the database is reachable.

        Raises:
            StoreError: If the database cannot be opened
        """
        logger.debug(f"Initializing store at {self.database_url}")
        try:
            _ensure_parent_dir(self.database_url)

            # Import models to register them with Base.metadata
            from wahoo.models import Chat, Contact, Message  # noqa: F401

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
                await conn.execute(text("SELECT 1"))
        except (OSError, SQLAlchemyError) as e:
            logger.error(f"Failed to initialize store: {e}")
            raise StoreError(f"Failed to open store: {e}") from e

        logger.info("Store initialized successfully")

    async def close(self) -> None:
        """Dispose of all pooled connections."""
        await self.engine.dispose()

    # Reads

    async def list_chats(self, options: ListChatsOptions | None = None) -> list[ChatSummary]:
        """List chats, most recently active first by default."""
        options = options or ListChatsOptions()
        try:
            async with self._session_maker() as session:
                chats = await ChatRepository(session).list(
                    limit=options.limit,
                    sort_by=options.sort_by,
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list chats: {e}") from e

        if options.include_last_message:
            return [ChatSummary.model_validate(chat) for chat in chats]
        return [
            ChatSummary(jid=chat.jid, name=chat.name, is_group=chat.is_group)
            for chat in chats
        ]

    async def get_chat(self, jid: str) -> ChatSummary | None:
        """Get a single chat with its preview."""
        try:
            async with self._session_maker() as session:
                chat = await ChatRepository(session).get(jid)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load chat {jid}: {e}") from e
        return ChatSummary.model_validate(chat) if chat else None

    async def list_messages(self, options: ListMessagesOptions) -> list[MessageDetail]:
        """Most recent messages of a chat, newest first.

        With ``include_context`` the page is extended by up to
        ``context_size`` older messages immediately preceding it.
        """
        try:
            async with self._session_maker() as session, session.begin():
                repo = MessageRepository(session)
                messages = await repo.latest(options.chat_jid, limit=options.limit)
                if options.include_context and messages:
                    messages += await repo.preceding(messages[-1], limit=options.context_size)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list messages for {options.chat_jid}: {e}") from e

        return [MessageDetail.model_validate(message) for message in messages]

    async def count_messages(self, chat_jid: str) -> int:
        """Number of stored messages in a chat."""
        try:
            async with self._session_maker() as session:
                return await MessageRepository(session).count_for_chat(chat_jid)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count messages for {chat_jid}: {e}") from e

    async def search_contacts(self, query: str, *, limit: int = DEFAULT_LIMIT) -> list[ContactDetail]:
        """Case-insensitive substring search over contact names and JIDs."""
        try:
            async with self._session_maker() as session:
                contacts = await ContactRepository(session).search(query, limit=limit)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to search contacts: {e}") from e
        return [ContactDetail.model_validate(contact) for contact in contacts]

    # Writes

    async def upsert_message(self, message: InboundMessage) -> bool:
        """Store a message once and advance its chat's preview atomically.

        Re-upserting the same identity key is a no-op. Returns True when the
        message was new.
        """
        try:
            async with self._write_lock, self._session_maker() as session, session.begin():
                await ChatRepository(session).ensure(
                    message.chat_jid,
                    name=message.chat_name,
                    is_group=message.is_group,
                )

                inserted = await MessageRepository(session).insert_if_absent(message)
                if inserted:
                    await ChatRepository(session).update_preview(
                        message.chat_jid,
                        content=message.content,
                        timestamp=message.timestamp,
                        sender=message.sender,
                        is_from_me=message.is_from_me,
                    )

                if message.sender_name and not message.is_from_me:
                    await ContactRepository(session).upsert(
                        message.sender, push_name=message.sender_name
                    )
        except (SQLAlchemyError, ValueError) as e:
            raise StoreError(f"Failed to upsert message {message.identity_key}: {e}") from e

        if inserted:
            logger.debug(f"Stored message {message.identity_key} in chat {message.chat_jid}")
        else:
            logger.debug(f"Duplicate message {message.identity_key} in chat {message.chat_jid}")
        return inserted

    async def upsert_chat(
        self, jid: str, *, name: str | None = None, is_group: bool | None = None
    ) -> None:
        """Insert a chat or merge a new name into it."""
        try:
            async with self._write_lock, self._session_maker() as session, session.begin():
                await ChatRepository(session).ensure(jid, name=name, is_group=is_group)
        except (SQLAlchemyError, ValueError) as e:
            raise StoreError(f"Failed to upsert chat {jid}: {e}") from e

    async def upsert_contact(
        self, jid: str, *, name: str | None = None, push_name: str | None = None
    ) -> None:
        """Insert a contact or merge new names into it."""
        try:
            async with self._write_lock, self._session_maker() as session, session.begin():
                await ContactRepository(session).upsert(jid, name=name, push_name=push_name)
        except (SQLAlchemyError, ValueError) as e:
            raise StoreError(f"Failed to upsert contact {jid}: {e}") from e


def _ensure_parent_dir(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)
