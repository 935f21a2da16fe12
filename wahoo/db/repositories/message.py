"""Message repository."""

from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wahoo.db.repositories.base import BaseRepository
from wahoo.models import Message
from wahoo.schemas.message import InboundMessage


class MessageRepository(BaseRepository[Message]):
    """Repository for message operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Message)

    async def insert_if_absent(self, message: InboundMessage) -> bool:
        """Insert the message unless its identity key is already stored.

        Returns True when a row was inserted.
        """
        stmt = (
            sqlite_insert(Message)
            .values(
                message_id=message.identity_key,
                chat_jid=message.chat_jid,
                sender=message.sender,
                content=message.content,
                timestamp=message.timestamp,
                is_from_me=message.is_from_me,
                media_type=message.media_type,
            )
            .on_conflict_do_nothing(index_elements=[Message.chat_jid, Message.message_id])
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def latest(self, chat_jid: str, *, limit: int = 50) -> list[Message]:
        """Most recent messages of a chat, newest first."""
        stmt = (
            select(Message)
            .where(Message.chat_jid == chat_jid)
            .order_by(Message.timestamp.desc(), Message.seq.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def preceding(self, anchor: Message, *, limit: int) -> list[Message]:
        """Messages of the anchor's chat ordered immediately before it, newest first."""
        if limit <= 0:
            return []

        stmt = (
            select(Message)
            .where(
                Message.chat_jid == anchor.chat_jid,
                or_(
                    Message.timestamp < anchor.timestamp,
                    and_(Message.timestamp == anchor.timestamp, Message.seq < anchor.seq),
                ),
            )
            .order_by(Message.timestamp.desc(), Message.seq.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_chat(self, chat_jid: str) -> int:
        """Number of stored messages in a chat."""
        return await self.count(Message.chat_jid == chat_jid)
