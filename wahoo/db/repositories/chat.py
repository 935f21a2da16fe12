"""Chat repository."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wahoo.db.repositories.base import BaseRepository
from wahoo.models import GROUP_JID_SUFFIX, Chat
from wahoo.schemas.options import ChatSortOrder


class ChatRepository(BaseRepository[Chat]):
    """Repository for chat operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Chat)

    async def ensure(
        self,
        jid: str,
        *,
        name: str | None = None,
        is_group: bool | None = None,
    ) -> None:
        """Insert the chat if missing, else merge in a new name or group flag.

        Empty names never overwrite a stored one. When ``is_group`` is not
        given it is inferred from the JID on insert and left alone on update.
        """
        stmt = sqlite_insert(Chat).values(
            jid=jid,
            name=name or None,
            is_group=is_group if is_group is not None else jid.endswith(GROUP_JID_SUFFIX),
        )

        changes = {"updated_at": func.current_timestamp()}
        if name:
            changes["name"] = stmt.excluded.name
        if is_group is not None:
            changes["is_group"] = stmt.excluded.is_group

        stmt = stmt.on_conflict_do_update(index_elements=[Chat.jid], set_=changes)
        await self.session.execute(stmt)

    async def update_preview(
        self,
        jid: str,
        *,
        content: str,
        timestamp: datetime,
        sender: str,
        is_from_me: bool,
    ) -> bool:
        """Advance the preview unless the stored one is strictly newer.

        Equal timestamps resolve in favour of the later call, which matches
        ingestion order. Returns True when the preview changed.
        """
        stmt = (
            update(Chat)
            .where(
                Chat.jid == jid,
                or_(Chat.last_message_time.is_(None), Chat.last_message_time <= timestamp),
            )
            .values(
                last_message=content,
                last_message_time=timestamp,
                last_sender=sender,
                last_is_from_me=is_from_me,
                updated_at=func.current_timestamp(),
            )
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def list(
        self,
        *,
        limit: int = 50,
        sort_by: ChatSortOrder = ChatSortOrder.LAST_ACTIVE,
    ) -> list[Chat]:
        """List chats in the requested order, truncated to ``limit``."""
        stmt = select(Chat)

        if sort_by is ChatSortOrder.NAME:
            display_name = func.lower(func.coalesce(func.nullif(Chat.name, ""), Chat.jid))
            stmt = stmt.order_by(display_name.asc(), Chat.jid.asc())
        else:
            # Chats without messages sort last; JID keeps ties deterministic
            stmt = stmt.order_by(Chat.last_message_time.desc().nulls_last(), Chat.jid.asc())

        result = await self.session.execute(stmt.limit(limit))
        return list(result.scalars().all())
