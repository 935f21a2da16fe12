"""Contact repository."""

from __future__ import annotations

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from wahoo.db.repositories.base import BaseRepository
from wahoo.models import Contact


class ContactRepository(BaseRepository[Contact]):
    """Repository for contact operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Contact)

    async def upsert(
        self,
        jid: str,
        *,
        name: str | None = None,
        push_name: str | None = None,
    ) -> None:
        """Insert the contact or merge non-empty names into the stored one."""
        stmt = sqlite_insert(Contact).values(
            jid=jid,
            name=name or None,
            push_name=push_name or None,
        )

        changes = {"updated_at": func.current_timestamp()}
        if name:
            changes["name"] = stmt.excluded.name
        if push_name:
            changes["push_name"] = stmt.excluded.push_name

        stmt = stmt.on_conflict_do_update(index_elements=[Contact.jid], set_=changes)
        await self.session.execute(stmt)

    async def search(self, query: str, *, limit: int = 50) -> list[Contact]:
        """Case-insensitive substring search over names and JID.

        LIKE wildcards in ``query`` match literally.
        """
        display_name = func.lower(func.coalesce(Contact.name, Contact.push_name, Contact.jid))
        stmt = (
            select(Contact)
            .where(
                or_(
                    Contact.name.icontains(query, autoescape=True),
                    Contact.push_name.icontains(query, autoescape=True),
                    Contact.jid.icontains(query, autoescape=True),
                )
            )
            .order_by(display_name.asc(), Contact.jid.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
