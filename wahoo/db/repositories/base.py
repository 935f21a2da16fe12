"""Base repository with generic operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wahoo.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Base repository over one model.

    Repositories never commit; the store owns transaction boundaries so
    that related writes become visible together.
    """

    def __init__(self, session: AsyncSession, model: type[ModelT]):
        self.session = session
        self.model = model

    async def get(self, id: Any) -> ModelT | None:
        """Get a single record by primary key."""
        return await self.session.get(self.model, id)

    async def count(self, *criteria) -> int:
        """Count records matching ``criteria``."""
        stmt = select(func.count()).select_from(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
