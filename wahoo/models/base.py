"""Shared model mixins."""

from datetime import datetime

from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column

from wahoo.db.types import UTCDateTime


class TimestampMixin:
    """Adds row bookkeeping timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.current_timestamp(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.current_timestamp(),
        onupdate=func.current_timestamp(),
        nullable=False,
    )
