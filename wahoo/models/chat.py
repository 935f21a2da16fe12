"""Chat model with the denormalized last-message preview."""

from datetime import datetime

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wahoo.db.base import Base
from wahoo.db.types import UTCDateTime
from wahoo.models.base import TimestampMixin

GROUP_JID_SUFFIX = "@g.us"


class Chat(Base, TimestampMixin):
    """Represents a WhatsApp conversation, individual or group."""

    __tablename__ = "chats"

    jid: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255))
    is_group: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Preview of the most recent message, updated in the same transaction
    # as the message insert
    last_message_time: Mapped[datetime | None] = mapped_column(UTCDateTime)
    last_message: Mapped[str | None] = mapped_column(Text)
    last_sender: Mapped[str | None] = mapped_column(String(255))
    last_is_from_me: Mapped[bool | None] = mapped_column(Boolean)

    messages: Mapped[list["Message"]] = relationship(  # noqa: F821
        back_populates="chat", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_chats_last_message_time", "last_message_time"),)
