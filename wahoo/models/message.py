"""Message model for WhatsApp messages."""

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wahoo.db.base import Base
from wahoo.db.types import UTCDateTime
from wahoo.models.base import TimestampMixin


class Message(Base, TimestampMixin):
    """Represents a WhatsApp message."""

    __tablename__ = "messages"

    # Ingestion sequence; breaks timestamp ties
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(255), nullable=False)
    chat_jid: Mapped[str] = mapped_column(ForeignKey("chats.jid"), nullable=False)

    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    is_from_me: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    media_type: Mapped[str | None] = mapped_column(String(50))  # image, audio, video, document

    chat: Mapped["Chat"] = relationship(back_populates="messages")  # noqa: F821

    __table_args__ = (
        UniqueConstraint("chat_jid", "message_id", name="uq_messages_chat_message"),
        Index("ix_messages_chat_timestamp", "chat_jid", "timestamp"),
    )
