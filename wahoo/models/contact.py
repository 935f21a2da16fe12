"""Contact model for WhatsApp contacts."""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from wahoo.db.base import Base
from wahoo.models.base import TimestampMixin


class Contact(Base, TimestampMixin):
    """Represents a WhatsApp contact. Not owned by any chat."""

    __tablename__ = "contacts"

    jid: Mapped[str] = mapped_column(
        String(255), primary_key=True
    )  # e.g., 5511999999999@s.whatsapp.net
    name: Mapped[str | None] = mapped_column(String(255))
    push_name: Mapped[str | None] = mapped_column(String(255))

    __table_args__ = (Index("ix_contacts_name", "name"),)
