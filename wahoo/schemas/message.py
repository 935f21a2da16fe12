"""Message schemas."""

from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class MessageDetail(BaseModel):
    """Schema for a stored message."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(validation_alias=AliasChoices("message_id", "id"))
    chat_jid: str
    sender: str
    content: str = ""
    timestamp: datetime
    is_from_me: bool = False
    media_type: str | None = None


class InboundMessage(BaseModel):
    """A message mapped from a session event, ready to be upserted."""

    message_id: str | None = Field(None, description="External id supplied by the session")
    chat_jid: str = Field(..., min_length=1)
    sender: str = Field(..., min_length=1)
    content: str = ""
    timestamp: datetime
    is_from_me: bool = False
    media_type: str | None = None

    # Metadata carried along for chat/contact upserts
    chat_name: str | None = None
    is_group: bool | None = None
    sender_name: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _ensure_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def identity_key(self) -> str:
        """Stable per-chat identity: the external id, else timestamp and sender."""
        if self.message_id:
            return self.message_id
        millis = int(self.timestamp.timestamp() * 1000)
        return f"{millis}:{self.sender}"


class SendMessageRequest(BaseModel):
    """Schema for sending a text message."""

    recipient: str = Field(..., min_length=1, description="JID or phone number to send to")
    message: str = Field(..., min_length=1, description="Message text")


class SendMessageResponse(BaseModel):
    """Application-level outcome of a send request."""

    success: bool
    message: str | None = None
    error: str | None = None
