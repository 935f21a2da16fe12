"""Chat schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, model_validator


class ChatSummary(BaseModel):
    """Chat as listed by the API, with the last-message preview."""

    model_config = ConfigDict(from_attributes=True)

    jid: str
    name: str | None = None
    is_group: bool = False
    last_message: str | None = None
    last_message_time: datetime | None = None
    last_sender: str | None = None
    last_is_from_me: bool | None = None

    @model_validator(mode="after")
    def _default_name_to_jid(self) -> "ChatSummary":
        if not self.name:
            self.name = self.jid
        return self
