"""Contact schemas."""

from pydantic import BaseModel, ConfigDict


class ContactDetail(BaseModel):
    """Schema for contact details."""

    model_config = ConfigDict(from_attributes=True)

    jid: str
    name: str | None = None
    push_name: str | None = None
