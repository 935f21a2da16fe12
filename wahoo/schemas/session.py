"""Session status schemas."""

from pydantic import BaseModel


class ConnectionStatus(BaseModel):
    """Schema polled by the UI."""

    connected: bool


class SessionDetail(BaseModel):
    """Full session state snapshot."""

    state: str
    connected: bool
    reason: str | None = None
