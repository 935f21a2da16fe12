"""Query options accepted by the store."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


class ChatSortOrder(str, Enum):
    """Recognized chat orderings."""

    LAST_ACTIVE = "last_active"
    NAME = "name"


class ListChatsOptions(BaseModel):
    """Options for listing chats. There is no cursor; each call rescans."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    include_last_message: bool = True
    sort_by: ChatSortOrder = ChatSortOrder.LAST_ACTIVE


class ListMessagesOptions(BaseModel):
    """Options for listing the most recent messages of one chat."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    chat_jid: str = Field(..., min_length=1)
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    include_context: bool = False
    context_size: int = Field(default=5, ge=0, le=DEFAULT_LIMIT)
