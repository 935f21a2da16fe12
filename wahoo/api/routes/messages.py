"""Message history endpoints."""

from fastapi import APIRouter, Query

from wahoo.api.deps import Limit, StoreDep
from wahoo.core.exceptions import BadRequestError
from wahoo.schemas import ListMessagesOptions, MessageDetail

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("", response_model=list[MessageDetail])
async def list_messages(
    store: StoreDep,
    limit: Limit,
    chat_jid: str | None = Query(None, description="Chat to read"),
):
    """Most recent messages of a chat, newest first."""
    if not chat_jid or not chat_jid.strip():
        raise BadRequestError("chat_jid is required")

    options = ListMessagesOptions(chat_jid=chat_jid.strip(), limit=limit)
    return await store.list_messages(options)
