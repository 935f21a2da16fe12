"""Chat listing endpoints."""

from fastapi import APIRouter

from wahoo.api.deps import Limit, StoreDep
from wahoo.schemas import ChatSummary, ListChatsOptions

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=list[ChatSummary])
async def list_chats(store: StoreDep, limit: Limit):
    """List chats, most recently active first."""
    return await store.list_chats(ListChatsOptions(limit=limit))
