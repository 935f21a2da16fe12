"""Contact search endpoints."""

from fastapi import APIRouter, Query

from wahoo.api.deps import Limit, StoreDep
from wahoo.core.exceptions import BadRequestError
from wahoo.schemas import ContactDetail

router = APIRouter(prefix="/contacts", tags=["contacts"])


@router.get("", response_model=list[ContactDetail])
async def search_contacts(
    store: StoreDep,
    limit: Limit,
    q: str | None = Query(None, description="Substring of a name, push name or JID"),
):
    """Search contacts by name, push name or JID."""
    if not q or not q.strip():
        raise BadRequestError("q is required")
    return await store.search_contacts(q.strip(), limit=limit)
