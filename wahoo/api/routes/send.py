"""Outbound message endpoint."""

import logging

from fastapi import APIRouter

from wahoo.api.deps import SessionDep
from wahoo.schemas import SendMessageRequest, SendMessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["send"])


@router.post("/send", response_model=SendMessageResponse, response_model_exclude_none=True)
async def send_message(data: SendMessageRequest, session: SessionDep):
    """Send a text message through the live session.

    Delivery failures are reported in the body with status 200; only a
    malformed request is an HTTP error.
    """
    result = await session.send_message(data.recipient, data.message)
    if not result.ok:
        logger.info(f"Send to {data.recipient} failed: {result.detail}")
        return SendMessageResponse(success=False, error=result.detail)
    return SendMessageResponse(success=True, message=result.detail)
