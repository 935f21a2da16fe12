"""Main API router aggregating all routes."""

from fastapi import APIRouter

from wahoo.api.routes import chats, contacts, messages, send, session

api_router = APIRouter()

api_router.include_router(chats.router)
api_router.include_router(messages.router)
api_router.include_router(send.router)
api_router.include_router(contacts.router)
api_router.include_router(session.router)
