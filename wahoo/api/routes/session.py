"""Session status and lifecycle endpoints."""

from fastapi import APIRouter

from wahoo.api.deps import SessionDep
from wahoo.schemas import ConnectionStatus, SessionDetail
from wahoo.services.session_manager import SessionManager

router = APIRouter(tags=["session"])


def _session_detail(session: SessionManager) -> SessionDetail:
    status = session.status()
    return SessionDetail(state=status.state.value, connected=status.connected, reason=status.reason)


@router.get("/status", response_model=ConnectionStatus)
async def get_status(session: SessionDep):
    """Connection flag polled by the UI."""
    return ConnectionStatus(connected=session.is_connected())


@router.get("/session", response_model=SessionDetail)
async def get_session(session: SessionDep):
    return _session_detail(session)


@router.post("/session/connect", response_model=SessionDetail)
async def connect_session(session: SessionDep):
    """Start connecting in the background; returns the state right after."""
    session.connect()
    return _session_detail(session)


@router.post("/session/disconnect", response_model=SessionDetail)
async def disconnect_session(session: SessionDep):
    """Disconnect and stay disconnected until connect is requested again."""
    await session.disconnect()
    return _session_detail(session)
