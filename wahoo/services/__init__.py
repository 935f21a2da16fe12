"""Session services: remote client, transport, session manager and reconnection."""

from wahoo.services.reconnect import ConnectionSupervisor, ExponentialBackoff, NoReconnect, build_policy
from wahoo.services.session_manager import SendResult, SessionEvent, SessionManager, SessionState
from wahoo.services.transport import SessionTransport, WebSocketTransport
from wahoo.services.whatsapp_client import WhatsAppClient

__all__ = [
    "ConnectionSupervisor",
    "ExponentialBackoff",
    "NoReconnect",
    "SendResult",
    "SessionEvent",
    "SessionManager",
    "SessionState",
    "SessionTransport",
    "WebSocketTransport",
    "WhatsAppClient",
    "build_policy",
]
