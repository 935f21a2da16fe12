"""Application context: the shared store and session wired from settings."""

from dataclasses import dataclass

from wahoo.config import Settings
from wahoo.db.store import Store
from wahoo.services.reconnect import ConnectionSupervisor, build_policy
from wahoo.services.session_manager import SessionManager
from wahoo.services.transport import SessionTransport, WebSocketTransport
from wahoo.services.whatsapp_client import WhatsAppClient
from wahoo.workers.sync_bridge import SyncBridge


@dataclass
class AppContext:
    """Everything a request handler or worker needs, created once at startup."""

    settings: Settings
    store: Store
    session: SessionManager
    supervisor: ConnectionSupervisor
    bridge: SyncBridge


def build_context(settings: Settings, *, transport: SessionTransport | None = None) -> AppContext:
    """Construct the store and session. The store is not opened here.

    ``transport`` replaces the WhatsApp API transport, e.g. in tests.
    """
    store = Store(settings.database_url, echo=settings.DEBUG)
    if transport is None:
        transport = WebSocketTransport(WhatsAppClient.from_settings(settings))

    session = SessionManager(transport)
    supervisor = ConnectionSupervisor(
        session,
        build_policy(settings),
        poll_interval=settings.SUPERVISOR_POLL_INTERVAL,
    )
    return AppContext(
        settings=settings,
        store=store,
        session=session,
        supervisor=supervisor,
        bridge=SyncBridge(session, store),
    )
