"""Pytest configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from wahoo.config import Settings
from wahoo.context import AppContext, build_context
from wahoo.core.exceptions import SessionClosedError, SessionError
from wahoo.db.store import Store
from wahoo.main import create_app
from wahoo.services.session_manager import SessionManager

CONTACT_JID = "5511888888888@s.whatsapp.net"
OWN_JID = "5511999999999@s.whatsapp.net"
GROUP_JID = "120363025246125486@g.us"

_CLOSED = object()


class FakeTransport:
    """In-process session transport.

    Each ``open`` starts a fresh event stream; ``push`` feeds it and
    ``drop`` ends it as if the remote side hung up.
    """

    def __init__(self):
        self.open_calls = 0
        self.close_calls = 0
        self.is_open = False
        self.open_error: Exception | None = None
        self.open_delay = 0.0
        self.send_error: Exception | None = None
        self.send_delay = 0.0
        self.sent: list[tuple[str, str]] = []
        self.max_concurrent_sends = 0
        self._sending = 0
        self._queue: asyncio.Queue = asyncio.Queue()

    async def open(self) -> None:
        self.open_calls += 1
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        if self.open_error is not None:
            raise self.open_error
        self._queue = asyncio.Queue()
        self.is_open = True

    async def close(self) -> None:
        self.close_calls += 1
        if self.is_open:
            self.is_open = False
            self._queue.put_nowait(_CLOSED)

    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        self._sending += 1
        self.max_concurrent_sends = max(self.max_concurrent_sends, self._sending)
        try:
            if self.send_delay:
                await asyncio.sleep(self.send_delay)
            if self.send_error is not None:
                raise self.send_error
            self.sent.append((recipient, text))
            return {"code": "SUCCESS", "results": {"message_id": f"MSG{len(self.sent)}"}}
        finally:
            self._sending -= 1

    async def receive(self) -> AsyncIterator[dict[str, Any]]:
        queue = self._queue
        while True:
            item = await queue.get()
            if item is _CLOSED:
                raise SessionClosedError("Fake stream closed")
            yield item

    def push(self, *events: dict[str, Any]) -> None:
        for event in events:
            self._queue.put_nowait(event)

    def drop(self) -> None:
        """Remote side closes the stream."""
        self.is_open = False
        self._queue.put_nowait(_CLOSED)


def message_event(
    message_id: str | None = "ABCD1234567890",
    *,
    chat: str = CONTACT_JID,
    sender: str | None = None,
    body: str = "Hello, this is a test message",
    timestamp: Any = 1706140800,
    from_me: bool = False,
    push_name: str | None = "Maria",
    **extra: Any,
) -> dict[str, Any]:
    """Build a message event as the WhatsApp API server emits it."""
    data: dict[str, Any] = {
        "from": sender or (OWN_JID if from_me else chat),
        "chat_jid": chat,
        "body": body,
        "type": "text",
        "timestamp": timestamp,
        "fromMe": from_me,
    }
    if message_id is not None:
        data["id"] = message_id
    if push_name is not None:
        data["pushName"] = push_name
    data.update(extra)
    return {"event": "message", "data": data}


async def wait_for(predicate, timeout: float = 2.0) -> None:
    """Poll ``predicate`` until true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'store' / 'messages.db'}"


@pytest.fixture
async def store(database_url) -> AsyncGenerator[Store, None]:
    """Initialized store backed by a SQLite file under tmp_path."""
    store = Store(database_url)
    await store.init()
    yield store
    await store.close()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session_manager(fake_transport) -> SessionManager:
    return SessionManager(fake_transport)


@pytest.fixture
async def connected_session(session_manager) -> AsyncGenerator[SessionManager, None]:
    """Session manager that has completed one connection."""
    await session_manager.connect()
    assert session_manager.is_connected()
    yield session_manager
    await session_manager.disconnect()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated from the environment, with fast timings."""
    return Settings(
        _env_file=None,
        STORE_DIR=str(tmp_path / "store"),
        SUPERVISOR_POLL_INTERVAL=0.01,
        RECONNECT_INITIAL_DELAY=0.01,
        RECONNECT_MAX_DELAY=0.05,
        SHUTDOWN_TIMEOUT=1.0,
    )


@pytest.fixture
async def app_context(test_settings, fake_transport) -> AsyncGenerator[AppContext, None]:
    """Application context over the fake transport with an initialized store."""
    context = build_context(test_settings, transport=fake_transport)
    await context.store.init()
    yield context
    await context.session.disconnect()
    await context.store.close()


@pytest.fixture
async def client(app_context) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, without background workers."""
    app = create_app(app_context, run_workers=False)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_message_event() -> dict[str, Any]:
    """Sample incoming message event."""
    return message_event()


@pytest.fixture
def sample_ack_event() -> dict[str, Any]:
    """Sample message ack event; not tracked by the store."""
    return {
        "event": "message.ack",
        "data": {
            "id": "ABCD1234567890",
            "ack": 2,  # delivered
        },
    }


@pytest.fixture
def sample_contact_event() -> dict[str, Any]:
    return {
        "event": "contact.update",
        "data": {"jid": CONTACT_JID, "name": "Maria Silva", "pushName": "Maria"},
    }


@pytest.fixture
def sample_session_error() -> SessionError:
    return SessionError("WhatsApp device is not logged in")
