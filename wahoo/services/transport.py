"""Transport to the live WhatsApp session.

The session manager only needs a capability that can open, close, send and
stream events. ``WebSocketTransport`` provides it on top of the WhatsApp API
server: REST calls through ``WhatsAppClient`` and the ``/ws`` event stream.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from wahoo.core.exceptions import SessionClosedError, SessionError
from wahoo.services.whatsapp_client import WhatsAppClient, parse_status

logger = logging.getLogger(__name__)


class SessionTransport(Protocol):
    """Capability exposed by the remote session."""

    async def open(self) -> None:
        """Establish the connection. Raises SessionError on failure."""
        ...

    async def close(self) -> None:
        """Release the connection. Must be idempotent."""
        ...

    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        """Submit a text message. Raises SessionError when rejected."""
        ...

    def receive(self) -> AsyncIterator[dict[str, Any]]:
        """Iterate inbound events until the connection closes."""
        ...


class WebSocketTransport:
    """Session transport backed by the WhatsApp API server."""

    def __init__(
        self,
        client: WhatsAppClient,
        *,
        ping_interval: float = 30,
        ping_timeout: float = 10,
        open_timeout: float = 10,
    ):
        self.client = client
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.open_timeout = open_timeout
        self.websocket = None

    async def open(self) -> None:
        status = await self.client.get_status()
        connected, logged_in = parse_status(status)
        if not logged_in:
            raise SessionError("WhatsApp device is not logged in")
        if not connected:
            logger.info("WhatsApp API reports the device as disconnected, requesting reconnect")
            await self.client.reconnect()

        ws_url = self.client.get_websocket_url()
        try:
            self.websocket = await websockets.connect(
                ws_url,
                additional_headers=self.client.get_auth_header() or {},
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                open_timeout=self.open_timeout,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            raise SessionError(f"Failed to open event stream: {e}") from e

        logger.info(f"Connected to WebSocket at {ws_url}")

    async def close(self) -> None:
        websocket, self.websocket = self.websocket, None
        if websocket is not None:
            await websocket.close()
            logger.info("Closed WebSocket")

    async def send_text(self, recipient: str, text: str) -> dict[str, Any]:
        return await self.client.send_message(recipient, text)

    async def receive(self) -> AsyncIterator[dict[str, Any]]:
        websocket = self.websocket
        if websocket is None:
            raise SessionClosedError("Event stream is not open")

        try:
            async for raw_message in websocket:
                try:
                    event_data = json.loads(raw_message)
                except json.JSONDecodeError:
                    logger.warning(f"Invalid JSON received: {str(raw_message)[:100]}")
                    continue
                if isinstance(event_data, dict):
                    yield event_data
                else:
                    logger.warning(f"Ignoring non-object event: {str(raw_message)[:100]}")
        except ConnectionClosed as e:
            raise SessionClosedError(f"WebSocket closed: {e}") from e
