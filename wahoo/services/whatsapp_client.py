"""HTTP client for WhatsApp API integration."""

import base64
import logging
from typing import Any
from urllib.parse import urlencode, urlparse

import httpx

from wahoo.config import Settings
from wahoo.core.exceptions import WhatsAppAPIError

logger = logging.getLogger(__name__)


class WhatsAppClient:
    """HTTP client for communicating with the WhatsApp API server."""

    def __init__(
        self,
        base_url: str,
        *,
        username: str = "",
        password: str = "",
        device_id: str | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.device_id = device_id
        self.timeout = timeout
        self.auth = (username, password) if username else None
        logger.debug(f"WhatsAppClient initialized: base_url={self.base_url}, auth={'set' if self.auth else 'none'}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppClient":
        return cls(
            settings.WHATSAPP_API_URL,
            username=settings.WHATSAPP_API_USER,
            password=settings.WHATSAPP_API_PASSWORD,
            device_id=settings.WHATSAPP_DEVICE_ID,
            timeout=settings.WHATSAPP_API_TIMEOUT,
        )

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs,
    ) -> dict[str, Any]:
        """Make an HTTP request to the WhatsApp API."""
        url = f"{self.base_url}{path}"
        logger.info(f"WhatsApp API request: {method} {url}")

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            headers = kwargs.pop("headers", {})
            if self.device_id:
                headers["X-Device-Id"] = self.device_id

            try:
                response = await client.request(
                    method,
                    url,
                    auth=self.auth,
                    headers=headers,
                    **kwargs,
                )
            except httpx.RequestError as e:
                logger.error(f"WhatsApp API connection error: {e}")
                raise WhatsAppAPIError(f"Connection error: {e}") from e

            logger.info(f"WhatsApp API response: {response.status_code}")

            if response.status_code >= 400:
                logger.error(f"WhatsApp API error: {response.status_code} - {response.text}")
                raise WhatsAppAPIError(response.text or f"HTTP {response.status_code}")

            try:
                return response.json()
            except ValueError as e:
                raise WhatsAppAPIError(f"Invalid JSON response: {e}") from e

    async def send_message(self, phone: str, message: str) -> dict[str, Any]:
        """Send a text message to a phone number or JID."""
        return await self._request(
            "POST",
            "/send/message",
            json={"phone": phone, "message": message},
        )

    async def get_status(self) -> dict[str, Any]:
        """Get device connection status."""
        return await self._request("GET", "/app/status")

    async def reconnect(self) -> dict[str, Any]:
        """Ask the API server to reconnect its WhatsApp session."""
        return await self._request("GET", "/app/reconnect")

    def get_websocket_url(self) -> str:
        """Get WebSocket URL for real-time event connection."""
        parsed = urlparse(self.base_url)
        ws_scheme = "wss" if parsed.scheme == "https" else "ws"
        url = f"{ws_scheme}://{parsed.netloc}{parsed.path}/ws"
        if self.device_id:
            url = f"{url}?{urlencode({'device_id': self.device_id})}"
        return url

    def get_auth_header(self) -> dict[str, str] | None:
        """Get authentication header for WebSocket connection."""
        if not self.auth:
            return None
        credentials = f"{self.auth[0]}:{self.auth[1]}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return {"Authorization": f"Basic {encoded}"}


def parse_status(status: dict[str, Any]) -> tuple[bool, bool]:
    """Extract ``(connected, logged_in)`` from an ``/app/status`` payload.

    Accepts both the flat shape and the one wrapped in ``results``.
    """
    results = status.get("results")
    if not isinstance(results, dict):
        results = status
    connected = bool(results.get("is_connected", results.get("connected", False)))
    logged_in = bool(results.get("is_logged_in", results.get("logged_in", False)))
    return connected, logged_in
