"""Lifecycle of the single live WhatsApp session."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from wahoo.core.exceptions import InvalidStateTransition, SessionError
from wahoo.services.event_mapper import event_type_of
from wahoo.services.transport import SessionTransport

logger = logging.getLogger(__name__)

NOT_CONNECTED = "WhatsApp not connected"

# Event types that mean the remote side dropped the session
SESSION_LOST_EVENTS = frozenset({"disconnected", "logout", "logged_out"})


class SessionState(str, Enum):
    """Session state enum."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.DISCONNECTED: frozenset({SessionState.CONNECTING, SessionState.ERROR}),
    SessionState.CONNECTING: frozenset(
        {SessionState.CONNECTED, SessionState.ERROR, SessionState.DISCONNECTED}
    ),
    SessionState.CONNECTED: frozenset(
        {SessionState.CONNECTING, SessionState.ERROR, SessionState.DISCONNECTED}
    ),
    SessionState.ERROR: frozenset(
        {SessionState.CONNECTING, SessionState.ERROR, SessionState.DISCONNECTED}
    ),
}


@dataclass(frozen=True)
class SessionStatus:
    state: SessionState
    reason: str | None = None

    @property
    def connected(self) -> bool:
        return self.state is SessionState.CONNECTED


@dataclass(frozen=True)
class SendResult:
    """Outcome of a send: ``ok`` plus the session's message id or the failure reason."""

    ok: bool
    detail: str


@dataclass(frozen=True)
class SessionEvent:
    """Inbound event tagged with the connection generation it arrived on."""

    generation: int
    payload: dict[str, Any]


_STOPPED = object()
_END = object()


class SessionManager:
    """Owns the live connection handle and its state machine.

    All state changes go through ``_transition``. Opening and closing the
    transport is serialized by a lifecycle lock and sends by a send lock, so
    submissions reach the session in the order they were made. The manager
    never retries on its own; ``ConnectionSupervisor`` drives reconnection.
    """

    def __init__(self, transport: SessionTransport):
        self._transport = transport
        self._state = SessionState.DISCONNECTED
        self._reason: str | None = None
        self._generation = 0
        self._attempts = 0
        self._connected = asyncio.Event()
        self._lifecycle_lock = asyncio.Lock()
        self._send_lock = asyncio.Lock()
        self._connect_task: asyncio.Task | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def generation(self) -> int:
        """Number of successful connections so far."""
        return self._generation

    @property
    def attempts(self) -> int:
        """Number of connection attempts started so far."""
        return self._attempts

    def status(self) -> SessionStatus:
        return SessionStatus(self._state, self._reason)

    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    def connect(self) -> asyncio.Task | None:
        """Start connecting in the background.

        No-op while connecting or connected. Failures are recorded in the
        state, never raised. Returns the background task, if one was started.
        """
        if self._state in (SessionState.CONNECTING, SessionState.CONNECTED):
            return None

        self._attempts += 1
        self._transition(SessionState.CONNECTING)
        self._connect_task = asyncio.create_task(
            self._establish(close_first=True), name="session-connect"
        )
        return self._connect_task

    def reconnect(self) -> asyncio.Task | None:
        """Drop the current connection and start a new attempt.

        Only valid from the connected and error states; no-op otherwise.
        """
        if self._state not in (SessionState.CONNECTED, SessionState.ERROR):
            return None

        self._attempts += 1
        self._transition(SessionState.CONNECTING)
        self._connect_task = asyncio.create_task(
            self._establish(close_first=True), name="session-reconnect"
        )
        return self._connect_task

    async def disconnect(self) -> None:
        """Release the connection and move to disconnected. Idempotent."""
        task, self._connect_task = self._connect_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        async with self._lifecycle_lock:
            if self._state is SessionState.DISCONNECTED:
                return
            await self._close_transport()
            self._transition(SessionState.DISCONNECTED)

    async def send_message(self, recipient: str, text: str) -> SendResult:
        """Submit a text message through the live session.

        Fails fast without touching the transport when not connected.
        """
        if not self.is_connected():
            return SendResult(False, NOT_CONNECTED)

        jid = normalize_jid(recipient)
        if not jid:
            return SendResult(False, f"Invalid recipient: {recipient!r}")

        async with self._send_lock:
            if not self.is_connected():
                return SendResult(False, NOT_CONNECTED)
            try:
                result = await self._transport.send_text(jid, text)
            except SessionError as e:
                logger.warning(f"Send to {jid} rejected: {e}")
                return SendResult(False, str(e))
            except Exception as e:
                logger.error(f"Unexpected error sending to {jid}: {e}")
                return SendResult(False, f"Send failed: {e}")

        logger.info(f"Message sent to {jid}")
        return SendResult(True, _send_detail(result))

    async def events(self, stop: asyncio.Event) -> AsyncIterator[SessionEvent]:
        """Iterate inbound events across reconnects until ``stop`` is set.

        While not connected the iterator waits. A closed stream or a
        session-lost event moves the state to error for that generation.
        """
        while not stop.is_set():
            if not await self._wait_connected(stop):
                continue

            generation = self._generation
            iterator = aiter(self._transport.receive())
            try:
                while True:
                    payload = await _race(_next_or_end(iterator), stop)
                    if payload is _STOPPED:
                        return
                    if payload is _END:
                        self._mark_lost(generation, "Event stream ended")
                        break
                    if generation != self._generation:
                        break

                    event_type = event_type_of(payload)
                    if event_type in SESSION_LOST_EVENTS:
                        self._mark_lost(generation, f"Remote session reported '{event_type}'")
                        break

                    yield SessionEvent(generation, payload)
            except SessionError as e:
                logger.warning(f"Event stream closed: {e}")
                self._mark_lost(generation, str(e))
            finally:
                aclose = getattr(iterator, "aclose", None)
                if aclose is not None:
                    await aclose()

    async def _establish(self, *, close_first: bool = False) -> None:
        async with self._lifecycle_lock:
            if self._state is not SessionState.CONNECTING:
                return
            if close_first:
                await self._close_transport()

            try:
                await self._transport.open()
            except Exception as e:
                logger.error(f"WhatsApp connection error: {e}")
                await self._close_transport()
                self._transition(SessionState.ERROR, str(e) or e.__class__.__name__)
                return

            self._generation += 1
            self._transition(SessionState.CONNECTED)

    async def _close_transport(self) -> None:
        try:
            await self._transport.close()
        except Exception as e:
            logger.warning(f"Error closing session transport: {e}")

    async def _wait_connected(self, stop: asyncio.Event) -> bool:
        if not self._connected.is_set():
            await _race(self._connected.wait(), stop)
        return self._connected.is_set() and not stop.is_set()

    def _mark_lost(self, generation: int, reason: str) -> None:
        if self._state is SessionState.CONNECTED and self._generation == generation:
            self._transition(SessionState.ERROR, reason)

    def _transition(self, new_state: SessionState, reason: str | None = None) -> None:
        old_state = self._state
        if new_state not in _TRANSITIONS[old_state]:
            raise InvalidStateTransition(f"{old_state.value} -> {new_state.value}")

        self._state = new_state
        self._reason = reason if new_state is SessionState.ERROR else None
        if new_state is SessionState.CONNECTED:
            self._connected.set()
        else:
            self._connected.clear()

        if reason:
            logger.info(f"Session state {old_state.value} -> {new_state.value}: {reason}")
        else:
            logger.info(f"Session state {old_state.value} -> {new_state.value}")


def normalize_jid(recipient: str) -> str:
    """Turn a phone number into a user JID; JIDs pass through unchanged."""
    recipient = recipient.strip()
    if "@" in recipient:
        return recipient
    digits = "".join(filter(str.isdigit, recipient))
    return f"{digits}@s.whatsapp.net" if digits else ""


def _send_detail(result: Any) -> str:
    if not isinstance(result, dict):
        return "Message sent"
    results = result.get("results")
    if isinstance(results, dict) and results.get("message_id"):
        return str(results["message_id"])
    return str(result.get("message_id") or result.get("message") or "Message sent")


async def _next_or_end(iterator: AsyncIterator[Any]) -> Any:
    try:
        return await anext(iterator)
    except StopAsyncIteration:
        return _END


async def _race(awaitable: Awaitable[Any], stop: asyncio.Event) -> Any:
    """Await ``awaitable`` unless ``stop`` fires first, then return _STOPPED."""
    task = asyncio.ensure_future(awaitable)
    stopper = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    if task.cancelled():
        return _STOPPED
    return task.result()
