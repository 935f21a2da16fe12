"""Reconnection policy and the supervisor task that applies it."""

import asyncio
import logging
from typing import Protocol

from wahoo.config import Settings
from wahoo.services.session_manager import SessionManager, SessionState

logger = logging.getLogger(__name__)


class ReconnectPolicy(Protocol):
    """Decides how long to wait before reconnect attempt number ``attempt``."""

    def next_delay(self, attempt: int) -> float | None:
        """Delay in seconds, or None to stop retrying."""
        ...


class ExponentialBackoff:
    """Doubling delay capped at ``maximum``, optionally bounded in attempts."""

    def __init__(
        self,
        initial: float = 1.0,
        maximum: float = 60.0,
        factor: float = 2.0,
        max_attempts: int | None = None,
    ):
        self.initial = initial
        self.maximum = maximum
        self.factor = factor
        self.max_attempts = max_attempts

    def next_delay(self, attempt: int) -> float | None:
        if self.max_attempts is not None and attempt >= self.max_attempts:
            return None
        return min(self.initial * self.factor**attempt, self.maximum)


class NoReconnect:
    """Leave the session in the error state after the first failure."""

    def next_delay(self, attempt: int) -> float | None:
        return None


def build_policy(settings: Settings) -> ReconnectPolicy:
    if settings.RECONNECT_POLICY == "none":
        return NoReconnect()
    return ExponentialBackoff(
        initial=settings.RECONNECT_INITIAL_DELAY,
        maximum=settings.RECONNECT_MAX_DELAY,
        max_attempts=settings.RECONNECT_MAX_ATTEMPTS,
    )


class ConnectionSupervisor:
    """Background task that connects the session and keeps it connected."""

    def __init__(
        self,
        manager: SessionManager,
        policy: ReconnectPolicy,
        *,
        poll_interval: float = 1.0,
    ):
        self.manager = manager
        self.policy = policy
        self.poll_interval = poll_interval
        self.attempt = 0

    async def run(self, stop: asyncio.Event) -> None:
        """Connect, then reconnect on error per policy until ``stop`` is set."""
        logger.info("Starting connection supervisor...")
        self.manager.connect()
        gave_up = False
        attempts_at_give_up = 0

        while not stop.is_set():
            state = self.manager.state

            if gave_up and (
                state is not SessionState.ERROR or self.manager.attempts != attempts_at_give_up
            ):
                # A manual connect after giving up gets a fresh set of retries
                self.attempt = 0
                gave_up = False

            if state is SessionState.CONNECTED:
                self.attempt = 0
                gave_up = False

            elif state is SessionState.ERROR and not gave_up:
                delay = self.policy.next_delay(self.attempt)
                if delay is None:
                    logger.error(
                        f"Giving up reconnecting after {self.attempt} attempts: "
                        f"{self.manager.status().reason}"
                    )
                    gave_up = True
                    attempts_at_give_up = self.manager.attempts
                else:
                    logger.warning(
                        f"Session error ({self.manager.status().reason}), "
                        f"reconnecting in {delay:.1f}s"
                    )
                    if await _wait(stop, delay):
                        break
                    self.attempt += 1
                    self.manager.reconnect()

            elif state is SessionState.DISCONNECTED:
                self.attempt = 0
                gave_up = False

            if await _wait(stop, self.poll_interval):
                break

        logger.info("Connection supervisor stopped")


async def _wait(stop: asyncio.Event, timeout: float) -> bool:
    """Sleep up to ``timeout``; True if ``stop`` was set meanwhile."""
    try:
        await asyncio.wait_for(stop.wait(), timeout)
    except asyncio.TimeoutError:
        return False
    return True
