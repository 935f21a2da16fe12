"""Sync bridge worker: applies inbound session events to the store."""

import asyncio
import logging
from dataclasses import dataclass

from wahoo.core.exceptions import EventMappingError, StoreError
from wahoo.core.telemetry import get_tracer
from wahoo.db.store import Store
from wahoo.schemas import InboundMessage
from wahoo.services.event_mapper import ChatUpdate, ContactUpdate, StoreUpdate, event_type_of, map_event
from wahoo.services.session_manager import SessionEvent, SessionManager

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)


@dataclass
class SyncCursor:
    """Position in the session's event stream.

    Only meaningful for one connection generation; the session cannot
    resume across reconnects, so a new generation starts again at zero.
    """

    generation: int = 0
    offset: int = 0


class SyncBridge:
    """Consumes session events one at a time, in arrival order."""

    def __init__(self, manager: SessionManager, store: Store):
        self.manager = manager
        self.store = store
        self.cursor = SyncCursor()
        self.applied = 0
        self.dropped = 0

    async def run(self, stop: asyncio.Event) -> None:
        """Apply events until ``stop`` is set."""
        logger.info("Starting sync bridge...")
        async for event in self.manager.events(stop):
            await self.handle_event(event)
        logger.info(f"Sync bridge stopped (applied={self.applied}, dropped={self.dropped})")

    async def handle_event(self, event: SessionEvent) -> bool:
        """Apply one event. Bad events are logged and dropped, never raised.

        Returns True when the event changed or confirmed store state.
        """
        self._advance(event.generation)
        event_type = event_type_of(event.payload)

        with tracer.start_as_current_span("sync_bridge.apply") as span:
            span.set_attribute("wahoo.event_type", event_type)
            span.set_attribute("wahoo.generation", event.generation)
            try:
                update = map_event(event.payload)
                if update is None:
                    logger.debug(f"Unhandled event type '{event_type}'")
                    return False
                await self.apply(update)
            except EventMappingError as e:
                self.dropped += 1
                logger.warning(f"Dropping malformed '{event_type}' event: {e}")
                return False
            except StoreError as e:
                self.dropped += 1
                logger.error(f"Dropping '{event_type}' event after store failure: {e}")
                return False
            except Exception as e:
                self.dropped += 1
                span.record_exception(e)
                logger.error(f"Dropping '{event_type}' event after unexpected error: {e}")
                return False

        self.applied += 1
        return True

    async def apply(self, update: StoreUpdate) -> None:
        if isinstance(update, InboundMessage):
            await self.store.upsert_message(update)
        elif isinstance(update, ContactUpdate):
            await self.store.upsert_contact(update.jid, name=update.name, push_name=update.push_name)
        elif isinstance(update, ChatUpdate):
            await self.store.upsert_chat(update.jid, name=update.name, is_group=update.is_group)

    def _advance(self, generation: int) -> None:
        if generation != self.cursor.generation:
            if self.cursor.generation:
                logger.info(
                    f"Session reconnected (generation {generation}); "
                    f"resuming from the start of the new stream after "
                    f"{self.cursor.offset} events"
                )
            self.cursor = SyncCursor(generation=generation)
        self.cursor.offset += 1
