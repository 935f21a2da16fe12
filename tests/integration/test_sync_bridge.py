"""Integration tests for the sync bridge worker."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from wahoo.core.exceptions import StoreError
from wahoo.schemas import ListMessagesOptions
from wahoo.services.session_manager import SessionEvent
from wahoo.workers.sync_bridge import SyncBridge

from tests.conftest import CONTACT_JID, GROUP_JID, message_event, wait_for


class TestSyncBridgeHandleEvent:
    """Tests for applying single events."""

    @pytest.mark.asyncio
    async def test_message_event_is_stored(self, session_manager, store, sample_message_event):
        """Test that message events become messages, chats and contacts."""
        bridge = SyncBridge(session_manager, store)

        applied = await bridge.handle_event(SessionEvent(1, sample_message_event))

        assert applied is True
        messages = await store.list_messages(ListMessagesOptions(chat_jid=CONTACT_JID))
        assert [m.id for m in messages] == ["ABCD1234567890"]
        chat = await store.get_chat(CONTACT_JID)
        assert chat.name == "Maria"
        assert chat.last_message == "Hello, this is a test message"
        assert [c.jid for c in await store.search_contacts("maria")] == [CONTACT_JID]

    @pytest.mark.asyncio
    async def test_duplicate_event_is_idempotent(self, session_manager, store, sample_message_event):
        """Test that replayed events do not duplicate messages."""
        bridge = SyncBridge(session_manager, store)

        await bridge.handle_event(SessionEvent(1, sample_message_event))
        await bridge.handle_event(SessionEvent(2, sample_message_event))

        assert await store.count_messages(CONTACT_JID) == 1

    @pytest.mark.asyncio
    async def test_contact_and_chat_events(self, session_manager, store, sample_contact_event):
        bridge = SyncBridge(session_manager, store)

        await bridge.handle_event(SessionEvent(1, sample_contact_event))
        await bridge.handle_event(
            SessionEvent(1, {"event": "chat.update", "data": {"jid": GROUP_JID, "name": "Family"}})
        )

        contacts = await store.search_contacts("silva")
        assert [(c.name, c.push_name) for c in contacts] == [("Maria Silva", "Maria")]
        chat = await store.get_chat(GROUP_JID)
        assert chat.name == "Family"
        assert chat.is_group is True

    @pytest.mark.asyncio
    async def test_untracked_event_is_ignored(self, session_manager, store, sample_ack_event):
        bridge = SyncBridge(session_manager, store)

        assert await bridge.handle_event(SessionEvent(1, sample_ack_event)) is False
        assert bridge.dropped == 0
        assert await store.list_chats() == []

    @pytest.mark.asyncio
    async def test_malformed_event_is_dropped(self, session_manager, store):
        """Test that a bad event is logged and dropped, not raised."""
        bridge = SyncBridge(session_manager, store)

        applied = await bridge.handle_event(SessionEvent(1, message_event("X", timestamp="never")))

        assert applied is False
        assert bridge.dropped == 1
        assert await store.list_chats() == []

    @pytest.mark.asyncio
    async def test_store_failure_is_dropped(self, session_manager, store, sample_message_event):
        """Test that a store failure drops the event and the bridge keeps going."""
        bridge = SyncBridge(session_manager, store)

        with patch.object(store, "upsert_message", AsyncMock(side_effect=StoreError("disk full"))):
            assert await bridge.handle_event(SessionEvent(1, sample_message_event)) is False

        assert bridge.dropped == 1
        assert await bridge.handle_event(SessionEvent(1, sample_message_event)) is True

    @pytest.mark.asyncio
    async def test_unexpected_error_is_dropped(self, session_manager, store, sample_message_event):
        bridge = SyncBridge(session_manager, store)

        with patch.object(store, "upsert_message", AsyncMock(side_effect=RuntimeError("boom"))):
            assert await bridge.handle_event(SessionEvent(1, sample_message_event)) is False

        assert bridge.dropped == 1
        assert bridge.applied == 0

    @pytest.mark.asyncio
    async def test_cursor_resets_on_new_generation(self, session_manager, store, sample_ack_event):
        bridge = SyncBridge(session_manager, store)

        for _ in range(3):
            await bridge.handle_event(SessionEvent(1, sample_ack_event))
        assert (bridge.cursor.generation, bridge.cursor.offset) == (1, 3)

        await bridge.handle_event(SessionEvent(2, sample_ack_event))
        assert (bridge.cursor.generation, bridge.cursor.offset) == (2, 1)


class TestSyncBridgeRun:
    """Tests for the bridge consuming the live session."""

    @pytest.mark.asyncio
    async def test_events_flow_from_session_to_store(self, connected_session, fake_transport, store):
        """Test that pushed events are applied in arrival order."""
        stop = asyncio.Event()
        bridge = SyncBridge(connected_session, store)
        task = asyncio.create_task(bridge.run(stop))

        fake_transport.push(
            message_event("A1", body="first", timestamp=1706140800),
            {"event": "message.ack", "data": {"id": "A1", "ack": 3}},
            message_event("A2", body="second", timestamp=1706140800),
        )
        await wait_for(lambda: bridge.applied == 2)

        chat = await store.get_chat(CONTACT_JID)
        assert chat.last_message == "second"

        stop.set()
        await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_bad_events_do_not_stop_ingestion(self, connected_session, fake_transport, store):
        """Test that out-of-range timestamps and unencodable text leave the bridge running."""
        stop = asyncio.Event()
        bridge = SyncBridge(connected_session, store)
        task = asyncio.create_task(bridge.run(stop))

        fake_transport.push(
            message_event("B1", timestamp="0001-01-01T00:00:00+01:00"),
            message_event("B2", body="bad \ud800 surrogate", push_name="Ma\udc00ria"),
            message_event("B3", body="after", timestamp=1706140900),
        )
        await wait_for(lambda: bridge.applied == 2)

        assert not task.done()
        assert bridge.dropped == 1
        messages = await store.list_messages(ListMessagesOptions(chat_jid=CONTACT_JID))
        assert [(m.id, m.content) for m in messages] == [("B3", "after"), ("B2", "bad ? surrogate")]
        assert [c.push_name for c in await store.search_contacts(CONTACT_JID)] == ["Ma?ria"]

        stop.set()
        await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_bridge_survives_reconnect(self, connected_session, fake_transport, store):
        """Test that ingestion continues on the new connection after a reconnect."""
        stop = asyncio.Event()
        bridge = SyncBridge(connected_session, store)
        task = asyncio.create_task(bridge.run(stop))

        fake_transport.push(message_event("A1"))
        await wait_for(lambda: bridge.applied == 1)

        await connected_session.reconnect()
        fake_transport.push(message_event("A2", timestamp=1706140900))
        await wait_for(lambda: bridge.applied == 2)

        assert bridge.cursor.generation == 2
        assert await store.count_messages(CONTACT_JID) == 2

        stop.set()
        await asyncio.wait_for(task, timeout=1)

    @pytest.mark.asyncio
    async def test_stop_while_disconnected(self, session_manager, store):
        stop = asyncio.Event()
        bridge = SyncBridge(session_manager, store)
        task = asyncio.create_task(bridge.run(stop))
        await asyncio.sleep(0.01)

        stop.set()

        await asyncio.wait_for(task, timeout=1)
        assert bridge.applied == 0
