"""Unit tests for session event mapping."""

from datetime import datetime, timezone

import pytest

from wahoo.core.exceptions import EventMappingError
from wahoo.schemas import InboundMessage
from wahoo.services.event_mapper import (
    ChatUpdate,
    ContactUpdate,
    event_type_of,
    map_event,
    parse_flag,
    parse_timestamp,
)

from tests.conftest import CONTACT_JID, GROUP_JID, OWN_JID, message_event

EXPECTED_TIME = datetime(2024, 1, 25, 0, 0, tzinfo=timezone.utc)


class TestEventType:
    """Tests for event type detection."""

    @pytest.mark.parametrize(
        "event, expected",
        [
            ({"event": "message"}, "message"),
            ({"type": "Message.Received"}, "message.received"),
            ({"code": "LOGGED_OUT"}, "logged_out"),
            ({}, "unknown"),
        ],
    )
    def test_event_type_keys(self, event, expected):
        assert event_type_of(event) == expected


class TestMapMessage:
    """Tests for message events."""

    def test_incoming_message(self, sample_message_event):
        """Test mapping of an incoming one-to-one message."""
        update = map_event(sample_message_event)

        assert isinstance(update, InboundMessage)
        assert update.message_id == "ABCD1234567890"
        assert update.chat_jid == CONTACT_JID
        assert update.sender == CONTACT_JID
        assert update.content == "Hello, this is a test message"
        assert update.timestamp == EXPECTED_TIME
        assert update.is_from_me is False
        assert update.sender_name == "Maria"
        assert update.chat_name == "Maria"

    def test_outgoing_message_is_filed_under_recipient(self):
        """Test that sent messages without a chat field use the recipient."""
        event = {
            "event": "message.sent",
            "data": {
                "id": "OUT1",
                "from": OWN_JID,
                "to": CONTACT_JID,
                "body": "On my way",
                "timestamp": 1706140800,
            },
        }

        update = map_event(event)

        assert update.chat_jid == CONTACT_JID
        assert update.sender == OWN_JID
        assert update.is_from_me is True
        assert update.chat_name is None

    def test_group_message_uses_participant_as_sender(self):
        """Test that group messages keep the group as chat and the author as sender."""
        event = message_event(
            "G1",
            chat=GROUP_JID,
            sender=GROUP_JID,
            participant=CONTACT_JID,
            groupName="Family",
        )

        update = map_event(event)

        assert update.chat_jid == GROUP_JID
        assert update.sender == CONTACT_JID
        assert update.chat_name == "Family"

    def test_group_message_does_not_take_push_name_as_chat_name(self):
        event = message_event("G1", chat=GROUP_JID, participant=CONTACT_JID)

        update = map_event(event)

        assert update.chat_name is None
        assert update.sender_name == "Maria"

    def test_media_message_uses_caption(self):
        """Test that media messages fall back to their caption as content."""
        event = message_event("IMG1", body="", type="image", caption="Look at this")

        update = map_event(event)

        assert update.media_type == "image"
        assert update.content == "Look at this"

    def test_media_message_without_caption(self):
        event = message_event("AUD1", body="", mediaType="audio")

        update = map_event(event)

        assert update.media_type == "audio"
        assert update.content == ""

    def test_content_whitespace_is_preserved(self):
        event = message_event("W1", body="  indented\n")

        assert map_event(event).content == "  indented\n"

    def test_message_without_id(self):
        """Test that the identity key falls back to timestamp and sender."""
        update = map_event(message_event(None))

        assert update.message_id is None
        assert update.identity_key == f"{int(EXPECTED_TIME.timestamp() * 1000)}:{CONTACT_JID}"

    def test_message_without_chat_or_sender_raises(self):
        event = {"event": "message", "data": {"id": "X", "body": "hi", "timestamp": 1}}

        with pytest.raises(EventMappingError):
            map_event(event)

    def test_message_without_timestamp_raises(self):
        event = message_event("X", timestamp=None)

        with pytest.raises(EventMappingError):
            map_event(event)

    def test_string_from_me_flag(self):
        """Test that a "false" string keeps an incoming message under its sender."""
        event = {
            "event": "message",
            "data": {
                "id": "S1",
                "from": CONTACT_JID,
                "to": OWN_JID,
                "body": "hi",
                "timestamp": 1706140800,
                "fromMe": "false",
                "isGroup": "0",
            },
        }

        update = map_event(event)

        assert update.is_from_me is False
        assert update.chat_jid == CONTACT_JID
        assert update.is_group is False

    def test_unrecognized_from_me_flag_raises(self):
        with pytest.raises(EventMappingError):
            map_event(message_event("S2", fromMe="maybe"))

    def test_lone_surrogates_are_replaced(self):
        """Test that text which cannot be encoded as UTF-8 is made storable."""
        event = message_event("U1", body="bad \ud800 surrogate", push_name="Ma\udc00ria")

        update = map_event(event)

        assert update.content == "bad ? surrogate"
        assert update.sender_name == "Ma?ria"
        assert update.chat_name == "Ma?ria"


class TestMapOtherEvents:
    """Tests for contact, chat and untracked events."""

    def test_contact_event(self, sample_contact_event):
        update = map_event(sample_contact_event)

        assert update == ContactUpdate(jid=CONTACT_JID, name="Maria Silva", push_name="Maria")

    def test_chat_event(self):
        event = {"event": "group.update", "data": {"jid": GROUP_JID, "subject": "Family", "isGroup": True}}

        assert map_event(event) == ChatUpdate(jid=GROUP_JID, name="Family", is_group=True)

    def test_contact_event_without_jid_raises(self):
        with pytest.raises(EventMappingError):
            map_event({"event": "contact", "data": {"name": "Nobody"}})

    def test_untracked_event_returns_none(self, sample_ack_event):
        """Test that acks and connection notices are ignored."""
        assert map_event(sample_ack_event) is None
        assert map_event({"event": "connected", "data": {"jid": OWN_JID}}) is None

    def test_event_with_non_object_data_raises(self):
        with pytest.raises(EventMappingError):
            map_event({"event": "message", "data": "garbage"})

    def test_non_object_event_raises(self):
        with pytest.raises(EventMappingError):
            map_event(["message"])


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    @pytest.mark.parametrize(
        "value",
        [
            1706140800,
            1706140800.0,
            "1706140800",
            1706140800000,
            "2024-01-25T00:00:00Z",
            "2024-01-25T03:00:00+03:00",
            "2024-01-25T00:00:00",
        ],
    )
    def test_supported_formats(self, value):
        assert parse_timestamp(value) == EXPECTED_TIME

    @pytest.mark.parametrize(
        "value",
        [
            None,
            True,
            "yesterday",
            {"seconds": 1},
            "0001-01-01T00:00:00+01:00",
            "9999-12-31T23:59:59-01:00",
        ],
    )
    def test_invalid_values_raise(self, value):
        with pytest.raises(EventMappingError):
            parse_timestamp(value)


class TestParseFlag:
    """Tests for boolean field parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (True, True),
            (False, False),
            (1, True),
            (0, False),
            ("true", True),
            ("False", False),
            (" 1 ", True),
            ("0", False),
            (None, None),
            ("", None),
        ],
    )
    def test_values(self, value, expected):
        assert parse_flag(value) is expected

    def test_default_applies_to_missing_value(self):
        assert parse_flag(None, default=True) is True

    @pytest.mark.parametrize("value", ["maybe", [True], {"value": 1}])
    def test_invalid_values_raise(self, value):
        with pytest.raises(EventMappingError):
            parse_flag(value)
