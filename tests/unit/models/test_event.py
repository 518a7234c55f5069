"""
Unit tests for models.event module.

Tests:
- Construction from real signed nostr_sdk events
- EventFields extraction
- Tag helpers (tag_values, first_tag, last_tag_value)
- Delegation to the wrapped nostr_sdk.Event
- Type and null-byte validation
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from nostr_sdk import Keys

from nostrcard.models import Event, EventFields


if TYPE_CHECKING:
    from conftest import EventFactory


class TestFields:
    def test_fields_match_signed_event(self, events: EventFactory) -> None:
        keys = Keys.generate()
        event = events.event(keys, 1, "hello", [["t", "nostr"]], created_at=1234)
        fields = event.fields
        assert isinstance(fields, EventFields)
        assert fields.pubkey == keys.public_key().to_hex()
        assert fields.created_at == 1234
        assert fields.kind == 1
        assert fields.content == "hello"
        assert fields.tags == (("t", "nostr"),)
        assert len(fields.id) == 64
        assert len(fields.sig) == 128

    def test_delegates_to_nostr_event(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1, "x")
        assert event.verify() is True
        assert event.id().to_hex() == event.fields.id
        assert event.nostr_event is event._nostr_event

    def test_unknown_attribute(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1)
        with pytest.raises(AttributeError, match="no attribute"):
            event.does_not_exist  # noqa: B018


class TestTagHelpers:
    @pytest.fixture
    def event(self, events: EventFactory) -> Event:
        return events.event(
            Keys.generate(),
            30009,
            tags=[
                ["d", "bravery"],
                ["name", "First"],
                ["name", "Second"],
                ["name", ""],
                ["image"],
                ["p", "a" * 64],
                ["p", "b" * 64],
            ],
        )

    def test_tag_values_in_order(self, event: Event) -> None:
        assert event.tag_values("p") == [("p", "a" * 64), ("p", "b" * 64)]

    def test_tag_values_missing(self, event: Event) -> None:
        assert event.tag_values("e") == []

    def test_first_tag(self, event: Event) -> None:
        assert event.first_tag("name") == ("name", "First")

    def test_first_tag_missing(self, event: Event) -> None:
        assert event.first_tag("thumb") is None

    def test_last_tag_value_skips_empty(self, event: Event) -> None:
        assert event.last_tag_value("name") == "Second"

    def test_last_tag_value_without_value(self, event: Event) -> None:
        assert event.last_tag_value("image") is None


class TestValidation:
    def test_rejects_non_event(self) -> None:
        with pytest.raises(TypeError, match="nostr_event"):
            Event(MagicMock())

    def test_rejects_null_in_content(self, events: EventFactory) -> None:
        with pytest.raises(ValueError, match="null"):
            events.event(Keys.generate(), 1, "bad\x00content")

    def test_frozen(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1)
        with pytest.raises(AttributeError):
            event._nostr_event = None  # type: ignore[misc]
