"""
Unit tests for nips.nip01 module.

Tests:
- verify_event() on valid, content-tampered and signature-swapped events
- Newest-first ordering with id tie-break
- metadata_filter() shape
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

from nostr_sdk import Keys

from nostrcard.nips import event_sort_key, metadata_filter, newest_event, sort_events, verify_event


if TYPE_CHECKING:
    from conftest import EventFactory


class TestVerifyEvent:
    def test_valid(self, events: EventFactory) -> None:
        assert verify_event(events.event(Keys.generate(), 1, "hello")) is True

    def test_tampered_content(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1, "hello")
        assert verify_event(events.tampered(event)) is False

    def test_foreign_signature(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1, "hello")
        other = events.event(Keys.generate(), 1, "other")
        assert verify_event(events.tampered(event, signature_from=other)) is False

    def test_sdk_exception_counts_as_failure(self) -> None:
        event = MagicMock()
        event.nostr_event.verify.side_effect = RuntimeError("ffi")
        assert verify_event(event) is False


class TestOrdering:
    def test_newest_first(self, events: EventFactory) -> None:
        keys = Keys.generate()
        created = [100, 300, 200]
        batch = [events.event(keys, 1, str(ts), created_at=ts) for ts in created]
        assert [e.fields.created_at for e in sort_events(batch)] == [300, 200, 100]

    def test_ties_broken_by_id_ascending(self, events: EventFactory) -> None:
        keys = Keys.generate()
        batch = [events.event(keys, 1, str(i), created_at=500) for i in range(4)]
        ids = [e.fields.id for e in sort_events(batch)]
        assert ids == sorted(ids)

    def test_sort_key(self, events: EventFactory) -> None:
        event = events.event(Keys.generate(), 1, created_at=42)
        assert event_sort_key(event) == (-42, event.fields.id)

    def test_newest_event(self, events: EventFactory) -> None:
        keys = Keys.generate()
        old = events.event(keys, 1, "old", created_at=10)
        new = events.event(keys, 1, "new", created_at=20)
        assert newest_event([old, new]) is new

    def test_newest_event_empty(self) -> None:
        assert newest_event([]) is None


class TestMetadataFilter:
    def test_shape(self) -> None:
        pubkey = Keys.generate().public_key().to_hex()
        data = json.loads(metadata_filter(pubkey).as_json())
        assert data["kinds"] == [0]
        assert data["authors"] == [pubkey]
        assert data["limit"] == 1
