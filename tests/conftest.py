"""
Pytest configuration and shared fixtures for nostrcard tests.

Provides:
- Real signed ``nostr_sdk`` events through the ``events`` factory fixture
- Key pairs for a subject and a badge issuer
- ``FakeGateway``: a scripted ``RelayGateway`` that answers from an
  in-memory event list, records every query, and can delay or fail by stage
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, NamedTuple

import pytest
from nostr_sdk import EventBuilder, Keys, Kind, Tag, Timestamp
from nostr_sdk import Event as NostrEvent

from nostrcard.core.gateway import (
    GatewayConfig,
    GatewayTimeoutsConfig,
    QueryResult,
    QueryStatus,
    RelayGateway,
)
from nostrcard.models import Event, EventKind


BASE_TS = 1_700_000_000


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# Event Factory
# ============================================================================


class EventFactory:
    """Builds real signed events for the kinds nostrcard consumes."""

    def event(
        self,
        keys: Keys,
        kind: int,
        content: str = "",
        tags: list[list[str]] | None = None,
        created_at: int = BASE_TS,
    ) -> Event:
        builder = (
            EventBuilder(Kind(kind), content)
            .tags([Tag.parse(tag) for tag in tags or []])
            .custom_created_at(Timestamp.from_secs(created_at))
        )
        return Event(builder.sign_with_keys(keys))

    def profile(
        self,
        keys: Keys,
        data: dict[str, Any] | None = None,
        created_at: int = BASE_TS,
        *,
        raw: str | None = None,
    ) -> Event:
        content = raw if raw is not None else json.dumps(data or {})
        return self.event(keys, EventKind.SET_METADATA, content, created_at=created_at)

    def definition(
        self,
        issuer: Keys,
        identifier: str,
        created_at: int = BASE_TS,
        *,
        name: str | None = None,
        tags: list[list[str]] | None = None,
    ) -> Event:
        all_tags = [["d", identifier]]
        if name is not None:
            all_tags.append(["name", name])
            all_tags.append(["thumb", f"https://img.example.com/{identifier}.png"])
        all_tags.extend(tags or [])
        return self.event(issuer, EventKind.BADGE_DEFINITION, tags=all_tags, created_at=created_at)

    def award(
        self,
        issuer: Keys,
        recipient: str,
        identifier: str,
        created_at: int = BASE_TS,
        *,
        address: str | None = None,
    ) -> Event:
        if address is None:
            address = f"{EventKind.BADGE_DEFINITION}:{issuer.public_key().to_hex()}:{identifier}"
        tags = [["a", address], ["p", recipient]]
        return self.event(issuer, EventKind.BADGE_AWARD, tags=tags, created_at=created_at)

    def badge_list(self, keys: Keys, addresses: list[str], created_at: int = BASE_TS) -> Event:
        tags = [["d", "profile_badges"]]
        tags.extend(["a", address] for address in addresses)
        return self.event(keys, EventKind.PROFILE_BADGES, tags=tags, created_at=created_at)

    @staticmethod
    def tampered(event: Event, *, signature_from: Event | None = None) -> Event:
        """Return *event* with a broken signature.

        With *signature_from*, the other event's (well-formed) signature is
        swapped in. Otherwise the content is altered under the original id
        and signature.
        """
        data = json.loads(event.as_json())
        if signature_from is not None:
            data["sig"] = signature_from.fields.sig
        else:
            data["content"] = data["content"] + " (edited)"
        return Event(NostrEvent.from_json(json.dumps(data)))


@pytest.fixture
def events() -> EventFactory:
    return EventFactory()


@pytest.fixture
def subject_keys() -> Keys:
    return Keys.generate()


@pytest.fixture
def issuer_keys() -> Keys:
    return Keys.generate()


@pytest.fixture
def subject_pubkey(subject_keys: Keys) -> str:
    return subject_keys.public_key().to_hex()


@pytest.fixture
def subject_npub(subject_keys: Keys) -> str:
    return subject_keys.public_key().to_bech32()


# ============================================================================
# Fake Gateway
# ============================================================================


class QueryCall(NamedTuple):
    relays: tuple[str, ...]
    filter: dict[str, Any]
    timeout: float
    stage: str


def _matches(event: Event, f: dict[str, Any]) -> bool:
    fields = event.fields
    if "kinds" in f and fields.kind not in f["kinds"]:
        return False
    if "authors" in f and fields.pubkey not in f["authors"]:
        return False
    for key, values in f.items():
        if key.startswith("#"):
            name = key[1:]
            if not any(len(t) > 1 and t[1] in values for t in event.tag_values(name)):
                return False
    return True


class FakeGateway(RelayGateway):
    """A ``RelayGateway`` answering from memory.

    Attributes:
        events: Events "stored on the relays"; every query returns all that
            match its filter (kinds, authors, tag filters).
        delays: Seconds to stall before answering, keyed by ``d`` tag value
            or by stage. A stall longer than the query budget ends the query
            with ``TIMED_OUT`` and no events.
        errors: Exceptions to raise, keyed by stage.
        calls: Every query issued, in order.
    """

    def __init__(self, config: GatewayConfig | None = None) -> None:
        super().__init__(config or GatewayConfig())
        self.events: list[Event] = []
        self.delays: dict[str, float] = {}
        self.errors: dict[str, BaseException] = {}
        self.calls: list[QueryCall] = []

    def add(self, *events: Event) -> None:
        self.events.extend(events)

    def calls_for(self, stage: str) -> list[QueryCall]:
        return [call for call in self.calls if call.stage == stage]

    async def query(
        self,
        relays: Any,
        event_filter: Any,
        timeout: float,
        *,
        stage: str = "query",
    ) -> QueryResult:
        f = json.loads(event_filter.as_json())
        self.calls.append(QueryCall(self.resolve_relays(relays), f, timeout, stage))

        if stage in self.errors:
            raise self.errors[stage]

        d_values = f.get("#d", [])
        delay = next((self.delays[d] for d in d_values if d in self.delays), None)
        if delay is None:
            delay = self.delays.get(stage)
        if delay:
            try:
                async with asyncio.timeout(timeout):
                    await asyncio.sleep(delay)
            except TimeoutError:
                return QueryResult((), QueryStatus.TIMED_OUT)

        matched = tuple(e for e in self.events if _matches(e, f))
        return QueryResult(matched, QueryStatus.OK)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_gateway() -> Callable[..., FakeGateway]:
    """Factory for a ``FakeGateway`` with custom per-stage budgets."""

    def _make(config: GatewayConfig | None = None, **timeouts: float) -> FakeGateway:
        if config is None:
            config = GatewayConfig(timeouts=GatewayTimeoutsConfig(**timeouts))
        return FakeGateway(config)

    return _make
