"""
Unit tests for services.badges module.

Tests:
- Award bounding, ordering and filtering
- Definition verification, matching and newest-wins selection
- Concurrent definition queries with independent budgets
- The profile_badges source
- Degradation to an empty list on failure
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import pytest
from nostr_sdk import Keys
from pydantic import ValidationError

from nostrcard.models import KeyWithRelayHints, PlainKey
from nostrcard.services import BadgeConfig, BadgeResolver, BadgeSource


if TYPE_CHECKING:
    from collections.abc import Callable

    from conftest import EventFactory, FakeGateway


def _award_with_definition(
    gateway: FakeGateway,
    events: EventFactory,
    issuer: Keys,
    recipient: str,
    identifier: str,
    created_at: int,
) -> None:
    gateway.add(
        events.award(issuer, recipient, identifier, created_at),
        events.definition(issuer, identifier, name=identifier.title()),
    )


class TestBadgeConfig:
    def test_defaults(self) -> None:
        config = BadgeConfig()
        assert config.source == BadgeSource.AWARDS
        assert config.award_limit == 100
        assert config.max_badges == 5

    def test_max_badges_capped_at_five(self) -> None:
        with pytest.raises(ValidationError):
            BadgeConfig(max_badges=6)


class TestAwards:
    async def test_at_most_five(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        for i in range(12):
            _award_with_definition(gateway, events, issuer_keys, subject_pubkey, f"b{i}", 100 + i)

        badges = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert len(badges) == 5
        assert [b.name for b in badges] == ["B11", "B10", "B9", "B8", "B7"]
        assert len(gateway.calls_for("definition")) == 5

    async def test_newest_award_first(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        for ts in (100, 300, 200):
            _award_with_definition(gateway, events, issuer_keys, subject_pubkey, f"t{ts}", ts)

        badges = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["T300", "T200", "T100"]

    async def test_configured_max_badges(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        for i in range(4):
            _award_with_definition(gateway, events, issuer_keys, subject_pubkey, f"m{i}", i)

        resolver = BadgeResolver(gateway, BadgeConfig(max_badges=2))
        badges = await resolver.resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["M3", "M2"]

    async def test_award_limit_in_filter(self, gateway: FakeGateway, subject_pubkey: str) -> None:
        await BadgeResolver(gateway, BadgeConfig(award_limit=42)).resolve(PlainKey(subject_pubkey))

        [call] = gateway.calls_for("awards")
        assert call.filter["limit"] == 42
        assert call.filter["#p"] == [subject_pubkey]

    async def test_non_definition_reference_excluded(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        pubkey = issuer_keys.public_key().to_hex()
        gateway.add(
            events.award(issuer_keys, subject_pubkey, "x", 200, address=f"30008:{pubkey}:x"),
            events.award(issuer_keys, subject_pubkey, "y", 300, address="not-an-address"),
        )
        _award_with_definition(gateway, events, issuer_keys, subject_pubkey, "good", 100)

        badges = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["Good"]
        assert len(gateway.calls_for("definition")) == 1

    async def test_tampered_award_excluded(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        forged = events.tampered(events.award(issuer_keys, subject_pubkey, "forged", 500))
        gateway.add(forged, events.definition(issuer_keys, "forged", name="Forged"))
        _award_with_definition(gateway, events, issuer_keys, subject_pubkey, "real", 100)

        badges = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["Real"]

    async def test_no_awards(self, gateway: FakeGateway, subject_pubkey: str) -> None:
        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []
        assert gateway.calls_for("definition") == []


class TestDefinitions:
    async def test_tampered_definition_omitted(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        valid = events.definition(issuer_keys, "x", name="X")
        gateway.add(
            events.award(issuer_keys, subject_pubkey, "x"),
            events.tampered(valid, signature_from=events.definition(Keys.generate(), "x")),
        )

        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []

    async def test_newest_definition_wins(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        gateway.add(
            events.award(issuer_keys, subject_pubkey, "x"),
            events.definition(issuer_keys, "x", 100, name="Old"),
            events.definition(issuer_keys, "x", 200, name="New"),
        )

        [badge] = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert badge.name == "New"

    async def test_definition_by_other_author_ignored(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        gateway.add(
            events.award(issuer_keys, subject_pubkey, "x"),
            events.definition(Keys.generate(), "x", name="Impostor"),
        )

        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []

    async def test_display_fields(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        gateway.add(
            events.award(issuer_keys, subject_pubkey, "x"),
            events.definition(
                issuer_keys,
                "x",
                tags=[
                    ["name", "Explorer"],
                    ["description", "Visited ten relays"],
                    ["image", "https://img.example.com/x.png"],
                ],
            ),
        )

        [badge] = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        assert badge.name == "Explorer"
        assert badge.description == "Visited ten relays"
        assert badge.display_image == "https://img.example.com/x.png"

    async def test_definition_relays_include_defaults(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        _award_with_definition(gateway, events, issuer_keys, subject_pubkey, "x", 100)
        subject = KeyWithRelayHints(subject_pubkey, ("wss://hint.example.com",))

        await BadgeResolver(gateway).resolve(subject)

        [award_call] = gateway.calls_for("awards")
        [definition_call] = gateway.calls_for("definition")
        assert award_call.relays == ("wss://hint.example.com",)
        assert definition_call.relays == ("wss://hint.example.com", *gateway.default_relays)


class TestConcurrency:
    async def test_slow_definition_does_not_block_others(
        self,
        make_gateway: Callable[..., FakeGateway],
        events: EventFactory,
        issuer_keys: Keys,
        subject_pubkey: str,
    ) -> None:
        gateway = make_gateway(definition=0.3)
        for i, identifier in enumerate(("fast1", "slow", "fast2", "fast3")):
            _award_with_definition(
                gateway, events, issuer_keys, subject_pubkey, identifier, 400 - i
            )
        gateway.delays["slow"] = 10.0
        for identifier in ("fast1", "fast2", "fast3"):
            gateway.delays[identifier] = 0.2

        start = time.monotonic()
        badges = await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))
        elapsed = time.monotonic() - start

        assert [b.name for b in badges] == ["Fast1", "Fast2", "Fast3"]
        assert elapsed < 0.9

    async def test_each_definition_gets_full_budget(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        for i in range(3):
            _award_with_definition(gateway, events, issuer_keys, subject_pubkey, f"d{i}", i)

        await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))

        timeouts = {call.timeout for call in gateway.calls_for("definition")}
        assert timeouts == {gateway.timeouts.definition}


class TestProfileBadgesSource:
    @pytest.fixture
    def resolver(self, gateway: FakeGateway) -> BadgeResolver:
        return BadgeResolver(gateway, BadgeConfig(source=BadgeSource.PROFILE_BADGES))

    async def test_list_order_preserved(
        self,
        resolver: BadgeResolver,
        gateway: FakeGateway,
        events: EventFactory,
        subject_keys: Keys,
        issuer_keys: Keys,
        subject_pubkey: str,
    ) -> None:
        pubkey = issuer_keys.public_key().to_hex()
        identifiers = ["gamma", "alpha", "beta"]
        gateway.add(
            events.badge_list(subject_keys, [f"30009:{pubkey}:{i}" for i in identifiers]),
            *(events.definition(issuer_keys, i, name=i.title()) for i in identifiers),
        )

        badges = await resolver.resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["Gamma", "Alpha", "Beta"]
        assert gateway.calls_for("awards") == []
        assert len(gateway.calls_for("profile_badges")) == 1

    async def test_newest_verified_list(
        self,
        resolver: BadgeResolver,
        gateway: FakeGateway,
        events: EventFactory,
        subject_keys: Keys,
        issuer_keys: Keys,
        subject_pubkey: str,
    ) -> None:
        pubkey = issuer_keys.public_key().to_hex()
        old = events.badge_list(subject_keys, [f"30009:{pubkey}:old"], created_at=100)
        forged = events.tampered(
            events.badge_list(subject_keys, [f"30009:{pubkey}:forged"], created_at=300),
            signature_from=old,
        )
        new = events.badge_list(subject_keys, [f"30009:{pubkey}:new"], created_at=200)
        gateway.add(
            old,
            forged,
            new,
            events.definition(issuer_keys, "old", name="Old"),
            events.definition(issuer_keys, "new", name="New"),
            events.definition(issuer_keys, "forged", name="Forged"),
        )

        badges = await resolver.resolve(PlainKey(subject_pubkey))

        assert [b.name for b in badges] == ["New"]

    async def test_no_list(self, resolver: BadgeResolver, subject_pubkey: str) -> None:
        assert await resolver.resolve(PlainKey(subject_pubkey)) == []


class TestFailures:
    async def test_gateway_error_absorbed(
        self, gateway: FakeGateway, subject_pubkey: str
    ) -> None:
        gateway.errors["awards"] = RuntimeError("relay exploded")
        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []

    async def test_definition_error_absorbed(
        self, gateway: FakeGateway, events: EventFactory, issuer_keys: Keys, subject_pubkey: str
    ) -> None:
        _award_with_definition(gateway, events, issuer_keys, subject_pubkey, "x", 100)
        gateway.errors["definition"] = RuntimeError("boom")
        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []

    async def test_awards_timeout_yields_empty(
        self,
        make_gateway: Callable[..., FakeGateway],
        events: EventFactory,
        issuer_keys: Keys,
        subject_pubkey: str,
    ) -> None:
        gateway = make_gateway(awards=0.05)
        _award_with_definition(gateway, events, issuer_keys, subject_pubkey, "x", 100)
        gateway.delays["awards"] = 5.0
        assert await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey)) == []

    async def test_cancellation_propagates(
        self, gateway: FakeGateway, subject_pubkey: str
    ) -> None:
        gateway.errors["awards"] = asyncio.CancelledError()
        with pytest.raises(asyncio.CancelledError):
            await BadgeResolver(gateway).resolve(PlainKey(subject_pubkey))
