"""
Badge resolution: awards to definitions, bounded and ordered.

[BadgeResolver.resolve()][nostrcard.services.badges.BadgeResolver.resolve]
walks the NIP-58 reference graph for one subject:

1. Fetch kind-8 awards naming the subject (``awards`` budget).
2. Drop unverified events and events that are not awards for the subject.
3. Rank newest first (id ascending on ties) and keep ``max_badges``.
4. Take each award's first ``a`` tag; drop malformed or non-30009 ones.
5. Resolve every reference concurrently, one query per reference with its
   own ``definition`` budget, so one slow relay set cannot hold up the
   others.
6. Keep verified definitions that match their reference (newest wins) and
   parse their display tags.
7. Emit badges in award order; unresolved references are simply omitted.

With ``source: profile_badges`` step 1-4 read the subject's own kind-30008
list instead, whose order is the subject's choice.

Relay trouble never reaches the caller: the resolver degrades to an empty
or shorter list. Only cancellation propagates.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from nostrcard.core.logger import Logger
from nostrcard.models import EventKind
from nostrcard.nips import (
    PROFILE_BADGES_IDENTIFIER,
    award_filter,
    award_reference,
    definition_filter,
    is_award_for,
    matches_reference,
    newest_event,
    parse_definition,
    profile_badge_references,
    profile_badges_filter,
    rank_awards,
    verify_event,
)


if TYPE_CHECKING:
    from nostrcard.core.gateway import RelayGateway
    from nostrcard.models import AddressReference, Event, ResolvedBadge, Subject


MAX_BADGES = 5


class BadgeSource(StrEnum):
    """Where badge references come from."""

    AWARDS = "awards"
    PROFILE_BADGES = "profile_badges"


class BadgeConfig(BaseModel):
    """Badge resolution settings.

    Attributes:
        source: ``awards`` (every award received) or ``profile_badges`` (the
            subject's curated kind-30008 list).
        award_limit: Relay-side ``limit`` of the award query.
        max_badges: Maximum badges per card.
    """

    source: BadgeSource = Field(default=BadgeSource.AWARDS)
    award_limit: int = Field(default=100, ge=1, le=1000)
    max_badges: int = Field(default=MAX_BADGES, ge=1, le=MAX_BADGES)


class BadgeResolver:
    """Resolves up to ``max_badges`` verified badges for a subject."""

    def __init__(self, gateway: RelayGateway, config: BadgeConfig | None = None) -> None:
        self._gateway = gateway
        self._config = config or BadgeConfig()
        self._logger = Logger("badges")

    @property
    def config(self) -> BadgeConfig:
        return self._config

    async def resolve(self, subject: Subject) -> list[ResolvedBadge]:
        """Resolve the subject's badges; never raises except on cancellation.

        Returns:
            Between zero and ``max_badges`` badges, in award (or list) order.
        """
        try:
            return await self._resolve(subject)
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            self._logger.error(
                "badge_resolution_failed",
                pubkey=subject.public_key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

    async def _resolve(self, subject: Subject) -> list[ResolvedBadge]:
        if self._config.source == BadgeSource.PROFILE_BADGES:
            references = await self._list_references(subject)
        else:
            references = await self._award_references(subject)

        if not references:
            return []

        relays = self._gateway.relays_for(subject, include_defaults=True)
        resolved = await asyncio.gather(
            *(self._resolve_definition(reference, relays) for reference in references)
        )
        badges = [badge for badge in resolved if badge is not None]

        self._logger.info(
            "badges_resolved",
            pubkey=subject.public_key,
            references=len(references),
            badges=len(badges),
        )
        return badges

    async def _award_references(self, subject: Subject) -> list[AddressReference]:
        """Steps 1-4: fetch, verify, rank and dereference the awards."""
        public_key = subject.public_key
        result = await self._gateway.query(
            self._gateway.relays_for(subject),
            award_filter(public_key, self._config.award_limit),
            self._gateway.timeouts.awards,
            stage="awards",
        )
        awards = [e for e in result.events if is_award_for(e, public_key) and verify_event(e)]
        ranked = rank_awards(awards, self._config.max_badges)

        self._logger.debug(
            "awards_fetched",
            pubkey=public_key,
            status=result.status,
            received=len(result.events),
            verified=len(awards),
        )

        references: list[AddressReference] = []
        for award in ranked:
            reference = award_reference(award)
            if reference is not None:
                references.append(reference)
        return references

    async def _list_references(self, subject: Subject) -> list[AddressReference]:
        """Steps 1-4 for the curated kind-30008 list."""
        public_key = subject.public_key
        result = await self._gateway.query(
            self._gateway.relays_for(subject),
            profile_badges_filter(public_key),
            self._gateway.timeouts.profile_badges,
            stage="profile_badges",
        )
        lists = [e for e in result.events if self._is_badge_list(e, public_key)]
        event = newest_event(lists)
        if event is None:
            self._logger.debug("profile_badges_missing", pubkey=public_key, status=result.status)
            return []
        return profile_badge_references(event, self._config.max_badges)

    async def _resolve_definition(
        self, reference: AddressReference, relays: tuple[str, ...]
    ) -> ResolvedBadge | None:
        """Steps 5-6 for one reference, under its own budget."""
        result = await self._gateway.query(
            relays,
            definition_filter(reference),
            self._gateway.timeouts.definition,
            stage="definition",
        )
        candidates = [
            e for e in result.events if matches_reference(e, reference) and verify_event(e)
        ]
        event = newest_event(candidates)
        if event is None:
            self._logger.debug("definition_missing", reference=str(reference), status=result.status)
            return None
        return parse_definition(event)

    @staticmethod
    def _is_badge_list(event: Event, public_key: str) -> bool:
        d_tag = event.first_tag("d")
        return (
            event.fields.kind == EventKind.PROFILE_BADGES
            and event.fields.pubkey == public_key
            and d_tag is not None
            and len(d_tag) > 1
            and d_tag[1] == PROFILE_BADGES_IDENTIFIER
            and verify_event(event)
        )
