"""
NIP-58 badges: filters, award ranking and definition parsing.

A badge reaches a profile card through a two-hop reference graph:

```text
kind 8 award  --(first "a" tag)-->  kind 30009 definition
  p = subject                        d = identifier, author = issuer
```

or, when the subject curates the list themselves, through the ``a`` tags of
their kind-30008 ``profile_badges`` list. Every function here is pure; the
I/O is done by [BadgeResolver][nostrcard.services.badges.BadgeResolver]
through the gateway.

Tag rule:
    When a definition carries the same display tag more than once, the
    **last** occurrence with a non-empty value wins. Empty values never
    override earlier ones.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nostr_sdk import Alphabet, Filter, Kind, PublicKey, SingleLetterTag

from nostrcard.models import AddressReference, EventKind, ResolvedBadge

from .nip01 import sort_events


if TYPE_CHECKING:
    from collections.abc import Iterable

    from nostrcard.models import Event


logger = logging.getLogger(__name__)

PROFILE_BADGES_IDENTIFIER = "profile_badges"

_P_TAG = SingleLetterTag.lowercase(Alphabet.P)
_D_TAG = SingleLetterTag.lowercase(Alphabet.D)


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def award_filter(public_key: str, limit: int) -> Filter:
    """Kind-8 awards naming *public_key* as recipient."""
    return Filter().kind(Kind(EventKind.BADGE_AWARD)).custom_tag(_P_TAG, public_key).limit(limit)


def profile_badges_filter(public_key: str) -> Filter:
    """The newest kind-30008 ``profile_badges`` list authored by *public_key*."""
    return (
        Filter()
        .kind(Kind(EventKind.PROFILE_BADGES))
        .author(PublicKey.parse(public_key))
        .custom_tag(_D_TAG, PROFILE_BADGES_IDENTIFIER)
        .limit(1)
    )


def definition_filter(reference: AddressReference) -> Filter:
    """The addressed kind-30009 definition (kind, author and ``d`` tag)."""
    return (
        Filter()
        .kind(Kind(reference.kind))
        .author(PublicKey.parse(reference.author))
        .custom_tag(_D_TAG, reference.identifier)
        .limit(1)
    )


# ---------------------------------------------------------------------------
# Awards
# ---------------------------------------------------------------------------


def is_award_for(event: Event, public_key: str) -> bool:
    """Whether *event* is a kind-8 award with a ``p`` tag for *public_key*."""
    if event.fields.kind != EventKind.BADGE_AWARD:
        return False
    return any(len(tag) > 1 and tag[1] == public_key for tag in event.tag_values("p"))


def rank_awards(events: Iterable[Event], limit: int) -> list[Event]:
    """Deduplicate by id, order newest first (id ascending on ties), keep *limit*."""
    unique = {event.fields.id: event for event in events}
    return sort_events(unique.values())[:limit]


def award_reference(event: Event) -> AddressReference | None:
    """Parse the first ``a`` tag of an award.

    Returns:
        The reference, or ``None`` when the award has no ``a`` tag, the value
        is malformed, or it does not address a kind-30009 definition.
    """
    tag = event.first_tag("a")
    if tag is None or len(tag) < 2:
        return None
    reference = AddressReference.parse(tag[1])
    if reference is None or not reference.is_badge_definition:
        logger.debug("award_rejected event_id=%s reference=%r", event.fields.id, tag[1])
        return None
    return reference


def profile_badge_references(event: Event, limit: int) -> list[AddressReference]:
    """References of a kind-30008 list, in list order.

    The first *limit* ``a`` tags are taken, then malformed or non-30009
    references among them are dropped, so the result can be shorter than
    *limit* even when the list is longer.
    """
    references: list[AddressReference] = []
    for tag in event.tag_values("a")[:limit]:
        reference = AddressReference.parse(tag[1]) if len(tag) > 1 else None
        if reference is not None and reference.is_badge_definition:
            references.append(reference)
    return references


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


def matches_reference(event: Event, reference: AddressReference) -> bool:
    """Whether *event* is the event addressed by *reference*.

    Kind and author must agree and the event must carry a ``d`` tag equal to
    the reference identifier. A missing ``d`` tag counts as the empty
    identifier.
    """
    if event.fields.kind != reference.kind or event.fields.pubkey != reference.author:
        return False
    d_tag = event.first_tag("d")
    identifier = d_tag[1] if d_tag is not None and len(d_tag) > 1 else ""
    return identifier == reference.identifier


def parse_definition(event: Event) -> ResolvedBadge:
    """Extract display metadata from a kind-30009 definition.

    A definition with none of ``name``, ``description``, ``image`` or
    ``thumb`` still yields a (fully empty) badge.
    """
    return ResolvedBadge(
        name=event.last_tag_value("name"),
        description=event.last_tag_value("description"),
        image=event.last_tag_value("image"),
        thumb=event.last_tag_value("thumb"),
    )
