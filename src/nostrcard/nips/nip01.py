"""
NIP-01 event verification, ordering and metadata filters.

Events arrive from untrusted relays and are only ever used after
[verify_event()][nostrcard.nips.nip01.verify_event] succeeds: the event id
is recomputed from the serialized fields and the Schnorr signature is
checked against the claimed author. Verification is pure and performs no
I/O.

All orderings in nostrcard use the same total order: ``created_at``
descending, ties broken by event id ascending.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nostr_sdk import Filter, Kind, PublicKey

from nostrcard.models import EventKind


if TYPE_CHECKING:
    from collections.abc import Iterable

    from nostrcard.models import Event


logger = logging.getLogger(__name__)


def verify_event(event: Event) -> bool:
    """Check an event's id hash and signature.

    Returns:
        ``True`` if both the id and the signature are valid. Any exception
        raised by the SDK counts as a failed verification.
    """
    try:
        return bool(event.nostr_event.verify())
    except Exception as e:  # nostr-sdk Rust FFI can raise arbitrary exception types
        logger.debug("verify_failed event_id=%s error=%s", event.fields.id, e)
        return False


def event_sort_key(event: Event) -> tuple[int, str]:
    """Key implementing ``created_at`` descending, id ascending."""
    return (-event.fields.created_at, event.fields.id)


def sort_events(events: Iterable[Event]) -> list[Event]:
    """Return *events* in newest-first order with the id tie-break."""
    return sorted(events, key=event_sort_key)


def newest_event(events: Iterable[Event]) -> Event | None:
    """Return the first event under the newest-first order, or ``None``."""
    return min(events, key=event_sort_key, default=None)


def metadata_filter(public_key: str) -> Filter:
    """Filter for the newest kind-0 metadata event authored by *public_key*."""
    return (
        Filter()
        .kind(Kind(EventKind.SET_METADATA))
        .author(PublicKey.parse(public_key))
        .limit(1)
    )
