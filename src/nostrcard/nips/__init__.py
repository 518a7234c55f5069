"""Nostr Implementation Possibilities: protocol rules used by the resolvers.

The NIPs layer sits between [nostrcard.core][nostrcard.core] and
[nostrcard.services][nostrcard.services]. Unlike the services it performs no
I/O: it builds filters, verifies and orders events, decodes identifiers and
parses badge tags.

Attributes:
    decode_identifier: NIP-19 ``npub`` / ``nprofile`` decoder.
    verify_event: NIP-01 id and signature check.
    newest_event: Newest-first selection with the id tie-break.
    metadata_filter: Kind-0 filter for one author.
    award_filter, profile_badges_filter, definition_filter: NIP-58 filters.
    rank_awards, award_reference, profile_badge_references,
        matches_reference, parse_definition: NIP-58 award and definition
        handling.
"""

from .nip01 import event_sort_key, metadata_filter, newest_event, sort_events, verify_event
from .nip19 import decode_identifier
from .nip58 import (
    PROFILE_BADGES_IDENTIFIER,
    award_filter,
    award_reference,
    definition_filter,
    is_award_for,
    matches_reference,
    parse_definition,
    profile_badge_references,
    profile_badges_filter,
    rank_awards,
)


__all__ = [
    "PROFILE_BADGES_IDENTIFIER",
    "award_filter",
    "award_reference",
    "decode_identifier",
    "definition_filter",
    "event_sort_key",
    "is_award_for",
    "matches_reference",
    "metadata_filter",
    "newest_event",
    "parse_definition",
    "profile_badge_references",
    "profile_badges_filter",
    "rank_awards",
    "sort_events",
    "verify_event",
]
