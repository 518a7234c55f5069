"""Pure frozen dataclasses with zero I/O for identifiers, events, profiles and badges.

The models layer is the foundation of the package. It depends only on the
standard library, ``rfc3986`` for URL validation and ``nostr_sdk`` types for
the event wrapper. Every model uses ``@dataclass(frozen=True, slots=True)``
and validates in ``__post_init__`` so invalid instances never escape the
constructor.

Attributes:
    Relay: Validated clearnet relay URL. Rejects local IPs and overlay hosts.
    PlainKey: Decoded ``npub`` identifier.
    KeyWithRelayHints: Decoded ``nprofile`` identifier.
    Subject: Union of the two identifier shapes.
    Event: Immutable wrapper around ``nostr_sdk.Event`` with tag helpers.
    ProfileRecord: Optional-field profile parsed from kind-0 content.
    AddressReference: Parsed ``kind:author:d`` badge definition address.
    ResolvedBadge: Display metadata of a resolved badge definition.
"""

from .badge import AddressReference, ResolvedBadge
from .constants import EVENT_KIND_MAX, EventKind, NetworkType, ServiceName
from .event import Event, EventFields
from .profile import ProfileRecord
from .relay import Relay, is_public_host
from .subject import KeyWithRelayHints, PlainKey, Subject


__all__ = [
    "EVENT_KIND_MAX",
    "AddressReference",
    "Event",
    "EventFields",
    "EventKind",
    "KeyWithRelayHints",
    "NetworkType",
    "PlainKey",
    "ProfileRecord",
    "Relay",
    "ResolvedBadge",
    "ServiceName",
    "Subject",
    "is_public_host",
]
