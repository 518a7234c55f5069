"""Shared constants for the models layer.

Defines enumerations used across model, NIP and service modules. Placing
them here avoids circular dependencies between the layers.

See Also:
    [nostrcard.models.relay][]: Uses [NetworkType][nostrcard.models.constants.NetworkType]
        to classify relay URLs during construction.
    [nostrcard.nips.nip58][]: Uses [EventKind][nostrcard.models.constants.EventKind]
        to build badge filters.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class NetworkType(StrEnum):
    """Network type enum for relay classification.

    Only ``CLEARNET`` relays are ever connected to. Overlay networks are
    detected so they can be rejected with a precise error: the gateway
    does not route through SOCKS proxies.

    Attributes:
        CLEARNET: Public internet relay using ``wss://`` (TLS required).
        TOR: Tor hidden service identified by a ``.onion`` hostname.
        I2P: I2P eepsite identified by a ``.i2p`` hostname.
        LOKI: Lokinet service identified by a ``.loki`` hostname.
        LOCAL: Private or reserved IP address.
        UNKNOWN: Hostname that could not be classified.
    """

    CLEARNET = "clearnet"
    TOR = "tor"
    I2P = "i2p"
    LOKI = "loki"
    LOCAL = "local"
    UNKNOWN = "unknown"


class ServiceName(StrEnum):
    """Canonical service identifiers used in logging and metrics.

    Attributes:
        API: HTTP front door serving rendered profile cards
            ([Api][nostrcard.services.api.Api]).
        CARD: One-shot command line rendering (``python -m nostrcard card``).
    """

    API = "api"
    CARD = "card"


class EventKind(IntEnum):
    """Nostr event kinds consumed by the resolvers.

    Attributes:
        SET_METADATA: Kind 0 -- user profile metadata (NIP-01).
        BADGE_AWARD: Kind 8 -- badge award naming recipients with ``p`` tags
            and the definition with an ``a`` tag (NIP-58).
        PROFILE_BADGES: Kind 30008 -- the user's curated list of accepted
            badges, ``d`` tag ``profile_badges`` (NIP-58).
        BADGE_DEFINITION: Kind 30009 -- badge display metadata, addressed by
            issuer and ``d`` tag (NIP-58).
    """

    SET_METADATA = 0
    BADGE_AWARD = 8
    PROFILE_BADGES = 30_008
    BADGE_DEFINITION = 30_009


EVENT_KIND_MAX = 65_535
