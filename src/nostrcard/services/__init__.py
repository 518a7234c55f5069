"""Services layer: resolvers, the aggregation entry point and the HTTP API.

Attributes:
    ProfileResolver: Newest verified kind-0 profile of a subject.
    BadgeResolver: Up to five verified NIP-58 badges of a subject.
    Aggregator: Decodes an identifier and runs both resolvers concurrently.
    Api: FastAPI front door serving rendered cards (import from
        ``nostrcard.services.api``).
"""

from .aggregator import Aggregation, Aggregator
from .badges import BadgeConfig, BadgeResolver, BadgeSource
from .profile import ProfileResolver


__all__ = [
    "Aggregation",
    "Aggregator",
    "BadgeConfig",
    "BadgeResolver",
    "BadgeSource",
    "ProfileResolver",
]
