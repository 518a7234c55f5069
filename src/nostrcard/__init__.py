r"""nostrcard -- Nostr profile cards with verified NIP-58 badges.

Given an ``npub`` or ``nprofile`` identifier, nostrcard queries untrusted
relays for the subject's newest kind-0 profile and up to five badges
(kind-8 award to kind-30009 definition), verifies every event, and renders
the result as a 650x200 SVG card.

Imports flow strictly downward:

```text
             services        resolvers, aggregator, HTTP api
            /    |    \
         nips  utils   |     NIP-01/19/58 rules, transport, http, svg
            \    |    /
              core           exceptions, logger, config, metrics, gateway
               |
             models          pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from nostrcard import Aggregator``) use lazy
    loading and resolve on first access. For lightweight usage import from
    the subpackages directly::

        from nostrcard.nips import decode_identifier
        from nostrcard.core import RelayGateway
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("nostrcard")

__all__ = [
    "AddressReference",
    "Aggregation",
    "Aggregator",
    "Api",
    "ApiConfig",
    "BadgeConfig",
    "BadgeResolver",
    "Event",
    "GatewayConfig",
    "KeyWithRelayHints",
    "Logger",
    "PlainKey",
    "ProfileRecord",
    "ProfileResolver",
    "Relay",
    "RelayGateway",
    "ResolvedBadge",
    "decode_identifier",
    "render_card",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AddressReference": ("nostrcard.models", "AddressReference"),
    "Event": ("nostrcard.models", "Event"),
    "KeyWithRelayHints": ("nostrcard.models", "KeyWithRelayHints"),
    "PlainKey": ("nostrcard.models", "PlainKey"),
    "ProfileRecord": ("nostrcard.models", "ProfileRecord"),
    "Relay": ("nostrcard.models", "Relay"),
    "ResolvedBadge": ("nostrcard.models", "ResolvedBadge"),
    "GatewayConfig": ("nostrcard.core", "GatewayConfig"),
    "Logger": ("nostrcard.core", "Logger"),
    "RelayGateway": ("nostrcard.core", "RelayGateway"),
    "decode_identifier": ("nostrcard.nips", "decode_identifier"),
    "render_card": ("nostrcard.utils.svg", "render_card"),
    "Aggregation": ("nostrcard.services", "Aggregation"),
    "Aggregator": ("nostrcard.services", "Aggregator"),
    "BadgeConfig": ("nostrcard.services", "BadgeConfig"),
    "BadgeResolver": ("nostrcard.services", "BadgeResolver"),
    "ProfileResolver": ("nostrcard.services", "ProfileResolver"),
    "Api": ("nostrcard.services.api", "Api"),
    "ApiConfig": ("nostrcard.services.api", "ApiConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module 'nostrcard' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
