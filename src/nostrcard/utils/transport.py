"""Nostr client transport helpers.

Thin factory functions around ``nostr_sdk`` used by
[RelayGateway][nostrcard.core.gateway.RelayGateway]. Clients created here
are read-only (no signer) and are meant to live for exactly one query.

See Also:
    [nostrcard.models.relay.Relay][nostrcard.models.relay.Relay]: Validates
        and normalizes addresses before they reach this module.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from nostr_sdk import Client, ClientBuilder, NostrSdkError, RelayUrl


if TYPE_CHECKING:
    from collections.abc import Iterable


logger = logging.getLogger(__name__)


def create_client() -> Client:
    """Create a read-only Nostr client with no relays attached.

    Returns:
        A fresh ``Client``; call ``add_relay()`` and ``connect()`` before use,
        and ``shutdown()`` when done.
    """
    return ClientBuilder().build()


def parse_relay_urls(urls: Iterable[str]) -> list[RelayUrl]:
    """Convert normalized relay URL strings into ``nostr_sdk.RelayUrl`` objects.

    URLs the SDK refuses are logged at DEBUG and skipped.
    """
    parsed: list[RelayUrl] = []
    for url in urls:
        try:
            parsed.append(RelayUrl.parse(url))
        except NostrSdkError as e:
            logger.debug("relay_url_rejected url=%s error=%s", url, e)
    return parsed
