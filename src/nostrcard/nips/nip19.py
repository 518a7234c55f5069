"""
NIP-19 identifier decoding.

Turns a user-supplied ``npub`` or ``nprofile`` string into a
[Subject][nostrcard.models.subject.Subject]. Only these two entity types are
accepted; hex keys, secret keys and event or address pointers are rejected
because a card is always about a person.

Decoding is pure and deterministic: no network activity happens here, and
the same input always yields the same subject or the same error.

Examples:
    ```python
    decode_identifier("npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg")
    # PlainKey(public_key='7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e')

    decode_identifier("nostr:nprofile1qqs...")
    # KeyWithRelayHints(public_key='3bf0...', relay_hints=('wss://r.x.com', ...))
    ```
"""

from __future__ import annotations

from nostr_sdk import Nip19Profile, NostrSdkError, PublicKey

from nostrcard.core.exceptions import InvalidIdentifierError
from nostrcard.models import KeyWithRelayHints, PlainKey, Subject


NPUB_PREFIX = "npub1"
NPROFILE_PREFIX = "nprofile1"
URI_SCHEME = "nostr:"


def _normalize(value: str) -> str:
    candidate = value.strip()
    if candidate[: len(URI_SCHEME)].lower() == URI_SCHEME:
        candidate = candidate[len(URI_SCHEME) :]
    # Bech32 is case-insensitive only when the whole string has one case.
    if candidate.isupper():
        candidate = candidate.lower()
    return candidate


def decode_identifier(value: str) -> Subject:
    """Decode an ``npub`` or ``nprofile`` identifier.

    Surrounding whitespace and a ``nostr:`` URI prefix are tolerated.

    Args:
        value: The raw identifier supplied by the caller.

    Returns:
        [PlainKey][nostrcard.models.subject.PlainKey] for an ``npub``,
        [KeyWithRelayHints][nostrcard.models.subject.KeyWithRelayHints] for an
        ``nprofile`` (hints in encoded order, possibly empty).

    Raises:
        InvalidIdentifierError: If *value* is not a well-formed ``npub`` or
            ``nprofile``.
    """
    if not isinstance(value, str):
        raise InvalidIdentifierError(f"identifier must be a str, got {type(value).__name__}")

    candidate = _normalize(value)
    if not candidate or "\x00" in candidate:
        raise InvalidIdentifierError("identifier is empty")

    try:
        if candidate.startswith(NPUB_PREFIX):
            public_key = PublicKey.parse(candidate)
            return PlainKey(public_key.to_hex())
        if candidate.startswith(NPROFILE_PREFIX):
            profile = Nip19Profile.from_bech32(candidate)
            return KeyWithRelayHints(
                public_key=profile.public_key().to_hex(),
                relay_hints=tuple(str(relay) for relay in profile.relays()),
            )
    except (NostrSdkError, ValueError) as e:
        raise InvalidIdentifierError(f"malformed identifier: {e}") from e

    raise InvalidIdentifierError("identifier must be an npub or nprofile")
