"""
Decoded identifier shapes.

A request is always about exactly one public key. The identifier a caller
supplies comes in one of two shapes, modelled as a closed union:

* [PlainKey][nostrcard.models.subject.PlainKey] -- a bare public key
  (``npub``).
* [KeyWithRelayHints][nostrcard.models.subject.KeyWithRelayHints] -- a
  public key plus relay addresses where the key's events are likely to be
  found (``nprofile``).

Both expose ``public_key`` and ``relay_hints`` so consumers that only need
the common projection can treat them uniformly.

See Also:
    [decode_identifier()][nostrcard.nips.nip19.decode_identifier]: The only
        producer of these values.
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import validate_hex_key, validate_str_no_null


@dataclass(frozen=True, slots=True)
class PlainKey:
    """A bare 32-byte public key in lowercase hex."""

    public_key: str

    def __post_init__(self) -> None:
        validate_hex_key(self.public_key, "public_key")

    @property
    def relay_hints(self) -> None:
        """Always ``None``: a bare key carries no relay hints."""
        return None


@dataclass(frozen=True, slots=True)
class KeyWithRelayHints:
    """A public key with an ordered, possibly empty, tuple of relay hints.

    Hints are kept exactly as decoded; validation and normalization happen
    in the gateway, where invalid hints are dropped.
    """

    public_key: str
    relay_hints: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        validate_hex_key(self.public_key, "public_key")
        if not isinstance(self.relay_hints, tuple):
            object.__setattr__(self, "relay_hints", tuple(self.relay_hints))
        for hint in self.relay_hints:
            validate_str_no_null(hint, "relay_hints")


Subject = PlainKey | KeyWithRelayHints
