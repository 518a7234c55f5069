"""
Immutable Nostr event wrapper.

Wraps ``nostr_sdk.Event`` in a frozen dataclass that transparently delegates
attribute access to the underlying SDK object while exposing the event's
fields as plain Python values via
[fields][nostrcard.models.event.Event.fields] and tag lookups used by the
resolvers.

Events come from untrusted relays. Wrapping one does **not** verify it;
see [verify_event()][nostrcard.nips.nip01.verify_event].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NamedTuple

from nostr_sdk import Event as NostrEvent

from ._validation import validate_instance


class EventFields(NamedTuple):
    """Plain-value view of an event.

    Attributes:
        id: Event ID as 64-char hex (SHA-256 of the serialized event).
        pubkey: Author public key as 64-char hex.
        created_at: Unix timestamp of event creation.
        kind: Integer event kind.
        tags: Tags as a tuple of string tuples, in event order.
        content: Raw event content string.
        sig: Schnorr signature as 128-char hex.
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...]
    content: str
    sig: str


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event with plain-value accessors.

    All attribute access not defined here is delegated to the inner
    ``nostr_sdk.Event`` via ``__getattr__``, so SDK methods like
    ``verify()`` and ``as_json()`` work directly.

    Args:
        _nostr_event: The underlying ``nostr_sdk.Event`` instance.

    Raises:
        TypeError: If the argument is not a ``nostr_sdk.Event``.
        ValueError: If content or tags contain null bytes.

    Examples:
        ```python
        event = Event(NostrEvent.from_json(raw))
        event.fields.kind                 # 8
        event.first_tag("a")              # ('a', '30009:abc...:bravery')
        event.last_tag_value("name")      # 'Brave'
        ```
    """

    _nostr_event: NostrEvent
    _fields: EventFields = field(
        default=None,
        init=False,
        repr=False,
        compare=False,
        hash=False,  # type: ignore[assignment]
    )

    def __post_init__(self) -> None:
        validate_instance(self._nostr_event, NostrEvent, "_nostr_event")
        fields = self._compute_fields()

        if "\x00" in fields.content:
            raise ValueError(f"Event {fields.id[:16]}... content contains null bytes")
        for tag in fields.tags:
            if any("\x00" in value for value in tag):
                raise ValueError(f"Event {fields.id[:16]}... tags contain null bytes")

        object.__setattr__(self, "_fields", fields)

    def __getattr__(self, name: str) -> Any:
        """Delegate attribute access to the wrapped NostrEvent."""
        try:
            return getattr(self._nostr_event, name)
        except AttributeError:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            ) from None

    def _compute_fields(self) -> EventFields:
        inner = self._nostr_event
        return EventFields(
            id=inner.id().to_hex(),
            pubkey=inner.author().to_hex(),
            created_at=inner.created_at().as_secs(),
            kind=inner.kind().as_u16(),
            tags=tuple(tuple(tag.as_vec()) for tag in inner.tags().to_vec()),
            content=inner.content(),
            sig=str(inner.signature()),
        )

    @property
    def fields(self) -> EventFields:
        """Cached [EventFields][nostrcard.models.event.EventFields] for this event."""
        return self._fields

    @property
    def nostr_event(self) -> NostrEvent:
        """The wrapped ``nostr_sdk.Event``."""
        return self._nostr_event

    def tag_values(self, name: str) -> list[tuple[str, ...]]:
        """Return every tag whose first element is *name*, in event order."""
        return [tag for tag in self._fields.tags if tag and tag[0] == name]

    def first_tag(self, name: str) -> tuple[str, ...] | None:
        """Return the first tag named *name*, or ``None``."""
        for tag in self._fields.tags:
            if tag and tag[0] == name:
                return tag
        return None

    def last_tag_value(self, name: str) -> str | None:
        """Return the value of the last *name* tag with a non-empty value.

        Tags without a value (``["name"]``) or with an empty one
        (``["name", ""]``) are skipped.
        """
        value = None
        for tag in self._fields.tags:
            if len(tag) > 1 and tag[0] == name and tag[1]:
                value = tag[1]
        return value
