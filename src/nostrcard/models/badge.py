"""
NIP-58 badge models.

[AddressReference][nostrcard.models.badge.AddressReference] is the parsed
form of the ``a`` tag that points from an award (or a profile badge list) to
a badge definition. [ResolvedBadge][nostrcard.models.badge.ResolvedBadge] is
the externally visible result of a resolved definition.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from ._validation import is_hex_key, validate_hex_key, validate_optional_str
from .constants import EVENT_KIND_MAX, EventKind


@dataclass(frozen=True, slots=True)
class AddressReference:
    """A ``kind:author:d`` address of a parameterized replaceable event.

    Attributes:
        kind: Event kind of the addressed event.
        author: Issuer public key as 64-char lowercase hex.
        identifier: The ``d`` tag value (may be empty, may contain colons).
    """

    kind: int
    author: str
    identifier: str

    def __post_init__(self) -> None:
        if isinstance(self.kind, bool) or not isinstance(self.kind, int):
            raise TypeError(f"kind must be an int, got {type(self.kind).__name__}")
        if not 0 <= self.kind <= EVENT_KIND_MAX:
            raise ValueError(f"kind must be between 0 and {EVENT_KIND_MAX}")
        validate_hex_key(self.author, "author")
        validate_optional_str(self.identifier, "identifier")

    @classmethod
    def parse(cls, value: str) -> AddressReference | None:
        """Parse a ``kind:author:d`` string.

        The string is split on the first two colons only, so identifiers
        containing colons survive. The author is lowercased before
        validation.

        Returns:
            The parsed reference, or ``None`` if *value* is malformed.
            Malformed references are expected relay noise and are not an
            error.
        """
        if not isinstance(value, str) or "\x00" in value:
            return None
        parts = value.split(":", 2)
        if len(parts) != 3:
            return None
        kind_str, author, identifier = parts
        if not kind_str.isdigit():
            return None
        kind = int(kind_str)
        author = author.lower()
        if kind > EVENT_KIND_MAX or not is_hex_key(author):
            return None
        return cls(kind=kind, author=author, identifier=identifier)

    @property
    def is_badge_definition(self) -> bool:
        """Whether this reference addresses a kind-30009 badge definition."""
        return self.kind == EventKind.BADGE_DEFINITION

    def __str__(self) -> str:
        return f"{self.kind}:{self.author}:{self.identifier}"


@dataclass(frozen=True, slots=True)
class ResolvedBadge:
    """Display metadata of a resolved badge definition.

    A definition carrying none of the fields still resolves to a badge with
    all attributes ``None``.

    Attributes:
        name: Short badge name.
        description: Longer description.
        image: Full-size image URL.
        thumb: Thumbnail image URL.
    """

    name: str | None = None
    description: str | None = None
    image: str | None = None
    thumb: str | None = None

    def __post_init__(self) -> None:
        for name in ("name", "description", "image", "thumb"):
            validate_optional_str(getattr(self, name), name)

    @property
    def display_image(self) -> str | None:
        """The image to show on a card: the thumbnail when present."""
        return self.thumb or self.image

    def to_dict(self) -> dict[str, str]:
        """Return the present fields as a dict (absent fields omitted)."""
        return {k: v for k, v in asdict(self).items() if v is not None}
