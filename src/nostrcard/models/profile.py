"""
Profile metadata parsed from a kind-0 event.

Every field is optional and absence is distinct from the empty string: a
profile whose content is ``{"name": ""}`` has ``name == ""`` while one whose
content is ``{}`` has ``name is None``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, ClassVar

from ._validation import validate_optional_str


@dataclass(frozen=True, slots=True)
class ProfileRecord:
    """Display metadata of a Nostr user (NIP-01 kind 0, NIP-24 extras).

    Attributes:
        name: Short username.
        display_name: Richer display name.
        about: Free-form biography.
        picture: Avatar image URL.
        banner: Banner image URL.
        nip05: NIP-05 internet identifier (``user@domain``).
        lud16: Lightning address.
        website: Personal web page URL.
    """

    name: str | None = None
    display_name: str | None = None
    about: str | None = None
    picture: str | None = None
    banner: str | None = None
    nip05: str | None = None
    lud16: str | None = None
    website: str | None = None

    _FIELDS: ClassVar[tuple[str, ...]] = (
        "name",
        "display_name",
        "about",
        "picture",
        "banner",
        "nip05",
        "lud16",
        "website",
    )

    def __post_init__(self) -> None:
        for name in self._FIELDS:
            validate_optional_str(getattr(self, name), name)

    @classmethod
    def from_content(cls, content: str) -> ProfileRecord:
        """Parse kind-0 event content.

        Unknown keys are ignored, and so are known keys whose value is not a
        string. ``displayName`` (a widespread legacy spelling) is used when
        ``display_name`` is absent. Null bytes are stripped from values.

        Args:
            content: The raw ``content`` field of a kind-0 event.

        Returns:
            The parsed record.

        Raises:
            ValueError: If *content* is not valid JSON or does not decode to
                a JSON object.
        """
        try:
            data: Any = json.loads(content)
        except (json.JSONDecodeError, TypeError) as e:
            raise ValueError(f"profile content is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"profile content must be a JSON object, got {type(data).__name__}")

        if not isinstance(data.get("display_name"), str) and isinstance(
            data.get("displayName"), str
        ):
            data["display_name"] = data["displayName"]

        values = {
            name: data[name].replace("\x00", "")
            for name in cls._FIELDS
            if isinstance(data.get(name), str)
        }
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        """Return the present fields as a dict (absent fields omitted)."""
        return {k: v for k, v in asdict(self).items() if v is not None}
