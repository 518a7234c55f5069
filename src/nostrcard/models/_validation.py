"""Shared validation helpers for frozen dataclass models.

Private module -- not part of the public API. Used by ``__post_init__``
methods in sibling model modules to enforce runtime type constraints and
null-byte safety.
"""

from __future__ import annotations

import re
from typing import Any


_HEX_KEY = re.compile(r"[0-9a-f]{64}")


def validate_instance(value: Any, expected: type, name: str) -> None:
    """Raise ``TypeError`` if *value* is not an instance of *expected*."""
    if not isinstance(value, expected):
        article = "an" if expected.__name__[0] in "AEIOUaeiou" else "a"
        raise TypeError(f"{name} must be {article} {expected.__name__}, got {type(value).__name__}")


def validate_str_no_null(value: Any, name: str) -> None:
    """Raise if *value* is not a ``str`` or contains null bytes."""
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a str, got {type(value).__name__}")
    if "\x00" in value:
        raise ValueError(f"{name} contains null bytes")


def validate_optional_str(value: Any, name: str) -> None:
    """Raise if *value* is neither ``None`` nor a null-free ``str``."""
    if value is not None:
        validate_str_no_null(value, name)


def is_hex_key(value: Any) -> bool:
    """Return True if *value* is a 64-character lowercase hex string."""
    return isinstance(value, str) and _HEX_KEY.fullmatch(value) is not None


def validate_hex_key(value: Any, name: str) -> None:
    """Raise ``ValueError`` unless *value* is a 64-char lowercase hex key."""
    validate_str_no_null(value, name)
    if not is_hex_key(value):
        raise ValueError(f"{name} must be 64 lowercase hex characters")
