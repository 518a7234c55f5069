"""In-process cache of rendered cards.

Keyed by the subject's public key, so an ``npub`` and an ``nprofile`` for
the same person share one entry. Entries expire after ``ttl`` seconds and
the least recently used entry is evicted once ``max_entries`` is reached.

The cache is consulted by the [Api][nostrcard.services.api.Api] only; the
resolvers and the aggregator never see it.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import TYPE_CHECKING, NamedTuple


if TYPE_CHECKING:
    from collections.abc import Callable


class _Entry(NamedTuple):
    value: str
    expires_at: float


class RenderCache:
    """TTL + LRU mapping of public key to rendered SVG.

    A ``ttl`` of zero disables the cache: ``get`` always misses and ``set``
    stores nothing.
    """

    def __init__(
        self,
        ttl: float,
        max_entries: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, key: str) -> str | None:
        """Return the cached value for *key*, or ``None`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return entry.value

    def set(self, key: str, value: str) -> None:
        """Store *value* under *key*, evicting the least recently used entry if full."""
        if not self.enabled:
            return
        self._entries[key] = _Entry(value, self._clock() + self._ttl)
        self._entries.move_to_end(key)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
