"""
In-memory TTL cache for search results.

Eviction is by expiry on every access and, once the capacity is exceeded,
by insertion order (oldest first). Reads do not refresh an entry's position.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

CacheKey = Tuple[str, int, str]


@dataclass
class CacheEntry:
    expires_at: float
    value: Any


def make_cache_key(query: str, limit: int, supplier: Optional[str] = None) -> CacheKey:
    """Normalized key: (supplier or "any", limit, lowercased trimmed query)."""
    return ((supplier or "any").lower(), int(limit), query.strip().lower())


class ResultCache:
    """Bounded TTL mapping. A ttl_ms of zero or less disables caching."""

    def __init__(
        self,
        ttl_ms: int = 60_000,
        max_size: int = 500,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_ms = ttl_ms
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[Any, CacheEntry] = {}

    @property
    def enabled(self) -> bool:
        return self.ttl_ms > 0

    def __len__(self) -> int:
        return len(self._entries)

    def prune(self):
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]

    def get(self, key) -> Optional[Any]:
        self.prune()
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set(self, key, value: Any):
        if not self.enabled:
            return

        # Overwriting keeps the key at its original insertion position
        self._entries[key] = CacheEntry(expires_at=self._clock() + self.ttl_ms / 1000.0, value=value)

        self.prune()
        while len(self._entries) > self.max_size:
            oldest = next(iter(self._entries))
            del self._entries[oldest]

    def clear(self):
        self._entries.clear()
