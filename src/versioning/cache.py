"""TTL cache for registry package documents."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL."""

    value: T
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class TTLCache:
    """Small in-memory key/value cache with per-entry expiry.

    Owned by whoever creates it; resolvers only use one when handed one.
    """

    def __init__(self, default_ttl: int = 300, max_entries: int = 1000):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            max_entries: Upper bound before the oldest entries are evicted.
        """
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._cache: Dict[str, CacheEntry[Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._cache[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        if len(self._cache) >= self._max_entries and key not in self._cache:
            self._evict()
        ttl = self._default_ttl if ttl is None else ttl
        self._cache[key] = CacheEntry(value=value, expires_at=time.time() + ttl)

    def clear(self) -> None:
        """Drop every entry."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def _evict(self) -> None:
        now = time.time()
        expired = [k for k, e in self._cache.items() if e.expires_at < now]
        for key in expired:
            del self._cache[key]
        if len(self._cache) >= self._max_entries:
            oldest = min(self._cache, key=lambda k: self._cache[k].created_at)
            del self._cache[oldest]
