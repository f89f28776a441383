"""Keyed in-memory cache with absolute expiry timestamps."""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

_ValueT = TypeVar("_ValueT")


@dataclass(frozen=True)
class CacheEntry(Generic[_ValueT]):
    value: _ValueT
    expires_at: float


class ExpiringCache(Generic[_ValueT]):
    """Map from key to immutable value with a per-entry expiry.

    Staleness is checked lazily on read; there is no background eviction.
    Concurrent misses for one key may both refresh it, last write wins.
    """

    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[_ValueT]] = {}

    def get(self, key: Hashable) -> _ValueT | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: _ValueT) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl_seconds)

    def invalidate(self, key: Hashable) -> bool:
        """Evict one key. Returns True when an entry was present."""
        return self._entries.pop(key, None) is not None

    def invalidate_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Evict every key matching the predicate, returning the count."""
        doomed = [key for key in self._entries if predicate(key)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
