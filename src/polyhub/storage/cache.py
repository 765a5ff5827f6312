"""Single-slot in-process cache for the merged market list."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from polyhub.models.market import UnifiedMarket


@dataclass(frozen=True)
class CacheKey:
    """Request shape that produced a cached list.

    The cached list is the canonical merged set, independent of the filter
    `kind`; `target` is the aggregation target count it was built for.
    """

    kind: str
    target: int

    def covers(self, other: CacheKey) -> bool:
        """A list aggregated for a larger target is a superset of a smaller one."""
        return self.target >= other.target

    def __str__(self) -> str:
        return f"{self.kind}:{self.target}"


@dataclass(frozen=True)
class CacheEntry:
    data: list[UnifiedMarket]
    timestamp: float
    key: CacheKey


class MarketCache:
    """Holds the last successful aggregation. Each put() replaces the slot wholesale."""

    def __init__(self, ttl_sec: float = 60.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    def age(self) -> float | None:
        if self._entry is None:
            return None
        return self._clock() - self._entry.timestamp

    def is_stale(self) -> bool:
        """True if an entry exists but is past its TTL."""
        age = self.age()
        return age is not None and age >= self.ttl_sec

    def get(self, key: CacheKey) -> tuple[list[UnifiedMarket] | None, bool]:
        """Return (data, is_expired). data is None when empty or the stored key does not cover `key`."""
        if self._entry is None or not self._entry.key.covers(key):
            return None, True
        return self._entry.data, self.is_stale()

    def lookup(self, key: CacheKey, *, force_refresh: bool = False) -> list[UnifiedMarket] | None:
        """Cache hit check: not forced, entry present, key covered, not expired."""
        if force_refresh:
            return None
        data, expired = self.get(key)
        if data is None or expired:
            return None
        return data

    def put(self, key: CacheKey, data: list[UnifiedMarket]) -> None:
        self._entry = CacheEntry(data=list(data), timestamp=self._clock(), key=key)

    def snapshot(self) -> list[UnifiedMarket] | None:
        """Last good data regardless of age or key; used for stale-cache fallback."""
        return self._entry.data if self._entry is not None else None

    def clear(self) -> None:
        self._entry = None
