"""In-process storage (market list cache)."""

from polyhub.storage.cache import CacheEntry, CacheKey, MarketCache

__all__ = ["CacheEntry", "CacheKey", "MarketCache"]
