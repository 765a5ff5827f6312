"""Market request service - cache check, aggregation, degradation, response envelope."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import structlog

from polyhub.aggregation.aggregator import MarketAggregator
from polyhub.api.filters import filter_markets
from polyhub.api.schemas import MarketsResponse
from polyhub.models.market import UnifiedMarket
from polyhub.storage.cache import CacheKey, MarketCache

log = structlog.get_logger(__name__)


def clamp_limit(limit: int | None, default: int = 100, max_limit: int = 300) -> int:
    if limit is None:
        return default
    return max(1, min(max_limit, limit))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class MarketService:
    """Serves filtered market lists from the cache, refreshing through the aggregator.

    Concurrent requests that need the same aggregation share one in-flight
    task instead of each running the upstream pipeline.
    """

    def __init__(
        self,
        aggregator: MarketAggregator,
        cache: MarketCache,
        *,
        default_limit: int = 100,
        max_limit: int = 300,
    ) -> None:
        self.aggregator = aggregator
        self.cache = cache
        self.default_limit = default_limit
        self.max_limit = max_limit
        self._inflight: dict[int, asyncio.Task[list[UnifiedMarket]]] = {}

    @classmethod
    def from_settings(cls, aggregator: MarketAggregator, settings: Any) -> MarketService:
        return cls(
            aggregator,
            MarketCache(ttl_sec=settings.cache_ttl_sec),
            default_limit=settings.default_limit,
            max_limit=settings.max_limit,
        )

    async def _refresh(self, key: CacheKey) -> list[UnifiedMarket]:
        merged = await self.aggregator.aggregate(key.target)
        self.cache.put(key, merged)
        return merged

    def _join_inflight(self, target: int) -> asyncio.Task[list[UnifiedMarket]] | None:
        """Return a running aggregation whose target covers `target`, smallest first."""
        covering = [t for t in self._inflight if t >= target]
        return self._inflight[min(covering)] if covering else None

    def _finish_inflight(self, target: int, task: asyncio.Task[list[UnifiedMarket]]) -> None:
        if self._inflight.get(target) is task:
            del self._inflight[target]
        # Retrieve the outcome so a failure with no remaining waiters is not reported as unhandled
        if not task.cancelled() and task.exception() is not None:
            log.debug("aggregation_failed", target=target, error=_error_message(task.exception()))

    async def _aggregate_shared(self, key: CacheKey) -> list[UnifiedMarket]:
        task = self._join_inflight(key.target)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key))
            self._inflight[key.target] = task
            task.add_done_callback(lambda t, target=key.target: self._finish_inflight(target, t))
        else:
            log.debug("aggregation_joined", key=str(key))
        # A disconnecting caller must not cancel the aggregation other callers await
        return await asyncio.shield(task)

    async def get_markets(
        self, kind: str | None = None, limit: int | None = None, refresh: bool = False
    ) -> MarketsResponse:
        """Return the envelope for one request. Never raises for upstream failures."""
        target = clamp_limit(limit, self.default_limit, self.max_limit)
        key = CacheKey(kind or "all", target)

        cached = self.cache.lookup(key, force_refresh=refresh)
        if cached is not None:
            data = filter_markets(cached, kind, target)
            log.debug("cache_hit", key=str(key), count=len(data))
            return MarketsResponse(
                data=data, count=len(data), timestamp=_now_iso(), source="cache", cached=True
            )

        try:
            merged = await self._aggregate_shared(key)
        except Exception as e:
            message = _error_message(e)
            stale = self.cache.snapshot()
            if stale is not None:
                data = filter_markets(stale, kind, target)
                log.warning("serve_stale_cache", key=str(key), error=message, count=len(data))
                return MarketsResponse(
                    data=data,
                    count=len(data),
                    timestamp=_now_iso(),
                    source="stale-cache",
                    cached=True,
                    warning=f"Upstream error: {message}",
                )
            log.error("serve_fallback", key=str(key), error=message)
            return MarketsResponse(
                data=[], count=0, timestamp=_now_iso(), source="fallback", cached=False, error=message
            )

        data = filter_markets(merged, kind, target)
        return MarketsResponse(data=data, count=len(data), timestamp=_now_iso(), source="live", cached=False)
