"""Market aggregator - events + markets collections -> one volume-ranked UnifiedMarket list."""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Protocol

import structlog

from polyhub.ingestion.polymarket.normalize import normalize_event, normalize_market, normalize_title
from polyhub.models.market import UnifiedMarket
from polyhub.models.raw import RawEventRecord, RawMarketRecord

log = structlog.get_logger(__name__)


class UpstreamClient(Protocol):
    """What the aggregator needs from the Gamma client."""

    async def fetch_collection_page(self, kind: str, limit: int, offset: int = 0) -> list[Any]: ...

    async def fetch_detail(self, event_id: str) -> RawEventRecord | None: ...


def is_duplicate_of_event(market: RawMarketRecord, event_title_keys: dict[str, str]) -> bool:
    """True if the market restates an already-included event.

    Requires both: a back-referenced parent event is included, and the
    market's question normalizes to that event's title. Sibling sub-markets
    with their own questions are kept.
    """
    question_key = normalize_title(market.question)
    for ref in market.events:
        title_key = event_title_keys.get(ref.id)
        if title_key is not None and title_key == question_key:
            return True
    return False


class MarketAggregator:
    """Runs the fetch -> hydrate -> normalize -> de-dup -> merge pipeline.

    Upstream failures propagate to the caller; nothing here turns them into
    empty data.
    """

    def __init__(
        self,
        client: UpstreamClient,
        *,
        events_page_size: int = 100,
        events_max_pages: int = 2,
        event_detail_limit: int = 40,
        markets_page_size: int = 100,
        markets_max_pages: int = 5,
        page_delay_sec: float = 0.15,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.events_page_size = events_page_size
        self.events_max_pages = events_max_pages
        self.event_detail_limit = event_detail_limit
        self.markets_page_size = markets_page_size
        self.markets_max_pages = markets_max_pages
        self.page_delay_sec = page_delay_sec
        self.rng = rng
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: UpstreamClient, settings: Any, **kwargs: Any) -> MarketAggregator:
        return cls(
            client,
            events_page_size=settings.events_page_size,
            events_max_pages=settings.events_max_pages,
            event_detail_limit=settings.event_detail_limit,
            markets_page_size=settings.markets_page_size,
            markets_max_pages=settings.markets_max_pages,
            page_delay_sec=settings.page_delay_sec,
            **kwargs,
        )

    async def _pause(self) -> None:
        if self.page_delay_sec > 0:
            await self._sleep(self.page_delay_sec)

    async def collect_events(self) -> list[RawEventRecord]:
        """Page through open events until an empty page or the page cap."""
        events: list[RawEventRecord] = []
        seen: set[str] = set()
        for page in range(self.events_max_pages):
            if page:
                await self._pause()
            items = await self.client.fetch_collection_page(
                "events", self.events_page_size, page * self.events_page_size
            )
            if not items:
                break
            for e in items:
                # offsets can shift between pages while upstream volume changes
                if e.is_open and e.id not in seen:
                    seen.add(e.id)
                    events.append(e)
        return events

    async def hydrate_events(self, events: list[RawEventRecord]) -> list[RawEventRecord]:
        """Replace the first N events with their detail records, concurrently.

        A failed detail fetch (None) keeps the summary record.
        """
        targets = events[: self.event_detail_limit]
        details = await asyncio.gather(*(self.client.fetch_detail(e.id) for e in targets))
        hydrated = [detail or summary for detail, summary in zip(details, targets)]
        misses = sum(1 for d in details if d is None)
        if misses:
            log.info("event_hydration_partial", requested=len(targets), misses=misses)
        return hydrated + events[self.event_detail_limit :]

    async def aggregate(self, target_count: int) -> list[UnifiedMarket]:
        """Return event- and market-derived entities merged and sorted by total volume (desc)."""
        events = await self.hydrate_events(await self.collect_events())

        event_markets: list[UnifiedMarket] = []
        event_title_keys: dict[str, str] = {}
        for e in events:
            event_markets.append(normalize_event(e, rng=self.rng))
            event_title_keys[e.id] = normalize_title(e.title)

        market_markets: list[UnifiedMarket] = []
        skipped = 0
        page = 0
        while len(event_markets) + len(market_markets) < target_count and page < self.markets_max_pages:
            await self._pause()
            items = await self.client.fetch_collection_page(
                "markets", self.markets_page_size, page * self.markets_page_size
            )
            page += 1
            if not items:
                break
            for m in items:
                if not m.is_open:
                    continue
                if is_duplicate_of_event(m, event_title_keys):
                    skipped += 1
                    continue
                market_markets.append(normalize_market(m, rng=self.rng))

        # sorted() is stable, so equal volumes keep encounter order
        merged = sorted(event_markets + market_markets, key=lambda m: m.total_volume, reverse=True)
        log.info(
            "aggregation_complete",
            target=target_count,
            events=len(event_markets),
            markets=len(market_markets),
            duplicates_skipped=skipped,
            market_pages=page,
            total=len(merged),
        )
        return merged
