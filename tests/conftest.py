"""Shared fixtures: Gamma payload builders and an in-memory upstream client."""

from __future__ import annotations

import json
import random
from typing import Any

import pytest

from polyhub.aggregation.aggregator import MarketAggregator
from polyhub.models.raw import RawEventRecord, RawMarketRecord


def market_payload(
    market_id: str,
    question: str,
    *,
    volume: float | str = 0,
    liquidity: float | str = 0,
    outcomes: list[str] | None = None,
    prices: list[Any] | None = None,
    events: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Gamma /markets item with JSON-encoded outcome arrays."""
    outcomes = outcomes if outcomes is not None else ["Yes", "No"]
    prices = prices if prices is not None else ["0.6", "0.4"]
    payload: dict[str, Any] = {
        "id": market_id,
        "question": question,
        "outcomes": json.dumps(outcomes),
        "outcomePrices": json.dumps(prices),
        "volume": str(volume),
        "liquidity": str(liquidity),
        "active": True,
        "closed": False,
    }
    if events is not None:
        payload["events"] = events
    payload.update(extra)
    return payload


def event_payload(
    event_id: str,
    title: str,
    *,
    volume: float | None = None,
    liquidity: float | None = None,
    markets: list[dict[str, Any]] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Gamma /events item (summary or detail, depending on `markets`)."""
    payload: dict[str, Any] = {"id": event_id, "title": title, "active": True, "closed": False}
    if volume is not None:
        payload["volume"] = volume
    if liquidity is not None:
        payload["liquidity"] = liquidity
    if markets is not None:
        payload["markets"] = markets
    payload.update(extra)
    return payload


class FakeGammaClient:
    """In-memory stand-in for GammaClient with call recording and failure injection."""

    def __init__(
        self,
        events: list[dict[str, Any]] | None = None,
        markets: list[dict[str, Any]] | None = None,
        details: dict[str, dict[str, Any] | None] | None = None,
    ) -> None:
        self.events = [RawEventRecord.model_validate(e) for e in events or []]
        self.markets = [RawMarketRecord.model_validate(m) for m in markets or []]
        self.details = {
            k: (RawEventRecord.model_validate(v) if v is not None else None)
            for k, v in (details or {}).items()
        }
        self.page_calls: list[tuple[str, int, int]] = []
        self.detail_calls: list[str] = []
        self.error: Exception | None = None

    async def fetch_collection_page(self, kind: str, limit: int, offset: int = 0) -> list[Any]:
        self.page_calls.append((kind, limit, offset))
        if self.error is not None:
            raise self.error
        items = self.events if kind == "events" else self.markets
        return items[offset : offset + limit]

    async def fetch_detail(self, event_id: str) -> RawEventRecord | None:
        self.detail_calls.append(event_id)
        return self.details.get(event_id)

    @property
    def upstream_calls(self) -> int:
        return len(self.page_calls) + len(self.detail_calls)


def make_aggregator(client: FakeGammaClient, **kwargs: Any) -> MarketAggregator:
    options: dict[str, Any] = {
        "events_page_size": 10,
        "events_max_pages": 2,
        "event_detail_limit": 5,
        "markets_page_size": 10,
        "markets_max_pages": 5,
        "page_delay_sec": 0,
        "rng": random.Random(7),
    }
    options.update(kwargs)
    return MarketAggregator(client, **options)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)
