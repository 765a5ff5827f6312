"""Gamma RawEventRecord / RawMarketRecord -> canonical UnifiedMarket."""

from __future__ import annotations

import json
import random
import re
from typing import Any

from polyhub.ingestion.polymarket.categories import resolve_category
from polyhub.models.market import Outcome, UnifiedMarket
from polyhub.models.raw import RawEventRecord, RawMarketRecord

MARKET_RULES = "Market resolves based on Polymarket resolution criteria."
EVENT_RULES = "Aggregated event composed of related markets on Polymarket."

# Synthetic 24h price change is drawn from [-PRICE_JITTER, PRICE_JITTER]
PRICE_JITTER = 0.05

_DEFAULT_NAMES = ["Yes", "No"]
_DEFAULT_PRICES = [0.5, 0.5]
_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)
_WHITESPACE = re.compile(r"\s+")


def _price(value: Any) -> float:
    """Outcome price in [0, 1]; anything that is not a number defaults to 0.5."""
    if isinstance(value, bool):
        return 0.5
    try:
        p = float(value)
    except (TypeError, ValueError):
        return 0.5
    if p != p:
        return 0.5
    return min(1.0, max(0.0, p))


def _json_array(raw: str | list[Any] | None, default: list[Any]) -> list[Any] | None:
    """Decode a JSON-encoded array (or pass a list through). None on malformed input."""
    if raw is None or raw == "":
        return list(default)
    if isinstance(raw, list):
        return raw
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    return decoded if isinstance(decoded, list) else None


def _outcome_id(name: str) -> str:
    return _WHITESPACE.sub("_", name.strip().lower())


def binary_outcomes(volume_24h: float = 0.0) -> list[Outcome]:
    """Fixed Yes/No pair at 0.5 used whenever outcome data is missing or malformed."""
    share = volume_24h / 2
    return [
        Outcome(id="yes", name="Yes", price=0.5, probability=0.5, volume_24h=share, price_change_24h=0.0),
        Outcome(id="no", name="No", price=0.5, probability=0.5, volume_24h=share, price_change_24h=0.0),
    ]


def parse_outcomes(
    names_raw: str | list[Any] | None,
    prices_raw: str | list[Any] | None,
    *,
    volume_24h: float = 0.0,
    rng: random.Random | None = None,
) -> list[Outcome]:
    """Build Outcome list from Gamma's parallel `outcomes` / `outcomePrices` arrays."""
    names = _json_array(names_raw, _DEFAULT_NAMES)
    prices = _json_array(prices_raw, _DEFAULT_PRICES)
    if (
        not names
        or prices is None
        or len(names) != len(prices)
        or not all(isinstance(n, str) and n.strip() for n in names)
    ):
        return binary_outcomes(volume_24h)
    rng = rng or random.Random()
    share = volume_24h / len(names)
    outcomes = []
    for name, raw_price in zip(names, prices):
        p = _price(raw_price)
        outcomes.append(
            Outcome(
                id=_outcome_id(name),
                name=name,
                price=p,
                probability=p,
                volume_24h=share,
                price_change_24h=rng.uniform(-PRICE_JITTER, PRICE_JITTER),
            )
        )
    return outcomes


def normalize_title(text: str | None) -> str:
    """De-duplication key: case-folded, punctuation stripped, whitespace collapsed."""
    if not text:
        return ""
    return _NON_WORD.sub(" ", text.casefold()).strip()


def select_primary_market(markets: list[RawMarketRecord]) -> RawMarketRecord | None:
    """Highest-volume sub-market; the first one wins on ties."""
    primary = None
    for m in markets:
        if primary is None or m.volume > primary.volume:
            primary = m
    return primary


def normalize_market(raw: RawMarketRecord, rng: random.Random | None = None) -> UnifiedMarket:
    """Convert a standalone Gamma market to UnifiedMarket."""
    outcomes = parse_outcomes(raw.outcomes, raw.outcome_prices, volume_24h=raw.volume_24h, rng=rng)
    return UnifiedMarket(
        id=raw.id,
        question=raw.question,
        description=raw.description or raw.question,
        category=resolve_category(raw.tags + raw.categories, raw.question),
        outcomes=outcomes,
        liquidity=raw.liquidity,
        total_volume=raw.volume,
        created_at=raw.created_at,
        closing_time=raw.end_date,
        resolved=bool(raw.closed),
        featured=raw.featured,
        trending=raw.new,
        tags=list(raw.tags),
        rules=MARKET_RULES,
        source="market",
    )


def normalize_event(raw: RawEventRecord, rng: random.Random | None = None) -> UnifiedMarket:
    """Convert a Gamma event (hydrated or summary) to UnifiedMarket.

    Outcomes come from the primary sub-market only. Totals fall back to sums
    over the sub-markets when the event does not carry its own.
    """
    primary = select_primary_market(raw.markets)
    if primary is not None:
        outcomes = parse_outcomes(
            primary.outcomes, primary.outcome_prices, volume_24h=raw.volume_24h, rng=rng
        )
    else:
        outcomes = binary_outcomes()
    total_volume = raw.volume if raw.volume is not None else sum(m.volume for m in raw.markets)
    liquidity = raw.liquidity if raw.liquidity is not None else sum(m.liquidity for m in raw.markets)
    return UnifiedMarket(
        id=f"event-{raw.id}",
        question=raw.title,
        description=raw.description or raw.title,
        category=resolve_category(raw.tags + raw.categories, raw.title),
        outcomes=outcomes,
        liquidity=liquidity,
        total_volume=total_volume,
        created_at=raw.created_at,
        closing_time=raw.end_date,
        resolved=bool(raw.closed),
        tags=list(raw.tags),
        rules=EVENT_RULES,
        source="event",
    )
