"""Per-request projection of the cached canonical market list."""

from __future__ import annotations

from polyhub.models.market import UnifiedMarket

FEATURED_MAX = 6
FEATURED_MIN_VOLUME = 5_000
FEATURED_MIN_LIQUIDITY = 1_000
TRENDING_MAX = 8
TRENDING_MIN_VOLUME = 1_000


def filter_markets(markets: list[UnifiedMarket], kind: str | None, limit: int) -> list[UnifiedMarket]:
    """Slice `markets` (already volume-sorted) for `kind` = featured | trending | anything else.

    Flags are stamped on copies; the input list and its items are never modified.
    """
    if kind == "featured":
        picked = [
            m
            for m in markets
            if m.total_volume > FEATURED_MIN_VOLUME and m.liquidity > FEATURED_MIN_LIQUIDITY
        ][: min(FEATURED_MAX, limit)]
        return [m.model_copy(update={"featured": True}) for m in picked]
    if kind == "trending":
        picked = [m for m in markets if m.total_volume > TRENDING_MIN_VOLUME][: min(TRENDING_MAX, limit)]
        return [m.model_copy(update={"trending": True}) for m in picked]
    return markets[:limit]
