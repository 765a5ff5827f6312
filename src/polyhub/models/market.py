"""UnifiedMarket, Outcome - canonical dashboard entities."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from polyhub.models.category import Category

DEFAULT_CREATOR = "Polymarket"
MIN_PRICE = 0.01
MAX_PRICE = 0.99


class _CamelModel(BaseModel):
    """Serialises as camelCase JSON for the dashboard; accepts either spelling."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Outcome(_CamelModel):
    """Single outcome (e.g. Yes/No) of a market."""

    id: str
    name: str
    price: float = Field(..., ge=0, le=1, description="Probability/price in [0, 1]")
    probability: float = Field(..., ge=0, le=1)
    volume_24h: float = Field(0.0, alias="volume24h")
    # Display-only jitter, generated once at normalization time
    price_change_24h: float = Field(0.0, alias="priceChange24h")


class UnifiedMarket(_CamelModel):
    """Market-like entity built from either a Gamma event or a standalone Gamma market."""

    id: str
    question: str
    description: str = ""
    category: Category
    outcomes: list[Outcome] = Field(default_factory=list)
    liquidity: float = 0.0
    total_volume: float = 0.0
    created_at: str | None = None
    closing_time: str | None = None
    resolved: bool = False
    featured: bool = False
    trending: bool = False
    tags: list[str] = Field(default_factory=list)
    creator: str = DEFAULT_CREATOR
    rules: str = ""
    min_price: float = MIN_PRICE
    max_price: float = MAX_PRICE
    source: Literal["event", "market"] = "market"

    @computed_field(alias="currentPrices")
    @property
    def current_prices(self) -> dict[str, float]:
        """Price by outcome id; always a projection of `outcomes`."""
        return {o.id: o.price for o in self.outcomes}
