"""Category - fixed dashboard taxonomy."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Category(BaseModel):
    """One dashboard category bucket."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    slug: str
    description: str
    color: str
    icon: str


POLITICS = Category(
    id="politics", name="Politics", slug="politics",
    description="Elections and political events", color="#3B82F6", icon="Vote",
)
SPORTS = Category(
    id="sports", name="Sports", slug="sports",
    description="Sports predictions and outcomes", color="#EF4444", icon="Trophy",
)
CRYPTO = Category(
    id="crypto", name="Crypto", slug="crypto",
    description="Cryptocurrency and blockchain", color="#F59E0B", icon="Coins",
)
BUSINESS = Category(
    id="business", name="Business", slug="business",
    description="Corporate and economic events", color="#10B981", icon="Building",
)
TECHNOLOGY = Category(
    id="technology", name="Technology", slug="technology",
    description="Technology and innovation", color="#8B5CF6", icon="Cpu",
)
ENTERTAINMENT = Category(
    id="entertainment", name="Entertainment", slug="entertainment",
    description="Movies, TV, and celebrity events", color="#F97316", icon="Film",
)
WORLD = Category(
    id="world", name="World", slug="world",
    description="Global news and events", color="#6B7280", icon="Globe",
)

# Resolution priority order; WORLD is the fallback and never matched directly
CATEGORIES: tuple[Category, ...] = (POLITICS, SPORTS, CRYPTO, BUSINESS, TECHNOLOGY, ENTERTAINMENT)
