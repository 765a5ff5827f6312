"""Canonical schema (Pydantic) - UnifiedMarket, Outcome, Category, raw Gamma records."""

from polyhub.models.category import CATEGORIES, WORLD, Category
from polyhub.models.market import Outcome, UnifiedMarket
from polyhub.models.raw import EventRef, RawEventRecord, RawMarketRecord

__all__ = [
    "UnifiedMarket",
    "Outcome",
    "Category",
    "CATEGORIES",
    "WORLD",
    "RawEventRecord",
    "RawMarketRecord",
    "EventRef",
]
