"""Events/markets aggregation pipeline."""

from polyhub.aggregation.aggregator import MarketAggregator, is_duplicate_of_event

__all__ = ["MarketAggregator", "is_duplicate_of_event"]
