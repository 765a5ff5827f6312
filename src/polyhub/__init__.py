"""PolyHub - prediction market aggregation service for the web dashboard."""

__version__ = "0.1.0"
