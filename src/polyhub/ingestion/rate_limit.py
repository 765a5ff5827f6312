"""Retry backoff for Gamma REST calls (429, 5xx, and network failures alike)."""

from __future__ import annotations


def retry_delay(attempt: int, base_delay: float = 0.5) -> float:
    """Return delay in seconds before retry number `attempt` (0-based). Linear backoff."""
    return base_delay * (attempt + 1)
