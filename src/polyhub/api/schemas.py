"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from polyhub.models.market import UnifiedMarket

MarketsSource = Literal["cache", "live", "stale-cache", "fallback"]


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Markets ---
class MarketsResponse(BaseModel):
    """Envelope for GET /api/markets. Always success=True; degraded serves carry warning/error."""

    success: bool = True
    data: list[UnifiedMarket] = Field(default_factory=list)
    count: int = 0
    timestamp: str = Field(..., description="ISO-8601 response time (UTC)")
    source: MarketsSource
    cached: bool = False
    warning: str | None = Field(None, description="Set when serving a stale cache after an upstream error")
    error: str | None = Field(None, description="Set when serving the empty fallback")
