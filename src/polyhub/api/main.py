"""FastAPI backend for the web dashboard."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from polyhub.aggregation.aggregator import MarketAggregator
from polyhub.api.schemas import HealthResponse, MarketsResponse
from polyhub.api.service import MarketService
from polyhub.config import get_settings
from polyhub.ingestion.polymarket.gamma import GammaClient

log = structlog.get_logger(__name__)

# Set by run_api() before uvicorn builds the app.
_config_profile: str | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One client, cache and service per process, shared by all requests
    settings = get_settings(_config_profile)
    client = GammaClient.from_settings(settings)
    aggregator = MarketAggregator.from_settings(client, settings)
    app.state.market_service = MarketService.from_settings(aggregator, settings)
    log.info("api_started", gamma_api_base=settings.gamma_api_base, cache_ttl_sec=settings.cache_ttl_sec)
    try:
        yield
    finally:
        await client.aclose()


def _market_service(request: Request) -> MarketService:
    return request.app.state.market_service


def create_app() -> FastAPI:
    settings = get_settings(_config_profile)
    app = FastAPI(title="PolyHub API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware, allow_origins=settings.cors_origins, allow_methods=["GET"], allow_headers=["*"]
    )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/api/markets", response_model=MarketsResponse, response_model_exclude_none=True)
    async def markets(
        kind: str | None = Query(None, alias="type", description="featured | trending; omit for all"),
        limit: int | None = Query(None, description="Max entries; clamped into [1, max_limit]"),
        refresh: bool = Query(False, description="Bypass the cache hit check"),
        service: MarketService = Depends(_market_service),
    ) -> MarketsResponse:
        """Aggregated, volume-ranked markets. Upstream failures degrade to stale-cache or fallback.

        Malformed query values (a non-integer `limit`, a non-boolean `refresh`) are
        rejected with 422 before the service runs; only upstream failures are masked.
        """
        return await service.get_markets(kind=kind, limit=limit, refresh=refresh)

    return app


app = create_app()


def run_api(host: str = "127.0.0.1", port: int = 8000, profile: str | None = None) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn

    uvicorn.run("polyhub.api.main:create_app", factory=True, host=host, port=port, reload=False)
