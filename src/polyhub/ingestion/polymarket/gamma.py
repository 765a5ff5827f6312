"""Polymarket Gamma API client - events/markets collections and event detail."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Literal

import httpx
import structlog
from pydantic import ValidationError

from polyhub.ingestion.errors import UpstreamError, UpstreamTransientError
from polyhub.ingestion.rate_limit import retry_delay
from polyhub.models.raw import RawEventRecord, RawMarketRecord

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"

CollectionKind = Literal["events", "markets"]

# Provider query contract per collection (limit/offset are added per call)
_COLLECTION_PARAMS: dict[str, dict[str, str]] = {
    "events": {
        "closed": "false",
        "order": "volume",
        "ascending": "false",
        "related_tags": "true",
    },
    "markets": {
        "closed": "false",
        "order": "volumeNum",
        "ascending": "false",
        "include_tag": "true",
        "related_tags": "true",
    },
}

_RECORD_TYPES: dict[str, type[RawEventRecord] | type[RawMarketRecord]] = {
    "events": RawEventRecord,
    "markets": RawMarketRecord,
}


class GammaClient:
    """Async Gamma REST client with per-call timeout and 429/network retry.

    Use as an async context manager, or call aclose() when done. No caching
    happens here.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = 8.0,
        max_retries: int = 2,
        backoff_base_sec: float = 0.5,
        user_agent: str = "PolyHub/1.0",
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.base_url = (base_url or GAMMA_API_BASE).rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_base_sec = backoff_base_sec
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": user_agent},
        )
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> GammaClient:
        return cls(
            settings.gamma_api_base,
            timeout=settings.upstream_timeout_sec,
            max_retries=settings.upstream_max_retries,
            backoff_base_sec=settings.upstream_backoff_base_sec,
            user_agent=settings.user_agent,
            **kwargs,
        )

    async def __aenter__(self) -> GammaClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _attempt(self, url: str, params: dict[str, Any] | None) -> httpx.Response:
        try:
            resp = await self._client.get(url, params=params, timeout=self.timeout)
        except httpx.RequestError as e:
            raise UpstreamTransientError(f"{type(e).__name__}: {e}", cause=e) from e
        if resp.status_code == 429:
            raise UpstreamTransientError("HTTP 429: rate limited", status=429)
        if not resp.is_success:
            raise UpstreamTransientError(
                f"HTTP {resp.status_code}: {resp.reason_phrase}", status=resp.status_code
            )
        return resp

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET with retry budget; raise UpstreamError once retries are exhausted."""
        attempt = 0
        while True:
            try:
                resp = await self._attempt(url, params)
                break
            except UpstreamTransientError as e:
                if attempt >= self.max_retries:
                    raise UpstreamError(str(e), status=e.status, cause=e.cause or e) from e
                delay = retry_delay(attempt, self.backoff_base_sec)
                log.warning("upstream_retry", url=url, attempt=attempt + 1, status=e.status, delay=delay)
                attempt += 1
                await self._sleep(delay)
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UpstreamError(f"Malformed JSON from {url}", status=resp.status_code, cause=e) from e

    async def fetch_collection_page(
        self, kind: CollectionKind, limit: int, offset: int = 0
    ) -> list[RawEventRecord] | list[RawMarketRecord]:
        """Fetch one page of the events or markets collection."""
        if kind not in _COLLECTION_PARAMS:
            raise ValueError(f"Unknown collection: {kind}")
        params: dict[str, Any] = {"limit": limit, "offset": offset, **_COLLECTION_PARAMS[kind]}
        data = await self._get_json(f"{self.base_url}/{kind}", params)
        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise UpstreamError(f"Unexpected {kind} payload: {type(data).__name__}")
        record_type = _RECORD_TYPES[kind]
        records = []
        for row in data:
            if not isinstance(row, dict):
                continue
            try:
                records.append(record_type.model_validate(row))
            except ValidationError as e:
                log.warning("skip_record", kind=kind, record_id=row.get("id"), error=str(e))
        return records

    async def fetch_detail(self, event_id: str) -> RawEventRecord | None:
        """Fetch one event with its sub-markets. Returns None on any failure."""
        try:
            data = await self._get_json(f"{self.base_url}/events/{event_id}")
            if not isinstance(data, dict):
                log.warning("event_detail_miss", event_id=event_id, error="non-object payload")
                return None
            return RawEventRecord.model_validate(data)
        except (UpstreamError, ValidationError) as e:
            log.warning("event_detail_miss", event_id=event_id, error=str(e))
            return None
