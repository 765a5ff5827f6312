"""Upstream error taxonomy for the Gamma API client."""

from __future__ import annotations


class UpstreamError(Exception):
    """Gamma request failed for good: non-2xx after retries, network failure, or bad JSON."""

    def __init__(self, message: str, *, status: int | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.cause = cause


class UpstreamTransientError(UpstreamError):
    """Retryable failure (HTTP 429, timeout, connection error). Handled inside the client."""
