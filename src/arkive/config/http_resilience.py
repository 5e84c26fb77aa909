"""Retry, rate-limit and timeout settings shared by the HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping

# POST creates server-generated push ids, so only idempotent verbs are replayed
IDEMPOTENT_METHODS = frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PUT"})
TRANSIENT_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
TRANSIENT_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """How often and how patiently a failed request is replayed."""

    total: int = 3
    backoff_factor: float = 0.5
    backoff_jitter: float = 1.0
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = IDEMPOTENT_METHODS
    status_forcelist: frozenset[int] = TRANSIENT_STATUS_CODES
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = TRANSIENT_ERRORS


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    """Settings of one named HTTP client.

    ``stream_read_timeout_seconds`` bounds the silence tolerated on an open
    event stream; Firebase sends a keep-alive every 30 seconds.
    """

    name: str
    base_url: str | None = None
    timeout_seconds: float | None = 30.0
    stream_read_timeout_seconds: float | None = 90.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None

    def request_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_seconds)

    def stream_timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.timeout_seconds, read=self.stream_read_timeout_seconds)
