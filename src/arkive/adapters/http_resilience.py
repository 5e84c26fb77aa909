"""Rate-limited async HTTP client with transport-level retries."""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, TimeoutTypes

    from arkive.config.http_resilience import ResilienceConfig, RetryPolicy

log = getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    json: object
    follow_redirects: bool
    timeout: TimeoutTypes


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        backoff_jitter=policy.backoff_jitter,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.allowed_methods),
        status_forcelist=sorted(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
    )


class ResilientClient:
    """Async HTTP client that retries transient failures and honours a rate limit.

    Retries happen inside the transport, so callers only ever see the final
    response or the last transport error. ``transport`` replaces the network
    layer underneath the retries; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        limit = config.ratelimit
        self._limiter = AsyncLimiter(limit.max_calls, limit.per_seconds) if limit else None
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.request_timeout(),
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(
                transport=transport or httpx.AsyncHTTPTransport(),
                retry=build_retry(config.retry),
            ),
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _throttle(self) -> None:
        if self._limiter is not None:
            await self._limiter.acquire()

    async def request(
        self, method: str, url: str, **kwargs: Unpack[RequestOptions]
    ) -> httpx.Response:
        await self._throttle()
        response = await self._client.request(method, url, **kwargs)
        log.debug(f"[{self.config.name}] {method} {url} -> {response.status_code}")
        return response

    async def get(self, url: str, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def put(self, url: str, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    @asynccontextmanager
    async def stream(
        self, method: str, url: str, **kwargs: Unpack[RequestOptions]
    ) -> AsyncIterator[httpx.Response]:
        """Open a long-lived response using the stream read timeout.

        Only opening the stream counts against the rate limit.
        """

        kwargs.setdefault("timeout", self.config.stream_timeout())
        await self._throttle()
        async with self._client.stream(method, url, **kwargs) as response:
            yield response
