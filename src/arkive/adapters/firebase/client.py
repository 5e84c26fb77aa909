"""HTTP client for the Firebase Realtime Database REST API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from arkive.adapters.http_resilience import ResilientClient
from arkive.domain.errors import FeedError

from .schema import ErrorResponse
from .stream import ServerSentEventDecoder, StreamEvent
from .translator import record_to_payload

if TYPE_CHECKING:
    import httpx

    from arkive.config import FirebaseConfig
    from arkive.domain.model import EntityType, Record

log = getLogger(__name__)


class FirebaseAPIError(FeedError):
    """Raised when the database rejects a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(payload, dict) or "error" not in payload:
        return response.reason_phrase
    try:
        return ErrorResponse.model_validate(payload).describe()
    except ValidationError:
        return response.text or response.reason_phrase


class FirebaseClient:
    """Reads, writes and streams collections below the configured root path."""

    def __init__(self, config: FirebaseConfig, client: ResilientClient | None = None) -> None:
        self.config = config
        self._client = client or ResilientClient(config.resilience)

    async def __aenter__(self) -> FirebaseClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, entity_type: EntityType, record_id: str | None = None) -> str:
        path = self.config.collection_path(entity_type.value)
        if record_id is not None:
            path = f"{path}/{record_id}"
        return f"/{path}.json"

    def _params(self) -> dict[str, str]:
        return {"auth": self.config.auth_token} if self.config.auth_token else {}

    async def fetch_collection(self, entity_type: EntityType) -> object:
        """Return the raw JSON node of ``entity_type`` (``None`` when empty)."""

        response = await self._client.get(self.url_for(entity_type), params=self._params())
        self._raise_for_error(response)
        return response.json()

    async def put_record(self, record: Record) -> None:
        response = await self._client.put(
            self.url_for(record.entity_type, record.id),
            params=self._params(),
            json=record_to_payload(record),
        )
        self._raise_for_error(response)

    async def delete_record(self, entity_type: EntityType, record_id: str) -> None:
        response = await self._client.delete(
            self.url_for(entity_type, record_id),
            params=self._params(),
        )
        self._raise_for_error(response)

    async def stream_collection(self, entity_type: EntityType) -> AsyncIterator[StreamEvent]:
        """Yield the events of the collection's event stream until it closes."""

        async with self._client.stream(
            "GET",
            self.url_for(entity_type),
            params=self._params(),
            headers={"Accept": "text/event-stream"},
            follow_redirects=True,
        ) as response:
            if response.is_error:
                await response.aread()
                self._raise_for_error(response)
            decoder = ServerSentEventDecoder()
            async for line in response.aiter_lines():
                event = decoder.decode(line)
                if event is not None:
                    yield event

    def _raise_for_error(self, response: httpx.Response) -> None:
        if not response.is_error:
            return
        message = _error_message(response)
        log.error(f"Firebase API error {response.status_code}: {message}")
        raise FirebaseAPIError(message, status_code=response.status_code)
