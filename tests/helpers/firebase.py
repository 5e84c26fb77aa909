"""Firebase configuration, payloads and stream doubles shared by the tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, cast

from arkive.adapters.firebase import FirebaseRemoteFeed
from arkive.config import FirebaseConfig, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Sequence

    from arkive.adapters.firebase import FirebaseClient, StreamEvent
    from arkive.domain.model import EntityType

DATABASE_URL = "https://arkive-test.firebaseio.com"


def make_config(*, auth_token: str | None = None, root_path: str = "") -> FirebaseConfig:
    return FirebaseConfig(
        database_url=DATABASE_URL,
        auth_token=auth_token,
        root_path=root_path,
        resilience=ResilienceConfig(
            name="firebase-test",
            base_url=DATABASE_URL,
            timeout_seconds=5.0,
            retry=RetryPolicy(total=0),
        ),
    )


def client_wire_payload(
    name: str = "Ayesha Khan", *, updated: str = "2024-03-01T10:00:00Z"
) -> dict[str, object]:
    return {
        "name": name,
        "cnic": "35202-1234567-1",
        "type": "IRIS",
        "phone": "0300-1234567",
        "createdAt": "2024-03-01T09:00:00Z",
        "updatedAt": updated,
        "lastModified": updated,
    }


class ScriptedStreamClient:
    """Stands in for ``FirebaseClient``: one scripted session per connection.

    Once the sessions run out the stream blocks like an idle connection.
    """

    def __init__(self, *sessions: Sequence[StreamEvent | Exception]) -> None:
        self.sessions = list(sessions)
        self.opened = 0
        self.closed = False

    async def stream_collection(self, entity_type: EntityType) -> AsyncIterator[StreamEvent]:
        self.opened += 1
        if not self.sessions:
            await asyncio.Event().wait()
        for item in self.sessions.pop(0):
            if isinstance(item, Exception):
                raise item
            yield item

    async def aclose(self) -> None:
        self.closed = True


def scripted_feed(client: ScriptedStreamClient) -> FirebaseRemoteFeed:
    return FirebaseRemoteFeed(cast("FirebaseClient", client), reconnect_seconds=0)


async def wait_until(condition: Callable[[], bool]) -> None:
    for _ in range(200):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
