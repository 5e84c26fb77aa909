from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, cast

import httpx
import pytest

from arkive.adapters.firebase import FirebaseAPIError, FirebaseRemoteFeed, StreamEvent
from arkive.domain.errors import FeedError
from arkive.domain.model import Client, EntityType
from arkive.domain.reconciliation import ClientView
from tests.helpers.fakes import InMemoryStore
from tests.helpers.firebase import (
    ScriptedStreamClient,
    client_wire_payload,
    scripted_feed,
    wait_until,
)
from tests.helpers.records import make_client

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from arkive.adapters.firebase import FirebaseClient
    from arkive.domain.model import Record


def put(path: str, data: object) -> StreamEvent:
    return StreamEvent("put", path, data)


def test_subscribe_requires_running_loop() -> None:
    feed = scripted_feed(ScriptedStreamClient())

    with pytest.raises(FeedError, match="running event loop"):
        feed.subscribe(EntityType.CLIENT, lambda records: None)


def test_feed_delivers_snapshot_then_changed_records(caplog: pytest.LogCaptureFixture) -> None:
    deliveries: list[Sequence[Record]] = []
    client = ScriptedStreamClient(
        [
            put("/", {"c1": client_wire_payload("A"), "c2": {"name": "invalid"}}),
            StreamEvent("keep-alive"),
            put("/c3", client_wire_payload("C")),
            StreamEvent("patch", "/c3", {"phone": "0321-7654321"}),
            put("/c1", None),
        ]
    )

    async def scenario() -> None:
        feed = scripted_feed(client)
        feed.subscribe(EntityType.CLIENT, deliveries.append)
        await wait_until(lambda: client.opened == 2)
        await feed.aclose()

    with caplog.at_level(logging.INFO):
        asyncio.run(scenario())

    assert [[(r.id, cast("Client", r).name) for r in batch] for batch in deliveries] == [
        [("c1", "A")],
        [("c3", "C")],
        [("c3", "C")],
    ]
    assert cast("Client", deliveries[2][0]).phone == "0321-7654321"
    assert "Ignoring remote removal of clients c1" in caplog.text
    assert client.closed


def test_empty_collection_delivers_empty_snapshot() -> None:
    deliveries: list[Sequence[Record]] = []
    client = ScriptedStreamClient([put("/", None)])

    async def scenario() -> None:
        feed = scripted_feed(client)
        feed.subscribe(EntityType.RECEIPT, deliveries.append)
        await wait_until(lambda: client.opened == 2)
        await feed.aclose()

    asyncio.run(scenario())

    assert deliveries == [[]]


def test_terminal_event_stops_subscription() -> None:
    client = ScriptedStreamClient([put("/", None), StreamEvent("cancel")])

    async def scenario() -> tuple[bool, int]:
        feed = scripted_feed(client)
        handle = feed.subscribe(EntityType.CLIENT, lambda records: None)
        await wait_until(lambda: not handle.active)
        await asyncio.sleep(0)
        return handle.active, feed.active_subscriptions

    assert asyncio.run(scenario()) == (False, 0)
    assert client.opened == 1


def test_permanent_api_error_stops_subscription(caplog: pytest.LogCaptureFixture) -> None:
    client = ScriptedStreamClient([FirebaseAPIError("Permission denied", status_code=401)])

    async def scenario() -> bool:
        feed = scripted_feed(client)
        handle = feed.subscribe(EntityType.CLIENT, lambda records: None)
        await wait_until(lambda: not handle.active)
        return handle.active

    with caplog.at_level(logging.ERROR):
        assert asyncio.run(scenario()) is False

    assert client.opened == 1
    assert "Giving up on clients stream" in caplog.text


@pytest.mark.parametrize(
    "error",
    [
        httpx.ReadError("connection reset"),
        FirebaseAPIError("Too many requests", status_code=429),
        FirebaseAPIError("Unavailable", status_code=503),
    ],
)
def test_transient_errors_reconnect(error: Exception) -> None:
    deliveries: list[Sequence[Record]] = []
    client = ScriptedStreamClient([error], [put("/", {"c1": client_wire_payload()})])

    async def scenario() -> None:
        feed = scripted_feed(client)
        feed.subscribe(EntityType.CLIENT, deliveries.append)
        await wait_until(lambda: client.opened == 3)
        await feed.aclose()

    asyncio.run(scenario())

    assert [[record.id for record in batch] for batch in deliveries] == [["c1"]]


def test_error_object_on_stream_reconnects(
    firebase_client_factory: Callable[..., FirebaseClient],
    caplog: pytest.LogCaptureFixture,
) -> None:
    deliveries: list[Sequence[Record]] = []
    calls: list[int] = []
    event = {"path": "/", "data": {"c1": client_wire_payload("A")}}
    body = f"event: put\ndata: {json.dumps(event)}\n\n"

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(503, json={"error": {"code": 503, "message": "Database busy"}})
        if len(calls) == 2:
            return httpx.Response(
                200, content=body.encode(), headers={"Content-Type": "text/event-stream"}
            )
        return httpx.Response(200, content=b"", headers={"Content-Type": "text/event-stream"})

    async def scenario() -> None:
        feed = FirebaseRemoteFeed(firebase_client_factory(handler), reconnect_seconds=0)
        feed.subscribe(EntityType.CLIENT, deliveries.append)
        await wait_until(lambda: len(calls) >= 3)
        await feed.aclose()

    with caplog.at_level(logging.WARNING):
        asyncio.run(scenario())

    assert [[record.id for record in batch] for batch in deliveries] == [["c1"]]
    assert "clients stream failed: Database busy" in caplog.text


def test_failing_callback_does_not_stop_stream(caplog: pytest.LogCaptureFixture) -> None:
    received: list[int] = []

    def callback(records: Sequence[Record]) -> None:
        received.append(len(records))
        raise RuntimeError("listener broke")

    client = ScriptedStreamClient(
        [put("/", {"c1": client_wire_payload()}), put("/c2", client_wire_payload("B"))]
    )

    async def scenario() -> None:
        feed = scripted_feed(client)
        feed.subscribe(EntityType.CLIENT, callback)
        await wait_until(lambda: client.opened == 2)
        await feed.aclose()

    with caplog.at_level(logging.ERROR):
        asyncio.run(scenario())

    assert received == [1, 1]
    assert "Snapshot callback failed for clients" in caplog.text


def test_unsubscribe_cancels_stream_task() -> None:
    client = ScriptedStreamClient()

    async def scenario() -> tuple[bool, int]:
        feed = scripted_feed(client)
        handle = feed.subscribe(EntityType.CLIENT, lambda records: None)
        await wait_until(lambda: client.opened == 1)
        feed.unsubscribe(handle)
        await wait_until(lambda: feed.active_subscriptions == 0)
        return handle.active, feed.active_subscriptions

    assert asyncio.run(scenario()) == (False, 0)


def test_view_merges_remote_snapshot_from_scripted_feed() -> None:
    store = InMemoryStore(Client, [make_client("c1", name="Local name"), make_client("c2")])
    client = ScriptedStreamClient(
        [put("/", {"c1": client_wire_payload("Remote name"), "c9": client_wire_payload("New")})]
    )

    async def scenario() -> list[tuple[str, str]]:
        feed = scripted_feed(client)
        view = ClientView(store, feed=feed)
        view.initialize()
        await wait_until(lambda: client.opened == 2)
        records = [(record.id, record.name) for record in view.records]
        view.teardown()
        await feed.aclose()
        return records

    records = asyncio.run(scenario())

    assert sorted(records) == [("c1", "Remote name"), ("c2", "Ayesha Khan"), ("c9", "New")]
