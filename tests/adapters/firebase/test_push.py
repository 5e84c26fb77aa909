from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import httpx
import pytest

from arkive.adapters.firebase import FirebaseClient, PushResult, push_records
from tests.helpers.records import make_expense


def test_push_records_reports_each_record(
    firebase_client_factory: Callable[..., FirebaseClient],
    caplog: pytest.LogCaptureFixture,
) -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path == "/expenses/e2.json":
            return httpx.Response(403, json={"error": "Permission denied"})
        return httpx.Response(200, content=request.content)

    async def scenario() -> PushResult:
        async with firebase_client_factory(handler) as client:
            return await push_records(client, [make_expense("e1"), make_expense("e2")])

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(scenario())

    assert paths == ["/expenses/e1.json", "/expenses/e2.json"]
    assert result == PushResult(pushed=["e1"], failed=["e2"])
    assert not result.ok
    assert "Failed to push expenses e2" in caplog.text


def test_push_records_survives_transport_errors(
    firebase_client_factory: Callable[..., FirebaseClient],
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    async def scenario() -> PushResult:
        async with firebase_client_factory(handler) as client:
            return await push_records(client, [make_expense("e1")])

    result = asyncio.run(scenario())

    assert result.failed == ["e1"]
    assert result.pushed == []


def test_push_of_nothing_is_ok(firebase_client_factory: Callable[..., FirebaseClient]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async def scenario() -> PushResult:
        async with firebase_client_factory(handler) as client:
            return await push_records(client, [])

    assert asyncio.run(scenario()).ok


def test_push_records_reports_error_objects_as_failures(
    firebase_client_factory: Callable[..., FirebaseClient],
    caplog: pytest.LogCaptureFixture,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/expenses/e1.json":
            return httpx.Response(400, json={"error": {"code": 400, "message": "Invalid data"}})
        return httpx.Response(200, content=request.content)

    async def scenario() -> PushResult:
        async with firebase_client_factory(handler) as client:
            return await push_records(client, [make_expense("e1"), make_expense("e2")])

    with caplog.at_level(logging.WARNING):
        result = asyncio.run(scenario())

    assert result == PushResult(pushed=["e2"], failed=["e1"])
    assert "Failed to push expenses e1: Invalid data" in caplog.text
