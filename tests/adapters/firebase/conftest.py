from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from arkive.adapters.firebase import FirebaseClient
from arkive.adapters.http_resilience import ResilientClient
from tests.helpers.firebase import make_config

type Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def client_payload() -> dict[str, object]:
    return {
        "name": "Ayesha Khan",
        "cnic": "35202-1234567-1",
        "type": "IRIS",
        "phone": "0300-1234567",
        "createdAt": "2024-03-01T09:00:00Z",
        "updatedAt": "2024-03-01T10:00:00.000Z",
        "lastModified": 1709290800000,
    }


@pytest.fixture
def firebase_client_factory() -> Callable[..., FirebaseClient]:
    def factory(
        handler: Handler,
        *,
        auth_token: str | None = None,
        root_path: str = "",
    ) -> FirebaseClient:
        config = make_config(auth_token=auth_token, root_path=root_path)
        transport = httpx.MockTransport(handler)
        return FirebaseClient(config, ResilientClient(config.resilience, transport=transport))

    return factory
