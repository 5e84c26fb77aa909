"""Firebase Realtime Database adapter: REST client, event stream and remote feed."""

from __future__ import annotations

from .client import FirebaseAPIError, FirebaseClient
from .feed import FirebaseRemoteFeed
from .push import PushResult, push_records
from .stream import (
    RemoteTree,
    ServerSentEventDecoder,
    StreamEvent,
    StreamProtocolError,
    TreeChange,
)
from .translator import parse_record, parse_records, record_to_payload

__all__ = [
    "FirebaseAPIError",
    "FirebaseClient",
    "FirebaseRemoteFeed",
    "PushResult",
    "RemoteTree",
    "ServerSentEventDecoder",
    "StreamEvent",
    "StreamProtocolError",
    "TreeChange",
    "parse_record",
    "parse_records",
    "push_records",
    "record_to_payload",
]
