"""Domain port definitions for adapters."""

from __future__ import annotations

from .feed import RemoteFeed, SnapshotCallback, SubscriptionHandle
from .persistence import (
    ActivityStore,
    ClientScopedStore,
    DocumentStore,
    NotificationStore,
    ReceiptStore,
    RecordStore,
)

__all__ = [
    "ActivityStore",
    "ClientScopedStore",
    "DocumentStore",
    "NotificationStore",
    "ReceiptStore",
    "RecordStore",
    "RemoteFeed",
    "SnapshotCallback",
    "SubscriptionHandle",
]
