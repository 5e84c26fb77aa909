"""Reconciliation of local and remote records per entity type.

Flow for one entity type:
1) load the local store into an id-keyed mapping
2) subscribe to the remote feed
3) merge local mutations in place and remote snapshots by policy
4) publish a newest-first snapshot after every merge
"""

from __future__ import annotations

from .merge import (
    apply_local_mutation,
    index_records,
    merge_remote_records,
    order_by_recency,
)
from .normalize import TimestampError, to_instant
from .policy import MergePolicy
from .view import ReconciledView, Snapshot, SnapshotListener, ViewState
from .views import (
    ActivityView,
    ClientView,
    DocumentView,
    ExpenseView,
    NotificationView,
    ReceiptView,
)

__all__ = [
    "ActivityView",
    "ClientView",
    "DocumentView",
    "ExpenseView",
    "MergePolicy",
    "NotificationView",
    "ReceiptView",
    "ReconciledView",
    "Snapshot",
    "SnapshotListener",
    "TimestampError",
    "ViewState",
    "apply_local_mutation",
    "index_records",
    "merge_remote_records",
    "order_by_recency",
    "to_instant",
]
