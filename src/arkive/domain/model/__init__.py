"""Domain model for Arkive records."""

from __future__ import annotations

from typing import Final

from .base import Record
from .enums import (
    ClientType,
    DocumentAction,
    EntityType,
    MutationKind,
    NotificationLevel,
    PaymentMethod,
)
from .records import AccessEntry, Activity, Client, Document, Expense, Notification, Receipt

RECORD_TYPES: Final[dict[EntityType, type[Record]]] = {
    EntityType.CLIENT: Client,
    EntityType.RECEIPT: Receipt,
    EntityType.EXPENSE: Expense,
    EntityType.NOTIFICATION: Notification,
    EntityType.DOCUMENT: Document,
    EntityType.ACTIVITY: Activity,
}

__all__ = [
    "RECORD_TYPES",
    "AccessEntry",
    "Activity",
    "Client",
    "ClientType",
    "Document",
    "DocumentAction",
    "EntityType",
    "Expense",
    "MutationKind",
    "Notification",
    "NotificationLevel",
    "PaymentMethod",
    "Receipt",
    "Record",
]
