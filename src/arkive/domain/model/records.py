"""Concrete record types for the reconciled entity types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from .base import Record
from .enums import ClientType, DocumentAction, EntityType, NotificationLevel, PaymentMethod


@dataclass(frozen=True, slots=True, kw_only=True)
class Client(Record):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CLIENT
    RECENCY_FIELD: ClassVar[str] = "updated_at"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("created_at", "updated_at", "last_modified")
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("created_at", "updated_at", "last_modified")

    name: str
    cnic: str
    client_type: ClientType = ClientType.OTHER
    phone: str = ""
    email: str = ""
    notes: str = ""
    created_at: datetime
    updated_at: datetime
    last_modified: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Receipt(Record):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECEIPT
    RECENCY_FIELD: ClassVar[str] = "created_at"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("created_at", "last_modified")
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("date", "created_at", "last_modified")

    client_name: str
    client_cnic: str
    amount: float
    nature_of_work: str = ""
    payment_method: PaymentMethod = PaymentMethod.CASH
    date: datetime
    created_by: str = ""
    created_at: datetime
    last_modified: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Expense(Record):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.EXPENSE
    RECENCY_FIELD: ClassVar[str] = "created_at"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("created_at",)
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("date", "created_at")

    description: str
    amount: float
    category: str = "other"
    date: datetime
    created_by: str = ""
    created_at: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Notification(Record):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.NOTIFICATION
    RECENCY_FIELD: ClassVar[str] = "created_at"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("created_at",)
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("created_at",)

    message: str
    level: NotificationLevel = NotificationLevel.INFO
    read: bool = False
    created_at: datetime


@dataclass(frozen=True, slots=True)
class AccessEntry:
    """One view/download event in a document's access log."""

    user_id: str
    action: DocumentAction
    timestamp: datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class Document(Record):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.DOCUMENT
    RECENCY_FIELD: ClassVar[str] = "uploaded_at"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("uploaded_at",)
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("uploaded_at",)

    client_cnic: str
    file_name: str
    file_type: str = ""
    file_size: int = 0
    tags: tuple[str, ...] = ()
    uploaded_by: str = ""
    uploaded_at: datetime
    access_log: tuple[AccessEntry, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class Activity(Record):
    """Append-only audit entry such as ``delete_client`` by one user."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ACTIVITY
    RECENCY_FIELD: ClassVar[str] = "timestamp"
    STAMPED_FIELDS: ClassVar[tuple[str, ...]] = ("timestamp",)
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]] = ("timestamp",)

    user_id: str
    action: str
    details: str = ""
    timestamp: datetime
