"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Record categories; the value doubles as table and remote collection name."""

    CLIENT = "clients"
    RECEIPT = "receipts"
    EXPENSE = "expenses"
    NOTIFICATION = "notifications"
    DOCUMENT = "documents"
    ACTIVITY = "activities"


class ClientType(StrEnum):
    IRIS = "IRIS"
    SECP = "SECP"
    PRA = "PRA"
    OTHER = "Other"


class PaymentMethod(StrEnum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    CARD = "card"
    ONLINE = "online"


class NotificationLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class DocumentAction(StrEnum):
    VIEW = "view"
    DOWNLOAD = "download"


class MutationKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
