"""SQLAlchemy adapter package for Arkive's local record store."""

from __future__ import annotations

from dataclasses import dataclass

from .mappings import TABLE_BY_ENTITY_TYPE, create_all_tables, metadata
from .repositories import (
    SqlAlchemyActivityRepository,
    SqlAlchemyClientRepository,
    SqlAlchemyDocumentRepository,
    SqlAlchemyExpenseRepository,
    SqlAlchemyNotificationRepository,
    SqlAlchemyReceiptRepository,
    SqlAlchemyRecordRepository,
)
from .store import (
    SqlAlchemyActivityStore,
    SqlAlchemyClientStore,
    SqlAlchemyDocumentStore,
    SqlAlchemyExpenseStore,
    SqlAlchemyNotificationStore,
    SqlAlchemyReceiptStore,
    SqlAlchemyRecordStore,
)
from .unit_of_work import (
    RecordRepositories,
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)


@dataclass(frozen=True, slots=True)
class RecordStores:
    clients: SqlAlchemyClientStore
    receipts: SqlAlchemyReceiptStore
    expenses: SqlAlchemyExpenseStore
    notifications: SqlAlchemyNotificationStore
    documents: SqlAlchemyDocumentStore
    activities: SqlAlchemyActivityStore


def build_record_stores() -> RecordStores:
    """Create one store per entity type sharing the adapter's engine."""

    return RecordStores(
        clients=SqlAlchemyClientStore(),
        receipts=SqlAlchemyReceiptStore(),
        expenses=SqlAlchemyExpenseStore(),
        notifications=SqlAlchemyNotificationStore(),
        documents=SqlAlchemyDocumentStore(),
        activities=SqlAlchemyActivityStore(),
    )


__all__ = [
    "TABLE_BY_ENTITY_TYPE",
    "RecordRepositories",
    "RecordStores",
    "SqlAlchemyActivityRepository",
    "SqlAlchemyActivityStore",
    "SqlAlchemyClientRepository",
    "SqlAlchemyClientStore",
    "SqlAlchemyDocumentRepository",
    "SqlAlchemyDocumentStore",
    "SqlAlchemyExpenseRepository",
    "SqlAlchemyExpenseStore",
    "SqlAlchemyNotificationRepository",
    "SqlAlchemyNotificationStore",
    "SqlAlchemyReceiptRepository",
    "SqlAlchemyReceiptStore",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRecordStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "build_record_stores",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
