"""
SQLAlchemy table metadata for the Arkive records
sql.func.now() uses UTC for sqlite databases
-> see https://www.sqlite.org/lang_datefunc.html
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)

from arkive.domain.model import (
    ClientType,
    EntityType,
    NotificationLevel,
    PaymentMethod,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

ID_LENGTH: Final[int] = 64


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class AccessLogType(TypeDecorator[list[dict[str, str]]]):
    """JSON list of access entries with ISO timestamps."""

    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: list[dict[str, str]] | None, dialect: Dialect
    ) -> list[dict[str, str]]:
        _ = dialect
        return list(value or [])

    def process_result_value(self, value: object, dialect: Dialect) -> list[dict[str, str]]:
        _ = dialect
        if not isinstance(value, list):
            return []
        items = cast(list[Any], value)
        return [cast(dict[str, str], item) for item in items if isinstance(item, dict)]


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

client_table = Table(
    EntityType.CLIENT.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("name", String, nullable=False),
    Column("cnic", String, nullable=False),
    Column("client_type", Enum(ClientType, native_enum=False), nullable=False),
    Column("phone", String, nullable=False, default=""),
    Column("email", String, nullable=False, default=""),
    Column("notes", String, nullable=False, default=""),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("last_modified", UTCDateTime(), nullable=False),
    Index("ix_clients_cnic", "cnic"),
)

receipt_table = Table(
    EntityType.RECEIPT.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("client_name", String, nullable=False),
    Column("client_cnic", String, nullable=False),
    Column("amount", Float, nullable=False),
    Column("nature_of_work", String, nullable=False, default=""),
    Column("payment_method", Enum(PaymentMethod, native_enum=False), nullable=False),
    Column("date", UTCDateTime(), nullable=False),
    Column("created_by", String, nullable=False, default=""),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("last_modified", UTCDateTime(), nullable=False),
    Index("ix_receipts_client_cnic", "client_cnic"),
)

expense_table = Table(
    EntityType.EXPENSE.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("description", String, nullable=False),
    Column("amount", Float, nullable=False),
    Column("category", String, nullable=False),
    Column("date", UTCDateTime(), nullable=False),
    Column("created_by", String, nullable=False, default=""),
    Column("created_at", UTCDateTime(), nullable=False),
)

notification_table = Table(
    EntityType.NOTIFICATION.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("message", String, nullable=False),
    Column("level", Enum(NotificationLevel, native_enum=False), nullable=False),
    Column("read", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=False),
)

document_table = Table(
    EntityType.DOCUMENT.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("client_cnic", String, nullable=False),
    Column("file_name", String, nullable=False),
    Column("file_type", String, nullable=False, default=""),
    Column("file_size", Integer, nullable=False, default=0),
    Column("tags", JSON, nullable=False, default=list),
    Column("uploaded_by", String, nullable=False, default=""),
    Column("uploaded_at", UTCDateTime(), nullable=False),
    Column("access_log", AccessLogType(), nullable=False, default=list),
    Index("ix_documents_client_cnic", "client_cnic"),
)

activity_table = Table(
    EntityType.ACTIVITY.value,
    metadata,
    Column("id", String(ID_LENGTH), primary_key=True),
    Column("user_id", String, nullable=False),
    Column("action", String, nullable=False),
    Column("details", String, nullable=False, default=""),
    Column("timestamp", UTCDateTime(), nullable=False),
    Index("ix_activities_user_id", "user_id"),
)

TABLE_BY_ENTITY_TYPE: Final[dict[EntityType, Table]] = {
    EntityType.CLIENT: client_table,
    EntityType.RECEIPT: receipt_table,
    EntityType.EXPENSE: expense_table,
    EntityType.NOTIFICATION: notification_table,
    EntityType.DOCUMENT: document_table,
    EntityType.ACTIVITY: activity_table,
}


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the record metadata."""

    log.info("Creating all tables")
    metadata.create_all(engine)
