"""Local record stores implementing the persistence ports on SQLAlchemy."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import contextmanager
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, cast
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from arkive.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from arkive.domain.errors import StoreError
from arkive.domain.model import (
    AccessEntry,
    Activity,
    Client,
    Document,
    Expense,
    Notification,
    Receipt,
    Record,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from arkive.adapters.sqlalchemy.repositories import SqlAlchemyRecordRepository
    from arkive.domain.model import DocumentAction, EntityType

UnitOfWorkFactory = Callable[[], SqlAlchemyUnitOfWork]
Clock = Callable[[], datetime]
IdFactory = Callable[[], str]

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def new_record_id() -> str:
    return uuid4().hex


class SqlAlchemyRecordStore[TRecord: Record]:
    """Record store for one entity type; every call runs in its own unit of work."""

    def __init__(
        self,
        record_cls: type[TRecord],
        *,
        unit_of_work_factory: UnitOfWorkFactory = SqlAlchemyUnitOfWork,
        clock: Clock = _utcnow,
        id_factory: IdFactory = new_record_id,
    ) -> None:
        self.record_cls = record_cls
        self.unit_of_work_factory = unit_of_work_factory
        self.clock = clock
        self.id_factory = id_factory

    @property
    def entity_type(self) -> EntityType:
        return self.record_cls.ENTITY_TYPE

    def get_all(self) -> Sequence[TRecord]:
        with self._unit_of_work("load") as uow:
            return self._repository(uow).list_all()

    def create(self, draft: Mapping[str, object]) -> TRecord:
        try:
            record = self.record_cls.from_draft(
                draft,
                record_id=self.id_factory(),
                now=self.clock(),
            )
        except TypeError as exc:
            raise ValueError(f"Invalid {self.entity_type} draft: {exc}") from exc

        with self._unit_of_work("create") as uow:
            self._repository(uow).add(record)
            uow.commit()
        log.debug("Created %s %s", self.entity_type, record.id)
        return record

    def update(self, record: TRecord) -> None:
        with self._unit_of_work("update") as uow:
            self._repository(uow).save(record)
            uow.commit()

    def delete(self, record_id: str) -> None:
        with self._unit_of_work("delete") as uow:
            removed = self._repository(uow).remove(record_id)
            uow.commit()
        if not removed:
            log.debug("Delete of unknown %s %s ignored", self.entity_type, record_id)

    @contextmanager
    def _unit_of_work(self, action: str) -> Iterator[SqlAlchemyUnitOfWork]:
        try:
            with self.unit_of_work_factory() as uow:
                yield uow
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not {action} {self.entity_type}: {exc}") from exc

    def _repository(self, uow: SqlAlchemyUnitOfWork) -> SqlAlchemyRecordRepository[TRecord]:
        return cast(
            "SqlAlchemyRecordRepository[TRecord]",
            uow.repositories.for_type(self.entity_type),
        )


class SqlAlchemyClientStore(SqlAlchemyRecordStore[Client]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Client, **kwargs)  # pyright: ignore[reportArgumentType]


class SqlAlchemyExpenseStore(SqlAlchemyRecordStore[Expense]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Expense, **kwargs)  # pyright: ignore[reportArgumentType]


class SqlAlchemyReceiptStore(SqlAlchemyRecordStore[Receipt]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Receipt, **kwargs)  # pyright: ignore[reportArgumentType]

    def get_by_client(self, client_cnic: str) -> Sequence[Receipt]:
        with self._unit_of_work("load client") as uow:
            return uow.repositories.receipts.list_by_client(client_cnic)


class SqlAlchemyNotificationStore(SqlAlchemyRecordStore[Notification]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Notification, **kwargs)  # pyright: ignore[reportArgumentType]

    def mark_as_read(self, record_id: str) -> None:
        with self._unit_of_work("mark read") as uow:
            found = uow.repositories.notifications.mark_read(record_id)
            uow.commit()
        if not found:
            raise StoreError(f"Unknown notification: {record_id}")

    def mark_all_as_read(self) -> None:
        with self._unit_of_work("mark all read") as uow:
            changed = uow.repositories.notifications.mark_all_read()
            uow.commit()
        log.debug("Marked %s notifications as read", changed)


class SqlAlchemyDocumentStore(SqlAlchemyRecordStore[Document]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Document, **kwargs)  # pyright: ignore[reportArgumentType]

    def get_by_client(self, client_cnic: str) -> Sequence[Document]:
        with self._unit_of_work("load client") as uow:
            return uow.repositories.documents.list_by_client(client_cnic)

    def log_access(self, document_id: str, user_id: str, action: DocumentAction) -> None:
        entry = AccessEntry(user_id=user_id, action=action, timestamp=self.clock())
        with self._unit_of_work("log access for") as uow:
            found = uow.repositories.documents.append_access(document_id, entry)
            uow.commit()
        if not found:
            raise StoreError(f"Unknown document: {document_id}")


class SqlAlchemyActivityStore(SqlAlchemyRecordStore[Activity]):
    def __init__(self, **kwargs: object) -> None:
        super().__init__(Activity, **kwargs)  # pyright: ignore[reportArgumentType]

    def get_by_user(self, user_id: str) -> Sequence[Activity]:
        with self._unit_of_work("load user") as uow:
            return uow.repositories.activities.list_by_user(user_id)


if TYPE_CHECKING:
    from arkive.domain.ports import (
        ActivityStore,
        DocumentStore,
        NotificationStore,
        ReceiptStore,
        RecordStore,
    )

    _client_store_check: RecordStore[Client] = SqlAlchemyClientStore()
    _receipt_store_check: ReceiptStore = SqlAlchemyReceiptStore()
    _notification_store_check: NotificationStore = SqlAlchemyNotificationStore()
    _document_store_check: DocumentStore = SqlAlchemyDocumentStore()
    _activity_store_check: ActivityStore = SqlAlchemyActivityStore()
