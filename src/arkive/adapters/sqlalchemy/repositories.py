"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, insert, select, update

from arkive.adapters.sqlalchemy.mappings import TABLE_BY_ENTITY_TYPE
from arkive.domain.model import (
    AccessEntry,
    Activity,
    Client,
    Document,
    DocumentAction,
    Expense,
    Notification,
    Receipt,
    Record,
)
from arkive.domain.reconciliation.normalize import to_instant

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import ColumnElement
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session


def _rowcount(result: object) -> int:
    return cast("CursorResult[Any]", result).rowcount


class SqlAlchemyRecordRepository[TRecord: Record]:
    """Core-level persistence for one record type; rows map 1:1 onto fields."""

    def __init__(self, session: Session, record_cls: type[TRecord]) -> None:
        self.session = session
        self._record_cls = record_cls
        self._table = TABLE_BY_ENTITY_TYPE[record_cls.ENTITY_TYPE]

    def list_all(self) -> list[TRecord]:
        recency = self._table.c[self._record_cls.RECENCY_FIELD]
        stmt = select(self._table).order_by(recency.desc())
        return [self._from_row(row) for row in self.session.execute(stmt).mappings()]

    def get(self, record_id: str) -> TRecord | None:
        stmt = select(self._table).where(self._table.c.id == record_id)
        row = self.session.execute(stmt).mappings().one_or_none()
        return None if row is None else self._from_row(row)

    def add(self, record: TRecord) -> None:
        self.session.execute(insert(self._table).values(**self._to_row(record)))

    def save(self, record: TRecord) -> None:
        """Insert or replace ``record``."""

        values = self._to_row(record)
        values.pop("id")
        result = self.session.execute(
            update(self._table).where(self._table.c.id == record.id).values(**values)
        )
        if _rowcount(result) == 0:
            self.add(record)

    def remove(self, record_id: str) -> bool:
        result = self.session.execute(delete(self._table).where(self._table.c.id == record_id))
        return _rowcount(result) > 0

    def _where(self, *criteria: ColumnElement[bool]) -> list[TRecord]:
        recency = self._table.c[self._record_cls.RECENCY_FIELD]
        stmt = select(self._table).where(*criteria).order_by(recency.desc())
        return [self._from_row(row) for row in self.session.execute(stmt).mappings()]

    def _to_row(self, record: TRecord) -> dict[str, object]:
        return {field.name: getattr(record, field.name) for field in fields(record)}

    def _from_row(self, row: Mapping[str, Any]) -> TRecord:
        return self._record_cls(**row)


class SqlAlchemyClientRepository(SqlAlchemyRecordRepository[Client]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Client)


class SqlAlchemyActivityRepository(SqlAlchemyRecordRepository[Activity]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Activity)

    def list_by_user(self, user_id: str) -> list[Activity]:
        return self._where(self._table.c.user_id == user_id)


class SqlAlchemyExpenseRepository(SqlAlchemyRecordRepository[Expense]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Expense)


class SqlAlchemyReceiptRepository(SqlAlchemyRecordRepository[Receipt]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Receipt)

    def list_by_client(self, client_cnic: str) -> list[Receipt]:
        return self._where(self._table.c.client_cnic == client_cnic)


class SqlAlchemyNotificationRepository(SqlAlchemyRecordRepository[Notification]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Notification)

    def mark_read(self, record_id: str) -> bool:
        result = self.session.execute(
            update(self._table).where(self._table.c.id == record_id).values(read=True)
        )
        return _rowcount(result) > 0

    def mark_all_read(self) -> int:
        result = self.session.execute(
            update(self._table).where(self._table.c.read.is_(False)).values(read=True)
        )
        return _rowcount(result)


class SqlAlchemyDocumentRepository(SqlAlchemyRecordRepository[Document]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Document)

    def list_by_client(self, client_cnic: str) -> list[Document]:
        return self._where(self._table.c.client_cnic == client_cnic)

    def append_access(self, document_id: str, entry: AccessEntry) -> bool:
        document = self.get(document_id)
        if document is None:
            return False
        self.save(replace(document, access_log=(*document.access_log, entry)))
        return True

    def _to_row(self, record: Document) -> dict[str, object]:
        row = super()._to_row(record)
        row["tags"] = list(record.tags)
        row["access_log"] = [
            {
                "user_id": entry.user_id,
                "action": entry.action.value,
                "timestamp": entry.timestamp.isoformat(),
            }
            for entry in record.access_log
        ]
        return row

    def _from_row(self, row: Mapping[str, Any]) -> Document:
        values = dict(row)
        values["tags"] = tuple(str(tag) for tag in values.get("tags") or ())
        values["access_log"] = tuple(
            AccessEntry(
                user_id=item["user_id"],
                action=DocumentAction(item["action"]),
                timestamp=to_instant(item["timestamp"]),
            )
            for item in values.get("access_log") or ()
        )
        return Document(**values)
