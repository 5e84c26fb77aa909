"""Ports for the local record store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from arkive.domain.model import Activity, Document, Notification, Receipt, Record

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from arkive.domain.model import DocumentAction


@runtime_checkable
class RecordStore[TRecord: Record](Protocol):
    """CRUD contract of the on-device store for one entity type.

    Every method raises :class:`arkive.domain.errors.StoreError` when the store
    cannot be accessed.
    """

    def get_all(self) -> Sequence[TRecord]: ...

    def create(self, draft: Mapping[str, object]) -> TRecord:
        """Persist ``draft`` and return the canonical record with id and timestamps."""
        ...

    def update(self, record: TRecord) -> None: ...

    def delete(self, record_id: str) -> None: ...


@runtime_checkable
class ClientScopedStore[TRecord: Record](RecordStore[TRecord], Protocol):
    """Store whose records belong to a client identified by CNIC."""

    def get_by_client(self, client_cnic: str) -> Sequence[TRecord]: ...


@runtime_checkable
class ReceiptStore(ClientScopedStore[Receipt], Protocol):
    """Persistence contract for receipts."""


@runtime_checkable
class NotificationStore(RecordStore[Notification], Protocol):
    """Persistence contract for notifications."""

    def mark_as_read(self, record_id: str) -> None: ...

    def mark_all_as_read(self) -> None: ...


@runtime_checkable
class DocumentStore(ClientScopedStore[Document], Protocol):
    """Persistence contract for the document vault."""

    def log_access(self, document_id: str, user_id: str, action: DocumentAction) -> None: ...


@runtime_checkable
class ActivityStore(RecordStore[Activity], Protocol):
    """Persistence contract for the append-only activity log."""

    def get_by_user(self, user_id: str) -> Sequence[Activity]: ...
