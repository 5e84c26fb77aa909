"""Entity-specific views with the extra operations each record type supports."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from arkive.domain.errors import StoreError, ViewStateError
from arkive.domain.model import (
    Activity,
    Client,
    Document,
    Expense,
    MutationKind,
    Notification,
    Receipt,
    Record,
)

from .policy import MergePolicy
from .view import ReconciledView, Snapshot

if TYPE_CHECKING:
    from arkive.domain.model import DocumentAction
    from arkive.domain.ports import (
        ActivityStore,
        ClientScopedStore,
        DocumentStore,
        NotificationStore,
        ReceiptStore,
        RecordStore,
        RemoteFeed,
    )

log = getLogger(__name__)


class ClientView(ReconciledView[Client]):
    def __init__(
        self,
        store: RecordStore[Client],
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Client, store, feed=feed, policy=policy, rollback_on_failure=rollback_on_failure
        )


class ExpenseView(ReconciledView[Expense]):
    def __init__(
        self,
        store: RecordStore[Expense],
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Expense, store, feed=feed, policy=policy, rollback_on_failure=rollback_on_failure
        )


def _records_for_client[TRecord: Record](
    store: ClientScopedStore[TRecord],
    client_cnic: str,
    entity_label: str,
) -> list[TRecord]:
    try:
        return list(store.get_by_client(client_cnic))
    except StoreError:
        log.exception("Error fetching client %s", entity_label)
        return []


class ReceiptView(ReconciledView[Receipt]):
    def __init__(
        self,
        store: ReceiptStore,
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Receipt, store, feed=feed, policy=policy, rollback_on_failure=rollback_on_failure
        )
        self.receipt_store = store

    def by_client(self, client_cnic: str) -> list[Receipt]:
        """Receipts of one client straight from the store; empty on failure."""

        return _records_for_client(self.receipt_store, client_cnic, "receipts")

    def total_for_client(self, client_cnic: str) -> float:
        return sum(receipt.amount for receipt in self.records if receipt.client_cnic == client_cnic)


class NotificationView(ReconciledView[Notification]):
    def __init__(
        self,
        store: NotificationStore,
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Notification,
            store,
            feed=feed,
            policy=policy,
            rollback_on_failure=rollback_on_failure,
        )
        self.notification_store = store

    @property
    def unread_count(self) -> int:
        return sum(1 for notification in self.records if not notification.read)

    def mark_as_read(self, record_id: str) -> None:
        self._require_ready()
        try:
            self.notification_store.mark_as_read(record_id)
        except StoreError:
            log.exception("Error marking notification %s as read", record_id)
            raise
        current = self.get(record_id)
        if current is not None and not current.read:
            self.apply_local_mutation(MutationKind.UPDATE, replace(current, read=True))

    def mark_all_as_read(self) -> Snapshot[Notification]:
        self._require_ready()
        try:
            self.notification_store.mark_all_as_read()
        except StoreError:
            log.exception("Error marking all notifications as read")
            raise
        self._commit(
            {
                record_id: notification if notification.read else replace(notification, read=True)
                for record_id, notification in self._records.items()
            }
        )
        return self.snapshot


class DocumentView(ReconciledView[Document]):
    def __init__(
        self,
        store: DocumentStore,
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Document, store, feed=feed, policy=policy, rollback_on_failure=rollback_on_failure
        )
        self.document_store = store

    def by_client(self, client_cnic: str) -> list[Document]:
        return _records_for_client(self.document_store, client_cnic, "documents")

    def log_access(
        self,
        document_id: str,
        user_id: str,
        action: DocumentAction,
    ) -> Snapshot[Document]:
        """Record a view/download and reload so the access log is current."""

        self._require_ready()
        try:
            self.document_store.log_access(document_id, user_id, action)
        except StoreError:
            log.exception("Error logging document access for %s", document_id)
            raise
        return self.refetch()


class ActivityView(ReconciledView[Activity]):
    """Newest-first audit trail; entries are appended, never edited or removed."""

    def __init__(
        self,
        store: ActivityStore,
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        super().__init__(
            Activity, store, feed=feed, policy=policy, rollback_on_failure=rollback_on_failure
        )
        self.activity_store = store

    def log(self, user_id: str, action: str, details: str = "") -> Activity:
        return self.create({"user_id": user_id, "action": action, "details": details})

    def by_user(self, user_id: str) -> list[Activity]:
        try:
            return list(self.activity_store.get_by_user(user_id))
        except StoreError:
            log.exception("Error fetching activities of %s", user_id)
            return []

    def update(self, record: Activity) -> None:
        raise ViewStateError(f"Activity {record.id} cannot be changed")

    def delete(self, record_id: str) -> None:
        raise ViewStateError(f"Activity {record_id} cannot be deleted")
