from __future__ import annotations

from dataclasses import replace
from itertools import count
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from arkive.adapters.sqlalchemy import (
    RecordStores,
    SqlAlchemyActivityStore,
    SqlAlchemyClientStore,
    SqlAlchemyDocumentStore,
    SqlAlchemyExpenseStore,
    SqlAlchemyUnitOfWork,
)
from arkive.adapters.sqlalchemy.unit_of_work import shutdown
from arkive.domain.errors import StoreError
from arkive.domain.model import Client, DocumentAction, Expense
from arkive.domain.ports import (
    ActivityStore,
    DocumentStore,
    NotificationStore,
    ReceiptStore,
    RecordStore,
)
from arkive.domain.reconciliation import ClientView
from tests.helpers.records import at, make_client, make_document, make_notification, make_receipt

if TYPE_CHECKING:
    from collections.abc import Callable


def test_stores_satisfy_ports(sqlite_stores: RecordStores) -> None:
    assert isinstance(sqlite_stores.clients, RecordStore)
    assert isinstance(sqlite_stores.receipts, ReceiptStore)
    assert isinstance(sqlite_stores.notifications, NotificationStore)
    assert isinstance(sqlite_stores.documents, DocumentStore)
    assert isinstance(sqlite_stores.activities, ActivityStore)


def test_create_assigns_id_and_timestamps(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    ids = count(1)
    store = SqlAlchemyExpenseStore(clock=lambda: at(30), id_factory=lambda: f"exp-{next(ids)}")

    expense = store.create({"description": "Stationery", "amount": 450.0, "date": at(0)})

    assert expense == Expense(
        id="exp-1",
        description="Stationery",
        amount=450.0,
        date=at(0),
        created_at=at(30),
    )
    assert store.get_all() == [expense]


def test_create_generates_unique_ids(sqlite_stores: RecordStores) -> None:
    first = sqlite_stores.clients.create({"name": "A", "cnic": "1"})
    second = sqlite_stores.clients.create({"name": "B", "cnic": "2"})

    assert first.id != second.id
    assert len(first.id) == 32


@pytest.mark.parametrize(
    "draft",
    [
        {"name": "Missing cnic"},
        {"name": "A", "cnic": "1", "unknown": "field"},
        {"id": "forced", "name": "A", "cnic": "1"},
        {"name": "A", "cnic": "1", "created_at": "2024-01-01"},
    ],
)
def test_create_rejects_invalid_drafts(
    sqlite_stores: RecordStores, draft: dict[str, object]
) -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        sqlite_stores.clients.create(draft)

    assert sqlite_stores.clients.get_all() == []


def test_update_is_an_upsert(sqlite_stores: RecordStores) -> None:
    client = make_client("c1")
    sqlite_stores.clients.update(client)
    sqlite_stores.clients.update(replace(client, name="Renamed"))

    assert [record.name for record in sqlite_stores.clients.get_all()] == ["Renamed"]


def test_delete_of_missing_id_is_a_noop(sqlite_stores: RecordStores) -> None:
    sqlite_stores.clients.update(make_client("c1"))

    sqlite_stores.clients.delete("ghost")
    sqlite_stores.clients.delete("c1")

    assert sqlite_stores.clients.get_all() == []


def test_get_by_client(sqlite_stores: RecordStores) -> None:
    sqlite_stores.receipts.update(make_receipt("r1"))
    sqlite_stores.receipts.update(make_receipt("r2", client_cnic="other"))

    assert [receipt.id for receipt in sqlite_stores.receipts.get_by_client("other")] == ["r2"]


def test_notification_read_flags(sqlite_stores: RecordStores) -> None:
    sqlite_stores.notifications.update(make_notification("n1"))
    sqlite_stores.notifications.update(make_notification("n2", minutes=1))

    sqlite_stores.notifications.mark_as_read("n1")
    with pytest.raises(StoreError, match="Unknown notification"):
        sqlite_stores.notifications.mark_as_read("ghost")

    assert {n.id: n.read for n in sqlite_stores.notifications.get_all()} == {
        "n1": True,
        "n2": False,
    }

    sqlite_stores.notifications.mark_all_as_read()

    assert all(n.read for n in sqlite_stores.notifications.get_all())


def test_log_access_stamps_entry_with_store_clock(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    store = SqlAlchemyDocumentStore(clock=lambda: at(42))
    store.update(make_document("d1"))

    store.log_access("d1", "user-1", DocumentAction.VIEW)

    [document] = store.get_all()
    assert [(e.user_id, e.action, e.timestamp) for e in document.access_log] == [
        ("user-1", DocumentAction.VIEW, at(42))
    ]
    with pytest.raises(StoreError, match="Unknown document"):
        store.log_access("ghost", "user-1", DocumentAction.DOWNLOAD)


def test_activity_store_stamps_and_filters_by_user(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    store = SqlAlchemyActivityStore(clock=lambda: at(7))

    entry = store.create({"user_id": "staff", "action": "delete_receipt", "details": "r1"})
    store.create({"user_id": "admin", "action": "delete_client"})

    assert entry.timestamp == at(7)
    assert store.get_by_user("staff") == [entry]
    assert store.get_by_user("nobody") == []


def test_database_errors_become_store_errors(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    def broken_unit_of_work() -> SqlAlchemyUnitOfWork:
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    store = SqlAlchemyClientStore(unit_of_work_factory=broken_unit_of_work)

    with pytest.raises(StoreError, match="Could not load clients"):
        store.get_all()


def test_store_without_startup_raises_store_error() -> None:
    shutdown()
    store = SqlAlchemyClientStore()

    with pytest.raises(StoreError):
        store.get_all()


def test_view_over_unstarted_store_degrades_to_empty_snapshot() -> None:
    shutdown()
    view = ClientView(SqlAlchemyClientStore())

    snapshot = view.initialize()

    assert snapshot.records == ()
    assert not snapshot.is_loading


@pytest.mark.integration
def test_view_over_sqlite_store_end_to_end(sqlite_stores: RecordStores) -> None:
    sqlite_stores.clients.update(make_client("seed", minutes=1))
    view = ClientView(sqlite_stores.clients)
    view.initialize()

    created = view.create({"name": "Bilal", "cnic": "35202-7654321-3"})
    view.update(replace(created, notes="Follow up in April"))
    view.delete("seed")

    stored = sqlite_stores.clients.get_all()
    assert [client.id for client in stored] == [created.id]
    assert isinstance(stored[0], Client)
    assert stored[0].notes == "Follow up in April"
    assert view.records == tuple(stored)
