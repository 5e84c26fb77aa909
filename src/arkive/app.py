"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from arkive.adapters.firebase import (
    FirebaseClient,
    FirebaseRemoteFeed,
    PushResult,
    parse_records,
    push_records,
)
from arkive.adapters.sqlalchemy import RecordStores, build_record_stores, is_started, startup
from arkive.config import (
    PreferencesStore,
    get_firebase_config,
    get_storage_config,
    get_sync_config,
)
from arkive.domain.errors import StoreError
from arkive.domain.model import EntityType
from arkive.domain.reconciliation import (
    ActivityView,
    ClientView,
    DocumentView,
    ExpenseView,
    NotificationView,
    ReceiptView,
    ViewState,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from arkive.config import FirebaseConfig, Preferences, SyncConfig
    from arkive.domain.model import Record
    from arkive.domain.ports import RemoteFeed
    from arkive.domain.reconciliation import ReconciledView, Snapshot

log = getLogger(__name__)


@dataclass(slots=True)
class Workspace:
    """The reconciled views of one data directory."""

    clients: ClientView
    receipts: ReceiptView
    expenses: ExpenseView
    notifications: NotificationView
    documents: DocumentView
    activities: ActivityView

    def views(self) -> tuple[ReconciledView[Any], ...]:
        return (
            self.clients,
            self.receipts,
            self.expenses,
            self.notifications,
            self.documents,
            self.activities,
        )

    def view(self, entity_type: EntityType) -> ReconciledView[Record]:
        for view in self.views():
            if view.entity_type == entity_type:
                return view
        raise KeyError(entity_type)

    def open(self, *entity_types: EntityType) -> None:
        """Initialise the requested views (all of them when none are given)."""

        selected = [self.view(entity_type) for entity_type in entity_types] or self.views()
        for view in selected:
            if view.state is ViewState.UNINITIALIZED:
                view.initialize()

    def close(self) -> None:
        for view in self.views():
            if view.state is not ViewState.UNINITIALIZED:
                view.teardown()


def open_local_stores(*, database_uri: str | None = None) -> RecordStores:
    """Start the SQLAlchemy adapter once and return the record stores."""

    if not is_started():
        startup(database_uri=database_uri)
    return build_record_stores()


def build_workspace(
    *,
    stores: RecordStores | None = None,
    feed: RemoteFeed | None = None,
    sync: SyncConfig | None = None,
) -> Workspace:
    effective_stores = stores or open_local_stores()
    effective_sync = sync or get_sync_config()
    options: dict[str, Any] = {
        "feed": feed,
        "policy": effective_sync.merge_policy,
        "rollback_on_failure": effective_sync.rollback_on_failure,
    }
    return Workspace(
        clients=ClientView(effective_stores.clients, **options),
        receipts=ReceiptView(effective_stores.receipts, **options),
        expenses=ExpenseView(effective_stores.expenses, **options),
        notifications=NotificationView(effective_stores.notifications, **options),
        documents=DocumentView(effective_stores.documents, **options),
        activities=ActivityView(effective_stores.activities, **options),
    )


def build_firebase_feed(
    config: FirebaseConfig | None = None,
    *,
    sync: SyncConfig | None = None,
) -> FirebaseRemoteFeed:
    effective_sync = sync or get_sync_config()
    return FirebaseRemoteFeed(
        FirebaseClient(config or get_firebase_config()),
        reconnect_seconds=effective_sync.feed_reconnect_seconds,
    )


def list_records(
    entity_type: EntityType,
    *,
    stores: RecordStores | None = None,
) -> tuple[Record, ...]:
    """Load one entity type from the local store in display order."""

    workspace = build_workspace(stores=stores)
    view = workspace.view(entity_type)
    view.initialize()
    try:
        return view.records
    finally:
        workspace.close()


async def watch_records(
    entity_type: EntityType,
    *,
    seconds: float | None = None,
    stores: RecordStores | None = None,
    feed: FirebaseRemoteFeed | None = None,
    on_snapshot: Callable[[Snapshot[Record]], None] | None = None,
) -> Snapshot[Record]:
    """Reconcile ``entity_type`` with the remote feed for ``seconds`` (or forever)."""

    effective_feed = feed or build_firebase_feed()
    workspace = build_workspace(stores=stores, feed=effective_feed)
    view = workspace.view(entity_type)
    if on_snapshot is not None:
        view.listen(on_snapshot)
    view.initialize()
    log.info("Watching %s (%s local records)", entity_type, len(view.records))
    try:
        if seconds is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(seconds)
        return view.snapshot
    finally:
        workspace.close()
        await effective_feed.aclose()


async def push_local_records(
    entity_type: EntityType,
    *,
    stores: RecordStores | None = None,
    client: FirebaseClient | None = None,
) -> PushResult:
    """Upload every local record of ``entity_type`` to the cloud database."""

    records = list_records(entity_type, stores=stores)
    effective_client = client or FirebaseClient(get_firebase_config())
    async with effective_client:
        return await push_records(effective_client, records)


async def pull_records(
    entity_type: EntityType,
    *,
    stores: RecordStores | None = None,
    client: FirebaseClient | None = None,
) -> tuple[Record, ...]:
    """Merge one fetch of the remote collection into the local records.

    The result is what a watching view would show; the local store is not written.
    """

    effective_client = client or FirebaseClient(get_firebase_config())
    async with effective_client:
        collection = await effective_client.fetch_collection(entity_type)
    remote = parse_records(entity_type, collection)

    workspace = build_workspace(stores=stores)
    view = workspace.view(entity_type)
    view.initialize()
    try:
        view.apply_remote_snapshot(remote)
        log.info("Pulled %s remote %s", len(remote), entity_type)
        return view.records
    finally:
        workspace.close()


async def delete_record(
    entity_type: EntityType,
    record_id: str,
    *,
    user_id: str,
    remote: bool = False,
    stores: RecordStores | None = None,
    client: FirebaseClient | None = None,
) -> None:
    """Delete one record locally, log the activity and optionally remove the cloud copy.

    Without ``remote`` the cloud copy stays and reappears with the next remote snapshot.
    """

    remote_client = (client or FirebaseClient(get_firebase_config())) if remote else None
    workspace = build_workspace(stores=stores)
    workspace.open(entity_type, EntityType.ACTIVITY)
    try:
        view = workspace.view(entity_type)
        if view.get(record_id) is None:
            raise StoreError(f"Unknown {entity_type}: {record_id}")
        view.delete(record_id)
        label = entity_type.value.removesuffix("s")
        workspace.activities.log(user_id, f"delete_{label}", f"Deleted {label} {record_id}")
    finally:
        workspace.close()

    if remote_client is not None:
        async with remote_client:
            await remote_client.delete_record(entity_type, record_id)
        log.info("Deleted %s %s from the cloud database", entity_type, record_id)


def mark_notifications_read(
    *,
    record_id: str | None = None,
    stores: RecordStores | None = None,
) -> int:
    """Mark one notification (or all when ``record_id`` is ``None``) as read.

    Returns the number of unread notifications left.
    """

    workspace = build_workspace(stores=stores)
    view = workspace.notifications
    view.initialize()
    try:
        if record_id is None:
            view.mark_all_as_read()
        else:
            view.mark_as_read(record_id)
        return view.unread_count
    finally:
        workspace.close()


def preferences_store() -> PreferencesStore:
    return PreferencesStore(get_storage_config().preferences_path())


def update_preferences(**changes: bool) -> Preferences:
    preferences = preferences_store().update(**changes)
    log.info(
        "Preferences saved: dark_mode=%s, sidebar_collapsed=%s",
        preferences.dark_mode,
        preferences.sidebar_collapsed,
    )
    return preferences
