"""Reconciled record view for a single entity type.

A view owns the id-keyed mapping of one entity type and publishes immutable
snapshots of it. Two sources feed the mapping:

- local mutations issued through :meth:`ReconciledView.create`,
  :meth:`ReconciledView.update` and :meth:`ReconciledView.delete`, which call the
  local store and merge the result;
- snapshots pushed by a :class:`~arkive.domain.ports.RemoteFeed`, merged with
  :meth:`ReconciledView.apply_remote_snapshot`.

Every merge runs to completion before the next one starts; the feed adapters
deliver on the caller's event loop, so no locking is involved.

Lifecycle: ``UNINITIALIZED -> LOADING -> READY`` on :meth:`initialize` and back to
``UNINITIALIZED`` on :meth:`teardown`. Failures while loading end in ``READY``
with an empty snapshot.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from arkive.domain.errors import FeedError, StoreError, ViewStateError
from arkive.domain.model import EntityType, MutationKind, Record

from .merge import (
    apply_local_mutation,
    index_records,
    merge_remote_records,
    order_by_recency,
    remove_record,
    restore_record,
)
from .policy import MergePolicy

if TYPE_CHECKING:
    from arkive.domain.ports import RecordStore, RemoteFeed, SubscriptionHandle

log = getLogger(__name__)


class ViewState(StrEnum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class Snapshot[TRecord: Record]:
    """Deduplicated, newest-first view of one entity type."""

    records: tuple[TRecord, ...] = ()
    is_loading: bool = True
    pending: frozenset[str] = field(default_factory=frozenset[str])

    def __len__(self) -> int:
        return len(self.records)

    def ids(self) -> tuple[str, ...]:
        return tuple(record.id for record in self.records)

    def get(self, record_id: str) -> TRecord | None:
        for record in self.records:
            if record.id == record_id:
                return record
        return None


type SnapshotListener[TRecord: Record] = Callable[[Snapshot[TRecord]], None]


class ReconciledView[TRecord: Record]:
    """Merge local and remote records of one entity type into a single snapshot."""

    def __init__(
        self,
        record_type: type[TRecord],
        store: RecordStore[TRecord],
        *,
        feed: RemoteFeed | None = None,
        policy: MergePolicy = MergePolicy.REMOTE_WINS,
        rollback_on_failure: bool = True,
    ) -> None:
        self.record_type = record_type
        self.store = store
        self.feed = feed
        self.policy = policy
        self.rollback_on_failure = rollback_on_failure
        self._state = ViewState.UNINITIALIZED
        self._records: dict[str, TRecord] = {}
        self._pending: set[str] = set()
        self._listeners: list[SnapshotListener[TRecord]] = []
        self._handle: SubscriptionHandle | None = None
        self._generation = 0

    # Read side -------------------------------------------------------------------

    @property
    def entity_type(self) -> EntityType:
        return self.record_type.ENTITY_TYPE

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def snapshot(self) -> Snapshot[TRecord]:
        return Snapshot(
            records=tuple(self._records.values()),
            is_loading=self._state is not ViewState.READY,
            pending=frozenset(self._pending),
        )

    @property
    def records(self) -> tuple[TRecord, ...]:
        return tuple(self._records.values())

    @property
    def is_loading(self) -> bool:
        return self._state is not ViewState.READY

    @property
    def subscription(self) -> SubscriptionHandle | None:
        return self._handle

    def get(self, record_id: str) -> TRecord | None:
        return self._records.get(record_id)

    def listen(self, listener: SnapshotListener[TRecord]) -> Callable[[], None]:
        """Register ``listener`` for every published snapshot; returns the remover."""

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # Lifecycle -------------------------------------------------------------------

    def initialize(self) -> Snapshot[TRecord]:
        """Load the local store, then subscribe to the remote feed."""

        if self._state is not ViewState.UNINITIALIZED:
            raise ViewStateError(f"{self.entity_type} view is already {self._state}")

        self._state = ViewState.LOADING
        fetched = self._fetch_all()
        self._records = index_records(order_by_recency(fetched or ()))
        self._state = ViewState.READY
        log.info("Loaded %s %s from local store", len(self._records), self.entity_type)
        self._subscribe()
        self._publish()
        return self.snapshot

    def teardown(self) -> None:
        """Stop processing remote snapshots and reset to ``UNINITIALIZED``."""

        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.deactivate()
            if self.feed is not None:
                try:
                    self.feed.unsubscribe(handle)
                except FeedError:
                    log.warning("Error removing %s listener", self.entity_type, exc_info=True)
        self._state = ViewState.UNINITIALIZED
        self._records = {}
        self._pending.clear()
        self._publish()

    def refetch(self) -> Snapshot[TRecord]:
        """Reload from the local store; keeps the current snapshot on failure."""

        self._require_ready()
        fetched = self._fetch_all()
        if fetched is None:
            return self.snapshot
        self._commit(index_records(order_by_recency(fetched)))
        return self.snapshot

    # Merge entry points --------------------------------------------------------

    def apply_local_mutation(self, kind: MutationKind, record: TRecord) -> Snapshot[TRecord]:
        """Merge a confirmed local change into the view."""

        self._require_ready()
        self._check_type(record)
        self._commit(apply_local_mutation(self._records, kind, record))
        return self.snapshot

    def apply_remote_snapshot(self, records: object) -> bool:
        """Merge a remote snapshot; returns whether anything was applied.

        Non-sequence input and foreign items are logged and skipped. Nothing is
        ever removed by a remote snapshot.
        """

        if self._state is not ViewState.READY:
            log.debug("Dropping %s snapshot for %s view", self.entity_type, self._state)
            return False
        if isinstance(records, str | bytes | Mapping) or not isinstance(records, Sequence):
            log.warning(
                "Invalid %s data from remote feed: %s",
                self.entity_type,
                type(records).__name__,
            )
            return False

        items: Sequence[object] = records  # pyright: ignore[reportUnknownVariableType]
        accepted = [item for item in items if isinstance(item, self.record_type)]
        skipped = len(items) - len(accepted)
        if skipped:
            log.warning("Skipped %s malformed %s from remote feed", skipped, self.entity_type)

        merged = merge_remote_records(self._records, accepted, policy=self.policy)
        self._commit(index_records(order_by_recency(merged.values())))
        log.info("%s updated from remote feed: %s items", self.entity_type, len(accepted))
        return True

    # Mutations -------------------------------------------------------------------

    def create(self, draft: Mapping[str, object]) -> TRecord:
        """Persist a new record and put it at the front of the view.

        Invalid drafts surface as the store's ``ValueError``, logged like store failures.
        """

        self._require_ready()
        try:
            record = self.store.create(draft)
        except StoreError:
            log.exception("Error creating %s record", self.entity_type)
            raise
        except ValueError:
            log.exception("Rejected %s draft", self.entity_type)
            raise
        self._commit(apply_local_mutation(self._records, MutationKind.CREATE, record))
        return record

    def update(self, record: TRecord) -> None:
        """Replace ``record`` optimistically, then persist it.

        When the store rejects the change and rollback is enabled, the previous
        version is restored unless a newer change has replaced the entry already.
        """

        self._require_ready()
        self._check_type(record)
        previous = self._records.get(record.id)
        self._pending.add(record.id)
        self._commit(apply_local_mutation(self._records, MutationKind.UPDATE, record))
        try:
            self.store.update(record)
        except StoreError:
            log.exception("Error updating %s record %s", self.entity_type, record.id)
            if (
                self.rollback_on_failure
                and previous is not None
                and self._records.get(record.id) is record
            ):
                self._records = apply_local_mutation(self._records, MutationKind.UPDATE, previous)
            raise
        finally:
            self._pending.discard(record.id)
            self._publish()

    def delete(self, record_id: str) -> None:
        """Remove ``record_id`` optimistically, then delete it from the store."""

        self._require_ready()
        previous = self._records.get(record_id)
        position = list(self._records).index(record_id) if previous is not None else 0
        self._pending.add(record_id)
        self._commit(remove_record(self._records, record_id))
        try:
            self.store.delete(record_id)
        except StoreError:
            log.exception("Error deleting %s record %s", self.entity_type, record_id)
            if (
                self.rollback_on_failure
                and previous is not None
                and record_id not in self._records
            ):
                self._records = restore_record(self._records, previous, position=position)
            raise
        finally:
            self._pending.discard(record_id)
            self._publish()

    # Internals -------------------------------------------------------------------

    def _fetch_all(self) -> Sequence[TRecord] | None:
        try:
            return self.store.get_all()
        except StoreError:
            log.exception("Error fetching %s", self.entity_type)
            return None

    def _subscribe(self) -> None:
        if self.feed is None:
            return
        generation = self._generation

        def deliver(records: Sequence[Record]) -> None:
            if generation != self._generation:
                log.debug("Dropping %s snapshot from a stale subscription", self.entity_type)
                return
            self.apply_remote_snapshot(records)

        try:
            self._handle = self.feed.subscribe(self.entity_type, deliver)
        except FeedError:
            log.exception("Failed to set up %s realtime listener", self.entity_type)

    def _commit(self, records: dict[str, TRecord]) -> None:
        self._records = records
        self._publish()

    def _publish(self) -> None:
        snapshot = self.snapshot
        for listener in tuple(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("Snapshot listener failed for %s", self.entity_type)

    def _require_ready(self) -> None:
        if self._state is not ViewState.READY:
            raise ViewStateError(f"{self.entity_type} view is {self._state}, not ready")

    def _check_type(self, record: object) -> None:
        if not isinstance(record, self.record_type):
            raise TypeError(
                f"{self.entity_type} view expects {self.record_type.__name__}, "
                f"got {type(record).__name__}"
            )
