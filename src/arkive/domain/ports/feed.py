"""Ports for push-based remote feeds."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from itertools import count
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from arkive.domain.model import EntityType, Record

type SnapshotCallback = Callable[[Sequence[Record]], None]

_handle_ids = count(1)


@dataclass(slots=True, eq=False)
class SubscriptionHandle:
    """Token identifying one subscription of a feed.

    ``active`` flips to ``False`` once the subscription is cancelled; deliveries for
    inactive handles must be dropped.
    """

    entity_type: EntityType
    handle_id: int = field(default_factory=lambda: next(_handle_ids))
    active: bool = True

    def deactivate(self) -> None:
        self.active = False


@runtime_checkable
class RemoteFeed(Protocol):
    """Subscription contract of the cloud database.

    ``subscribe`` raises :class:`arkive.domain.errors.FeedError` when the
    subscription cannot be established. Each callback invocation carries an
    independent full or partial snapshot of normalised records.
    """

    def subscribe(
        self,
        entity_type: EntityType,
        callback: SnapshotCallback,
    ) -> SubscriptionHandle: ...

    def unsubscribe(self, handle: SubscriptionHandle) -> None: ...
