"""Remote feed streaming collections from Firebase into subscriber callbacks."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from arkive.config.sync import DEFAULT_FEED_RECONNECT_SECONDS
from arkive.domain.errors import FeedError
from arkive.domain.ports import SubscriptionHandle

from .client import FirebaseAPIError
from .stream import RemoteTree, StreamEvent, StreamProtocolError
from .translator import parse_records

if TYPE_CHECKING:
    from arkive.domain.model import EntityType
    from arkive.domain.ports import RemoteFeed, SnapshotCallback

    from .client import FirebaseClient

log = getLogger(__name__)

_RETRYABLE_STATUS = frozenset({408, 429})


def _is_permanent(exc: FirebaseAPIError) -> bool:
    status = exc.status_code
    return status is not None and 400 <= status < 500 and status not in _RETRYABLE_STATUS


class FirebaseRemoteFeed:
    """Runs one streaming task per subscription on the running event loop.

    Callbacks are invoked from that loop, one event at a time. A root ``put``
    delivers the whole collection; later events deliver the complete records
    they touched. Remote deletions are logged and not delivered.
    """

    def __init__(
        self,
        client: FirebaseClient,
        *,
        reconnect_seconds: float = DEFAULT_FEED_RECONNECT_SECONDS,
    ) -> None:
        self.client = client
        self.reconnect_seconds = reconnect_seconds
        self._tasks: dict[int, asyncio.Task[None]] = {}

    def subscribe(self, entity_type: EntityType, callback: SnapshotCallback) -> SubscriptionHandle:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise FeedError(f"Cannot listen to {entity_type} without a running event loop") from exc

        handle = SubscriptionHandle(entity_type)
        task = loop.create_task(
            self._run(handle, callback),
            name=f"firebase-feed-{entity_type}-{handle.handle_id}",
        )
        self._tasks[handle.handle_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(handle.handle_id, None))
        log.info("Listening to %s (subscription %s)", entity_type, handle.handle_id)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        handle.deactivate()
        task = self._tasks.pop(handle.handle_id, None)
        if task is not None:
            task.cancel()
            log.info("Stopped listening to %s", handle.entity_type)

    @property
    def active_subscriptions(self) -> int:
        return len(self._tasks)

    async def aclose(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.client.aclose()

    async def _run(self, handle: SubscriptionHandle, callback: SnapshotCallback) -> None:
        tree = RemoteTree()
        while handle.active:
            try:
                async for event in self.client.stream_collection(handle.entity_type):
                    if not handle.active:
                        return
                    if event.is_terminal:
                        log.warning(
                            "Firebase closed the %s stream (%s)", handle.entity_type, event.event
                        )
                        handle.deactivate()
                        return
                    if event.is_data:
                        self._deliver(handle, tree, event, callback)
                log.info("%s stream ended; reconnecting", handle.entity_type)
            except FirebaseAPIError as exc:
                if _is_permanent(exc):
                    log.error("Giving up on %s stream: %s", handle.entity_type, exc)
                    handle.deactivate()
                    return
                log.warning("%s stream failed: %s", handle.entity_type, exc)
            except (httpx.HTTPError, StreamProtocolError) as exc:
                log.warning("%s stream interrupted: %s", handle.entity_type, exc)
            if handle.active:
                await asyncio.sleep(self.reconnect_seconds)

    def _deliver(
        self,
        handle: SubscriptionHandle,
        tree: RemoteTree,
        event: StreamEvent,
        callback: SnapshotCallback,
    ) -> None:
        change = tree.apply(event)
        if change.removed:
            log.info(
                "Ignoring remote removal of %s %s", handle.entity_type, ", ".join(change.removed)
            )
        if not change.changed and not change.full:
            return
        records = parse_records(
            handle.entity_type,
            {key: tree.child(key) for key in change.changed},
        )
        log.debug("Delivering %s %s from %s event", len(records), handle.entity_type, event.event)
        try:
            callback(records)
        except Exception:
            log.exception("Snapshot callback failed for %s", handle.entity_type)


if TYPE_CHECKING:
    _feed_check: RemoteFeed = FirebaseRemoteFeed(client=None)  # pyright: ignore[reportArgumentType]
