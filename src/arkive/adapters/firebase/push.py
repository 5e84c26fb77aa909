"""Upload local records to the Firebase database."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from .client import FirebaseAPIError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from arkive.domain.model import Record

    from .client import FirebaseClient

log = getLogger(__name__)


@dataclass(slots=True)
class PushResult:
    pushed: list[str] = field(default_factory=list[str])
    failed: list[str] = field(default_factory=list[str])

    @property
    def ok(self) -> bool:
        return not self.failed


async def push_records(client: FirebaseClient, records: Iterable[Record]) -> PushResult:
    """Write every record under its id; failures are logged and reported, not raised."""

    result = PushResult()
    for record in records:
        try:
            await client.put_record(record)
        except (FirebaseAPIError, httpx.HTTPError) as exc:
            log.warning("Failed to push %s %s: %s", record.entity_type, record.id, exc)
            result.failed.append(record.id)
            continue
        result.pushed.append(record.id)
    log.info("Pushed %s records (%s failed)", len(result.pushed), len(result.failed))
    return result
