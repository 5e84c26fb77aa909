"""Pure merge functions over an id-keyed record mapping.

The mapping is an insertion-ordered ``dict``; callers derive the exposed ordering
from it with :func:`order_by_recency` or keep the mapping order for local
mutations, which only touch one entry.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from arkive.domain.model import MutationKind, Record

from .policy import MergePolicy

if TYPE_CHECKING:
    from collections.abc import Iterable


def index_records[TRecord: Record](records: Iterable[TRecord]) -> dict[str, TRecord]:
    """Key ``records`` by id; later duplicates replace earlier ones."""

    indexed: dict[str, TRecord] = {}
    for record in records:
        indexed[record.id] = record
    return indexed


def order_by_recency[TRecord: Record](records: Iterable[TRecord]) -> tuple[TRecord, ...]:
    """Newest first; equal instants keep their iteration order."""

    return tuple(sorted(records, key=lambda record: record.recency, reverse=True))


def apply_local_mutation[TRecord: Record](
    current: Mapping[str, TRecord],
    kind: MutationKind,
    record: TRecord,
) -> dict[str, TRecord]:
    """Return a new mapping with one local mutation applied.

    ``create`` puts ``record`` first, ``update`` replaces the entry in place and
    ignores unknown ids, ``delete`` drops the entry with ``record.id``.
    """

    if kind is MutationKind.CREATE:
        merged = {record.id: record}
        merged.update((key, value) for key, value in current.items() if key != record.id)
        return merged
    if kind is MutationKind.UPDATE:
        if record.id not in current:
            return dict(current)
        return {key: record if key == record.id else value for key, value in current.items()}
    if kind is MutationKind.DELETE:
        return remove_record(current, record.id)
    raise ValueError(f"Unsupported mutation kind: {kind!r}")


def merge_remote_records[TRecord: Record](
    current: Mapping[str, TRecord],
    remote: Sequence[TRecord],
    *,
    policy: MergePolicy = MergePolicy.REMOTE_WINS,
) -> dict[str, TRecord]:
    """Upsert ``remote`` into ``current`` and return the merged mapping.

    Ids missing from ``remote`` are kept: the feed only adds or overwrites.
    """

    merged = dict(current)
    for record in remote:
        merged[record.id] = policy.prefer(merged.get(record.id), record)  # pyright: ignore[reportArgumentType]
    return merged


def remove_record[TRecord: Record](
    current: Mapping[str, TRecord],
    record_id: str,
) -> dict[str, TRecord]:
    return {key: value for key, value in current.items() if key != record_id}


def restore_record[TRecord: Record](
    current: Mapping[str, TRecord],
    record: TRecord,
    *,
    position: int,
) -> dict[str, TRecord]:
    """Re-insert ``record`` at ``position`` of the mapping order."""

    items = [(key, value) for key, value in current.items() if key != record.id]
    items.insert(min(max(position, 0), len(items)), (record.id, record))
    return dict(items)
