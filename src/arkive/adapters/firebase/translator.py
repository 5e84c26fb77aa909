"""Translate Firebase payloads into domain records and back."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError

from arkive.domain.model import RECORD_TYPES, AccessEntry, EntityType, Record

from .schema import PAYLOAD_TYPES, AccessEntryPayload, DocumentPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schema import FirebaseBaseModel

log = getLogger(__name__)

# record field -> wire key, where they differ
_WIRE_KEYS: dict[str, str] = {
    "client_type": "type",
    "client_name": "clientName",
    "client_cnic": "clientCnic",
    "nature_of_work": "natureOfWork",
    "payment_method": "paymentMethod",
    "created_by": "createdBy",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
    "last_modified": "lastModified",
    "level": "type",
    "file_name": "fileName",
    "file_type": "fileType",
    "file_size": "fileSize",
    "uploaded_by": "uploadedBy",
    "uploaded_at": "uploadedAt",
    "access_log": "accessLog",
    "user_id": "userId",
}


def _to_wire_instant(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _record_from_payload(entity_type: EntityType, payload: FirebaseBaseModel) -> Record:
    values: dict[str, Any] = dict(payload)
    if isinstance(payload, DocumentPayload):
        values["tags"] = tuple(payload.tags)
        values["access_log"] = tuple(_access_entry(entry) for entry in payload.access_log)
    return RECORD_TYPES[entity_type](**values)


def _access_entry(payload: AccessEntryPayload) -> AccessEntry:
    return AccessEntry(user_id=payload.user_id, action=payload.action, timestamp=payload.timestamp)


def parse_record(entity_type: EntityType, key: str, raw: object) -> Record | None:
    """Build the record stored under ``key``; ``None`` when the payload is invalid.

    The database key is the record id whenever the payload carries none.
    """

    if not isinstance(raw, Mapping):
        log.warning("Ignoring non-object %s payload at %s", entity_type, key)
        return None
    data: dict[str, object] = dict(cast(Mapping[str, object], raw))
    if not data.get("id"):
        data["id"] = key

    try:
        payload = PAYLOAD_TYPES[entity_type].model_validate(data)
        return _record_from_payload(entity_type, payload)
    except (ValidationError, ValueError, TypeError) as exc:
        log.warning("Skipping invalid %s payload %s: %s", entity_type, key, exc)
        return None


def parse_records(entity_type: EntityType, collection: object) -> list[Record]:
    """Translate a whole collection node; invalid children are skipped."""

    return [
        record
        for key, raw in iter_children(collection)
        if (record := parse_record(entity_type, key, raw)) is not None
    ]


def iter_children(collection: object) -> Iterable[tuple[str, object]]:
    """Return the ``(key, value)`` pairs of a collection node stored as object or array."""

    if isinstance(collection, Mapping):
        mapping_value = cast(Mapping[str, object], collection)
        return [(str(key), value) for key, value in mapping_value.items() if value is not None]
    if isinstance(collection, list):
        items = cast(list[object], collection)
        return [(str(index), value) for index, value in enumerate(items) if value is not None]
    return []


def _wire_value(value: object) -> object:
    if isinstance(value, datetime):
        return _to_wire_instant(value)
    if isinstance(value, AccessEntry):
        return {
            "userId": value.user_id,
            "action": value.action.value,
            "timestamp": _to_wire_instant(value.timestamp),
        }
    if isinstance(value, tuple):
        return [_wire_value(item) for item in cast(tuple[object, ...], value)]
    return value


def record_to_payload(record: Record) -> dict[str, object]:
    """Serialise ``record`` into the camelCase JSON shape used in the database."""

    return {
        _WIRE_KEYS.get(field.name, field.name): _wire_value(getattr(record, field.name))
        for field in fields(record)
    }
