"""
Base building blocks:
identity, entity_type contract, recency ordering and creation stamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar, Self

if TYPE_CHECKING:
    from collections.abc import Mapping

    from arkive.domain.model.enums import EntityType


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """Immutable record with a store-assigned identifier.

    Subclasses declare which field orders the reconciled view (``RECENCY_FIELD``),
    which fields the store stamps on creation (``STAMPED_FIELDS``) and every field
    holding an instant (``TIMESTAMP_FIELDS``). Timestamps must be timezone-aware;
    adapters normalise raw values before constructing records.
    """

    id: str

    # class-level discriminators; subclasses must override
    ENTITY_TYPE: ClassVar[EntityType]
    RECENCY_FIELD: ClassVar[str]
    STAMPED_FIELDS: ClassVar[tuple[str, ...]]
    TIMESTAMP_FIELDS: ClassVar[tuple[str, ...]]

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError(f"{type(self).__name__} requires a non-empty id")
        for name in self.TIMESTAMP_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, datetime) or value.tzinfo is None:
                raise ValueError(f"{type(self).__name__}.{name} must be an aware datetime")

    @property
    def entity_type(self) -> EntityType:
        return self.ENTITY_TYPE

    @property
    def recency(self) -> datetime:
        return getattr(self, self.RECENCY_FIELD)

    @classmethod
    def from_draft(cls, draft: Mapping[str, object], *, record_id: str, now: datetime) -> Self:
        """Build the canonical record for a creation request."""

        reserved = {"id", *cls.STAMPED_FIELDS} & set(draft)
        if reserved:
            raise ValueError(f"Draft must not set store-managed fields: {sorted(reserved)}")
        stamps = dict.fromkeys(cls.STAMPED_FIELDS, now)
        return cls(id=record_id, **draft, **stamps)  # pyright: ignore[reportArgumentType]
