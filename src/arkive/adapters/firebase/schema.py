"""Pydantic models describing the records stored in the Firebase database."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from arkive.domain.model import (
    ClientType,
    DocumentAction,
    EntityType,
    NotificationLevel,
    PaymentMethod,
)
from arkive.domain.reconciliation.normalize import to_instant


def _instant(value: object) -> datetime:
    return to_instant(value)


def _listish(value: object) -> object:
    # Firebase turns arrays with gaps into objects keyed by index
    if isinstance(value, Mapping):
        mapping_value = cast(Mapping[str, object], value)
        return [
            mapping_value[key]
            for key in sorted(mapping_value, key=lambda k: (len(k), k))
        ]
    if value is None:
        return []
    return value


def _fill_missing(value: object, field_name: str, source_name: str) -> object:
    if isinstance(value, Mapping):
        data: dict[str, object] = dict(cast(Mapping[str, object], value))
        if data.get(field_name) is None and data.get(source_name) is not None:
            data[field_name] = data[source_name]
        return data
    return value


class FirebaseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    ENTITY_TYPE: ClassVar[EntityType]


class ClientPayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.CLIENT

    id: str
    name: str
    cnic: str
    client_type: ClientType = Field(default=ClientType.OTHER, alias="type")
    phone: str = ""
    email: str = ""
    notes: str = ""
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    last_modified: datetime = Field(alias="lastModified")

    @model_validator(mode="before")
    @classmethod
    def _default_last_modified(cls, value: object) -> object:
        return _fill_missing(value, "lastModified", "updatedAt")

    _parse_instants = field_validator(
        "created_at", "updated_at", "last_modified", mode="before"
    )(_instant)


class ReceiptPayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECEIPT

    id: str
    client_name: str = Field(alias="clientName")
    client_cnic: str = Field(alias="clientCnic")
    amount: float
    nature_of_work: str = Field(default="", alias="natureOfWork")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH, alias="paymentMethod")
    date: datetime
    created_by: str = Field(default="", alias="createdBy")
    created_at: datetime = Field(alias="createdAt")
    last_modified: datetime = Field(alias="lastModified")

    @model_validator(mode="before")
    @classmethod
    def _default_last_modified(cls, value: object) -> object:
        return _fill_missing(value, "lastModified", "createdAt")

    _parse_instants = field_validator("date", "created_at", "last_modified", mode="before")(
        _instant
    )


class ExpensePayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.EXPENSE

    id: str
    description: str
    amount: float
    category: str = "other"
    date: datetime
    created_by: str = Field(default="", alias="createdBy")
    created_at: datetime = Field(alias="createdAt")

    _parse_instants = field_validator("date", "created_at", mode="before")(_instant)


class NotificationPayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.NOTIFICATION

    id: str
    message: str
    level: NotificationLevel = Field(default=NotificationLevel.INFO, alias="type")
    read: bool = False
    created_at: datetime = Field(alias="createdAt")

    _parse_instants = field_validator("created_at", mode="before")(_instant)


class AccessEntryPayload(FirebaseBaseModel):
    user_id: str = Field(alias="userId")
    action: DocumentAction
    timestamp: datetime

    _parse_instants = field_validator("timestamp", mode="before")(_instant)


class DocumentPayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.DOCUMENT

    id: str
    client_cnic: str = Field(alias="clientCnic")
    file_name: str = Field(alias="fileName")
    file_type: str = Field(default="", alias="fileType")
    file_size: int = Field(default=0, alias="fileSize")
    tags: list[str] = Field(default_factory=list[str])
    uploaded_by: str = Field(default="", alias="uploadedBy")
    uploaded_at: datetime = Field(alias="uploadedAt")
    access_log: list[AccessEntryPayload] = Field(
        default_factory=list[AccessEntryPayload], alias="accessLog"
    )

    _parse_instants = field_validator("uploaded_at", mode="before")(_instant)
    _normalize_lists = field_validator("tags", "access_log", mode="before")(_listish)


class ActivityPayload(FirebaseBaseModel):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.ACTIVITY

    id: str
    user_id: str = Field(alias="userId")
    action: str
    details: str = ""
    timestamp: datetime

    _parse_instants = field_validator("timestamp", mode="before")(_instant)


class ErrorResponse(FirebaseBaseModel):
    """Error body of the REST API.

    The database answers with a plain string; proxies and Google front ends use
    ``{"code": ..., "message": ...}`` objects instead.
    """

    error: str | dict[str, object]

    def describe(self) -> str:
        if isinstance(self.error, str):
            return self.error
        message = self.error.get("message")
        return str(message) if message else str(self.error)


PAYLOAD_TYPES: dict[EntityType, type[FirebaseBaseModel]] = {
    EntityType.CLIENT: ClientPayload,
    EntityType.RECEIPT: ReceiptPayload,
    EntityType.EXPENSE: ExpensePayload,
    EntityType.NOTIFICATION: NotificationPayload,
    EntityType.DOCUMENT: DocumentPayload,
    EntityType.ACTIVITY: ActivityPayload,
}
