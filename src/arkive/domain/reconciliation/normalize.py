"""Timestamp normalisation for records crossing an adapter boundary.

Remote payloads carry instants in several shapes: native ``datetime`` values,
ISO-8601 strings (with or without ``Z``), epoch milliseconds as produced by
JavaScript clients and Firebase server timestamps, and ``{seconds, nanoseconds}``
objects written by Firestore. All of them collapse into aware UTC datetimes.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import cast


class TimestampError(ValueError):
    """Raised when a value cannot be interpreted as an instant."""


def _from_epoch_millis(value: float) -> datetime:
    try:
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise TimestampError(f"Epoch value out of range: {value!r}") from exc


def _from_iso(value: str) -> datetime:
    normalized = value.strip()
    if not normalized:
        raise TimestampError("Empty timestamp string")
    if normalized.lstrip("-").isdigit():
        return _from_epoch_millis(int(normalized))
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise TimestampError(f"Invalid ISO timestamp: {value!r}") from exc


def _from_mapping(value: Mapping[str, object]) -> datetime:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    if isinstance(seconds, bool) or not isinstance(seconds, int | float):
        raise TimestampError(f"Timestamp object without seconds: {dict(value)!r}")
    if isinstance(nanos, bool) or not isinstance(nanos, int | float):
        raise TimestampError(f"Timestamp object with invalid nanoseconds: {dict(value)!r}")
    return _from_epoch_millis(seconds * 1000 + nanos / 1_000_000)


def to_instant(value: object) -> datetime:
    """Return ``value`` as a timezone-aware UTC datetime.

    Naive datetimes are taken to be UTC, matching how the local store writes them.
    """

    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif isinstance(value, str):
        instant = _from_iso(value)
    elif isinstance(value, bool):
        raise TimestampError(f"Not a timestamp: {value!r}")
    elif isinstance(value, int | float):
        instant = _from_epoch_millis(value)
    elif isinstance(value, Mapping):
        instant = _from_mapping(cast(Mapping[str, object], value))
    else:
        raise TimestampError(f"Unsupported timestamp type: {type(value).__name__}")

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


__all__ = ["TimestampError", "to_instant"]
