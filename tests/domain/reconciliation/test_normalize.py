from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from arkive.domain.reconciliation import TimestampError, to_instant

EXPECTED = datetime(2024, 3, 1, 9, 30, tzinfo=UTC)
EPOCH_MILLIS = int(EXPECTED.timestamp() * 1000)


@pytest.mark.parametrize(
    "raw",
    [
        EXPECTED,
        datetime(2024, 3, 1, 14, 30, tzinfo=timezone(timedelta(hours=5))),
        datetime(2024, 3, 1, 9, 30),  # noqa: DTZ001
        "2024-03-01T09:30:00Z",
        "2024-03-01T09:30:00.000z",
        "2024-03-01T14:30:00+05:00",
        "2024-03-01T09:30:00",
        EPOCH_MILLIS,
        float(EPOCH_MILLIS),
        str(EPOCH_MILLIS),
        {"seconds": EPOCH_MILLIS // 1000, "nanoseconds": 0},
        {"_seconds": EPOCH_MILLIS // 1000, "_nanoseconds": 0},
    ],
)
def test_to_instant_accepts_every_wire_shape(raw: object) -> None:
    instant = to_instant(raw)

    assert instant == EXPECTED
    assert instant.tzinfo is UTC


def test_to_instant_converts_dates_to_midnight_utc() -> None:
    assert to_instant(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=UTC)


def test_to_instant_keeps_sub_second_precision_of_timestamp_objects() -> None:
    instant = to_instant({"seconds": 0, "nanoseconds": 500_000_000})

    assert instant == datetime(1970, 1, 1, 0, 0, 0, 500_000, tzinfo=UTC)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "yesterday",
        True,
        None,
        ["2024-03-01"],
        {"nanoseconds": 5},
        {"seconds": "soon"},
        10**20,
    ],
)
def test_to_instant_rejects_garbage(raw: object) -> None:
    with pytest.raises(TimestampError):
        to_instant(raw)


def test_timestamp_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):  # noqa: PT011
        to_instant("not a date")
