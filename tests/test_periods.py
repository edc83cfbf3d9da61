from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from untis_client.periods import UNMAPPED_PERIOD, period_from_end, period_from_start


@pytest.mark.parametrize(
    ("start", "period"),
    [
        (time(8, 0), 1),
        (time(8, 50), 2),
        (time(9, 40), 3),
        (time(12, 0), 6),
        (time(16, 5), 10),
        (time(17, 0), 11),
        (time(17, 45), 12),
        (time(18, 30), 13),
        (time(20, 15), 15),
    ],
)
def test_period_from_start(start: time, period: int) -> None:
    assert period_from_start(start) == period


@pytest.mark.parametrize(
    ("end", "period"),
    [
        (time(8, 50), 1),
        (time(9, 45), 2),
        (time(15, 55), 8),
        (time(16, 0), 9),
        (time(16, 50), 10),
        (time(17, 35), 11),
        (time(21, 0), 15),
    ],
)
def test_period_from_end(end: time, period: int) -> None:
    assert period_from_end(end) == period


@pytest.mark.parametrize(
    "start",
    [time(7, 55), time(8, 15), time(17, 30), time(21, 0), time(0, 0)],
)
def test_unmapped_start(start: time) -> None:
    assert period_from_start(start) == UNMAPPED_PERIOD


@pytest.mark.parametrize(
    "end",
    [time(7, 59), time(16, 30), time(22, 0), time(23, 59)],
)
def test_unmapped_end(end: time) -> None:
    assert period_from_end(end) == UNMAPPED_PERIOD


def test_periods_defined_for_every_minute() -> None:
    for hour in range(24):
        for minute in range(60):
            assert period_from_start(time(hour, minute)) in range(-1, 16)
            assert period_from_end(time(hour, minute)) in range(-1, 16)


def test_accepts_datetimes() -> None:
    start = datetime(2024, 3, 11, 17, 45, tzinfo=timezone.utc)

    assert period_from_start(start) == 12
    assert period_from_end(start) == 11
