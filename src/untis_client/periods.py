"""Lesson period numbers for the institution's fixed bell schedule.

Periods are looked up by the hour of a lesson's start or end time. Two hours
hold two periods each, told apart by the minute: 08:00 / 08:50 and
17:00 / 17:45 on the start side, 16:00 / 16:50 on the end side. Any time
outside the tables maps to UNMAPPED_PERIOD.
"""

from datetime import datetime, time

UNMAPPED_PERIOD = -1

_START_BY_HOUR: dict[int, int] = {
    9: 3,
    10: 4,
    11: 5,
    12: 6,
    13: 7,
    14: 8,
    15: 9,
    16: 10,
    18: 13,
    19: 14,
    20: 15,
}
_START_BY_MINUTE: dict[tuple[int, int], int] = {
    (8, 0): 1,
    (8, 50): 2,
    (17, 0): 11,
    (17, 45): 12,
}

_END_BY_HOUR: dict[int, int] = {
    8: 1,
    9: 2,
    10: 3,
    11: 4,
    12: 5,
    13: 6,
    14: 7,
    15: 8,
    17: 11,
    18: 12,
    19: 13,
    20: 14,
    21: 15,
}
_END_BY_MINUTE: dict[tuple[int, int], int] = {
    (16, 0): 9,
    (16, 50): 10,
}


def period_from_start(value: time | datetime) -> int:
    """Period number a lesson starting at ``value`` occupies, or -1."""
    if value.hour in _START_BY_HOUR:
        return _START_BY_HOUR[value.hour]
    return _START_BY_MINUTE.get((value.hour, value.minute), UNMAPPED_PERIOD)


def period_from_end(value: time | datetime) -> int:
    """Period number a lesson ending at ``value`` occupies, or -1."""
    if value.hour in _END_BY_HOUR:
        return _END_BY_HOUR[value.hour]
    return _END_BY_MINUTE.get((value.hour, value.minute), UNMAPPED_PERIOD)
