"""
Immutable attendance policy.

The settings row is read once per request and frozen into an
``AttendancePolicy`` that is passed explicitly to every computation.
Missing rows or blank columns fall back to the documented defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Any

WEEKDAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

DEFAULT_WEEKEND = frozenset({"saturday", "sunday"})
DEFAULT_OFFICE_START = time(9, 0)
DEFAULT_OFFICE_END = time(17, 0)
DEFAULT_LATE_MARK_AFTER = 30
DEFAULT_OVERTIME_AFTER = 30


def parse_hhmm(value: str) -> time:
    """Parse ``HH:MM`` (or ``HH:MM:SS``) into a ``time``; raises ``ValueError``."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


@dataclass(frozen=True)
class AttendancePolicy:
    weekend_days: frozenset[str] = DEFAULT_WEEKEND
    office_start: time = DEFAULT_OFFICE_START
    office_end: time = DEFAULT_OFFICE_END
    late_mark_after: int = DEFAULT_LATE_MARK_AFTER
    overtime_after: int = DEFAULT_OVERTIME_AFTER

    @classmethod
    def from_settings(cls, row: Any | None) -> AttendancePolicy:
        """Build a policy from an ``AttendanceSettings`` row (or ``None``)."""
        if row is None:
            return cls()

        weekend = frozenset(
            d.strip().lower() for d in (row.weekend_days or []) if d and d.strip()
        ) or DEFAULT_WEEKEND

        return cls(
            weekend_days=weekend,
            office_start=_time_or_default(row.office_start, DEFAULT_OFFICE_START),
            office_end=_time_or_default(row.office_end, DEFAULT_OFFICE_END),
            late_mark_after=_minutes_or_default(row.late_mark_after, DEFAULT_LATE_MARK_AFTER),
            overtime_after=_minutes_or_default(row.overtime_after, DEFAULT_OVERTIME_AFTER),
        )


def _time_or_default(value: str | None, default: time) -> time:
    if not value:
        return default
    try:
        return parse_hhmm(value)
    except ValueError:
        return default


def _minutes_or_default(value: int | None, default: int) -> int:
    if value is None or value < 0:
        return default
    return int(value)
