"""
Organisation wall clock.

Punches are stored as naive local timestamps in the single organisational
timezone configured by ``TIMEZONE_OFFSET``.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from attendance_engine.core.config import settings


def parse_offset(tz_offset: str) -> timezone:
    """Turn ``+05:00`` / ``-03:30`` / ``+05`` into a fixed-offset tzinfo."""
    sign = 1 if tz_offset[0] == "+" else -1
    offset_parts = tz_offset[1:].split(":")
    offset_hours = int(offset_parts[0])
    offset_mins = int(offset_parts[1]) if len(offset_parts) > 1 else 0
    return timezone(timedelta(hours=sign * offset_hours, minutes=sign * offset_mins))


def local_now() -> datetime:
    """Current organisation wall-clock time, naive, truncated to seconds."""
    now = datetime.now(timezone.utc).astimezone(parse_offset(settings.TIMEZONE_OFFSET))
    return now.replace(tzinfo=None, microsecond=0)


def local_today() -> date:
    return local_now().date()
