"""
Calendar utilities — inclusive date ranges, holiday / weekend counting.

A day that is both a weekend day and inside a holiday counts as a holiday
only, so ``total - holidays - weekends`` never removes it twice.
"""

from __future__ import annotations

import calendar as cal_mod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta

from attendance_engine.services.policy import WEEKDAY_NAMES
from attendance_engine.services.records import HolidaySpan


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` interval of calendar days."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def __iter__(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, from_date: date, to_date: date) -> bool:
        return from_date <= self.end and to_date >= self.start

    def clip(self, from_date: date, to_date: date) -> DateRange | None:
        """Intersection with ``[from_date, to_date]``, or ``None`` if disjoint."""
        if not self.overlaps(from_date, to_date):
            return None
        return DateRange(max(from_date, self.start), min(to_date, self.end))


def month_bounds(year: int, month: int) -> DateRange:
    _, days_in_month = cal_mod.monthrange(year, month)
    return DateRange(date(year, month, 1), date(year, month, days_in_month))


def month_range(year: int, month: int, today: date) -> DateRange:
    """Statistics window for a month: up to today for the current month, else the whole month."""
    bounds = month_bounds(year, month)
    if (today.year, today.month) == (year, month):
        return DateRange(bounds.start, min(today, bounds.end))
    return bounds


def is_holiday(day: date, holidays: Iterable[HolidaySpan]) -> bool:
    return any(h.from_date <= day <= h.to_date for h in holidays)


def count_holiday_days(span: DateRange, holidays: Iterable[HolidaySpan]) -> int:
    total = 0
    for holiday in holidays:
        clipped = span.clip(holiday.from_date, holiday.to_date)
        if clipped is not None:
            total += clipped.days
    return total


def count_weekend_days(
    span: DateRange,
    weekend_days: Iterable[str],
    holidays: Iterable[HolidaySpan],
) -> int:
    weekend = {d.lower() for d in weekend_days}
    clipped = [
        c
        for c in (span.clip(h.from_date, h.to_date) for h in holidays)
        if c is not None
    ]

    count = 0
    for day in span:
        if WEEKDAY_NAMES[day.weekday()] not in weekend:
            continue
        if any(c.contains(day) for c in clipped):
            continue
        count += 1
    return count


@dataclass(frozen=True)
class WorkingDays:
    total_days: int
    holiday_days: int
    weekend_days: int

    @property
    def working_days(self) -> int:
        # May go negative when holidays overlap each other; callers clamp.
        return self.total_days - self.holiday_days - self.weekend_days


def working_days(
    span: DateRange,
    weekend_days: Iterable[str],
    holidays: Iterable[HolidaySpan],
) -> WorkingDays:
    holidays = list(holidays)
    return WorkingDays(
        total_days=span.days,
        holiday_days=count_holiday_days(span, holidays),
        weekend_days=count_weekend_days(span, weekend_days, holidays),
    )
