"""
Day classifier — exactly one status per (employee, date).

Rules are evaluated in order and the first matching guard wins. Approved
leave outranks a holiday, and a holiday outranks the punch-based statuses.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime

from attendance_engine.core.config import settings
from attendance_engine.services.calendar_utils import is_holiday
from attendance_engine.services.records import HolidaySpan, LeaveSpan, Punch
from attendance_engine.services.sessions import (SessionAggregate, aggregate_sessions,
                                                 format_minutes)


class DayStatus(str, enum.Enum):
    LEAVE = "leave"
    HOLIDAY_PRESENT = "holiday_present"
    HOLIDAY = "holiday"
    PRESENT = "present"
    ABSENT = "absent"


@dataclass(frozen=True)
class StatusSymbols:
    present: str = "√"
    absent: str = "▼"
    holiday: str = "#"
    leave: str = "/"

    @classmethod
    def from_settings(cls) -> StatusSymbols:
        return cls(
            present=settings.PRESENT_SYMBOL,
            absent=settings.ABSENT_SYMBOL,
            holiday=settings.HOLIDAY_SYMBOL,
            leave=settings.DEFAULT_LEAVE_SYMBOL,
        )


@dataclass(frozen=True)
class DayContext:
    day: date
    session: SessionAggregate
    is_holiday: bool = False
    leave: LeaveSpan | None = None
    is_today: bool = False


@dataclass(frozen=True)
class DayRecord:
    date: date
    kind: DayStatus
    status: str
    punch_in: datetime | None
    punch_out: datetime | None
    total_minutes: int
    total_work_hours: str
    remarks: str
    leave_type: str | None = None


DAY_RULES: tuple[tuple[DayStatus, Callable[[DayContext], bool]], ...] = (
    (DayStatus.LEAVE, lambda c: c.leave is not None),
    (DayStatus.HOLIDAY_PRESENT, lambda c: c.is_holiday and c.session.has_any_punch),
    (DayStatus.HOLIDAY, lambda c: c.is_holiday),
    (DayStatus.PRESENT, lambda c: c.session.has_any_punch),
    (DayStatus.ABSENT, lambda c: True),
)


def resolve_status(ctx: DayContext) -> DayStatus:
    return next(kind for kind, guard in DAY_RULES if guard(ctx))


def _punched_remarks(ctx: DayContext, worked: str) -> str:
    if ctx.session.total_minutes > 0:
        return worked
    return "Currently Working" if ctx.is_today else "Not Punched Out"


def classify_day(
    ctx: DayContext,
    symbols: StatusSymbols | None = None,
    leave_symbols: Mapping[int, str | None] | None = None,
) -> DayRecord:
    """Classify one employee-day.

    ``leave_symbols`` maps leave-type id to its symbol; it overrides the
    symbol already carried on the leave. Unmapped types fall back to the
    default leave symbol.
    """
    symbols = symbols or StatusSymbols.from_settings()
    kind = resolve_status(ctx)

    leave_type = None
    if kind is DayStatus.LEAVE:
        leave_type = ctx.leave.leave_type
        symbol = (leave_symbols or {}).get(ctx.leave.leave_type_id) or ctx.leave.symbol or symbols.leave
        remarks = "On Leave"
    elif kind is DayStatus.HOLIDAY_PRESENT:
        symbol = symbols.present
        remarks = _punched_remarks(ctx, "Present on Holiday")
    elif kind is DayStatus.HOLIDAY:
        symbol = symbols.holiday
        remarks = "Holiday"
    elif kind is DayStatus.PRESENT:
        symbol = symbols.present
        remarks = _punched_remarks(ctx, "Present")
    else:
        symbol = symbols.absent
        remarks = "Absent"

    return DayRecord(
        date=ctx.day,
        kind=kind,
        status=symbol,
        punch_in=ctx.session.first_punch_in,
        punch_out=ctx.session.last_completed_punch_out,
        total_minutes=ctx.session.total_minutes,
        total_work_hours=format_minutes(ctx.session.total_minutes),
        remarks=remarks,
        leave_type=leave_type,
    )


def find_leave(day: date, leaves: Iterable[LeaveSpan]) -> LeaveSpan | None:
    return next((lv for lv in leaves if lv.covers(day)), None)


def classify_range(
    days: Iterable[date],
    punches_by_day: Mapping[date, Iterable[Punch]],
    holidays: Iterable[HolidaySpan],
    leaves: Iterable[LeaveSpan],
    today: date,
    symbols: StatusSymbols | None = None,
    leave_symbols: Mapping[int, str | None] | None = None,
) -> list[DayRecord]:
    """One ``DayRecord`` per day for a single employee."""
    holidays = list(holidays)
    leaves = list(leaves)
    symbols = symbols or StatusSymbols.from_settings()
    return [
        classify_day(
            DayContext(
                day=day,
                session=aggregate_sessions(punches_by_day.get(day, ())),
                is_holiday=is_holiday(day, holidays),
                leave=find_leave(day, leaves),
                is_today=day == today,
            ),
            symbols,
            leave_symbols,
        )
        for day in days
    ]
