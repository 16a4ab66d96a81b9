"""
Monthly statistics engine.

Punches are grouped once by (employee, date); the scope only decides which
employees are in the set, so the single-employee view and the organisation
view share every computation.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from attendance_engine.services.calendar_utils import (DateRange, month_bounds,
                                                       month_range, working_days)
from attendance_engine.services.policy import AttendancePolicy
from attendance_engine.services.records import HolidaySpan, LeaveSpan, Punch
from attendance_engine.services.sessions import (SessionAggregate,
                                                 aggregate_by_employee_day)


@dataclass(frozen=True)
class Scope:
    """Either one employee (``employee_id`` set) or the whole organisation."""

    employee_ids: frozenset[int]
    employee_id: int | None = None

    @classmethod
    def single(cls, employee_id: int) -> Scope:
        return cls(employee_ids=frozenset({employee_id}), employee_id=employee_id)

    @classmethod
    def organisation(cls, employee_ids: Iterable[int]) -> Scope:
        return cls(employee_ids=frozenset(employee_ids))

    @property
    def is_single(self) -> bool:
        return self.employee_id is not None

    @property
    def employee_count(self) -> int:
        return len(self.employee_ids)


@dataclass(frozen=True)
class MonthlyStats:
    year: int
    month: int
    range_start: date
    range_end: date
    employee_id: int | None
    total_employees: int
    total_days: int
    total_weekend_days: int
    total_holidays: int
    total_working_days: int
    total_present_days: int
    total_absent_days: int
    total_late_arrivals: int
    total_overtime_minutes: int
    leave_breakdown: dict[str, int] = field(default_factory=dict)
    total_leave_days: int = 0
    attendance_percentage: float = 0.0
    average_work_hours_per_day: float = 0.0
    perfect_attendance_employees: float = 0.0


def is_late(day: date, first_punch_in: datetime | None, policy: AttendancePolicy) -> bool:
    """Earliest punch of the day later than office start plus the late grace."""
    if first_punch_in is None:
        return False
    punched = datetime.combine(day, first_punch_in.time())
    threshold = datetime.combine(day, policy.office_start) + timedelta(
        minutes=policy.late_mark_after
    )
    return punched > threshold


def overtime_minutes(
    day: date,
    last_punch_out: datetime | None,
    policy: AttendancePolicy,
) -> int:
    """Minutes the day's last punch-out runs past office end plus overtime grace.

    Only the time of day is compared, anchored to the attendance date.
    """
    if last_punch_out is None:
        return 0
    out = datetime.combine(day, last_punch_out.time())
    start = datetime.combine(day, policy.office_end) + timedelta(minutes=policy.overtime_after)
    if out <= start:
        return 0
    return int((out - start).total_seconds() // 60)


def leave_days_in(span: DateRange, leaves: Iterable[LeaveSpan]) -> dict[str, int]:
    """Inclusive leave days clipped to ``span``, keyed by leave type name."""
    breakdown: dict[str, int] = defaultdict(int)
    for leave in leaves:
        clipped = span.clip(leave.from_date, leave.to_date)
        if clipped is not None:
            breakdown[leave.leave_type] += clipped.days
    return dict(breakdown)


def _ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * scale, 2)


def compute_monthly_stats(
    year: int,
    month: int,
    scope: Scope,
    punches: Iterable[Punch],
    leaves: Iterable[LeaveSpan],
    holidays: Iterable[HolidaySpan],
    policy: AttendancePolicy,
    today: date,
) -> MonthlyStats:
    span = month_range(year, month, today)
    holidays = list(holidays)
    counts = working_days(span, policy.weekend_days, holidays)
    total_working_days = max(0, counts.working_days)
    expected_days = total_working_days * scope.employee_count

    in_scope = (
        p
        for p in punches
        if p.employee_id in scope.employee_ids
        and p.punch_in is not None
        and span.contains(p.date)
    )
    days: dict[tuple[int, date], SessionAggregate] = aggregate_by_employee_day(in_scope)

    present_days = len(days)
    late_arrivals = sum(
        1 for (_, day), agg in days.items() if is_late(day, agg.first_punch_in, policy)
    )
    overtime = sum(
        overtime_minutes(day, agg.last_completed_punch_out, policy)
        for (_, day), agg in days.items()
    )
    worked_minutes = sum(agg.total_minutes for agg in days.values())
    absent_days = max(0, expected_days - present_days)

    breakdown = leave_days_in(
        month_bounds(year, month),
        (lv for lv in leaves if lv.employee_id in scope.employee_ids),
    )

    perfect = 0.0
    if scope.employee_count > 0:
        perfect = round(
            max(0.0, scope.employee_count - absent_days / max(1, total_working_days)), 2
        )

    return MonthlyStats(
        year=year,
        month=month,
        range_start=span.start,
        range_end=span.end,
        employee_id=scope.employee_id,
        total_employees=scope.employee_count,
        total_days=counts.total_days,
        total_weekend_days=counts.weekend_days,
        total_holidays=counts.holiday_days,
        total_working_days=total_working_days,
        total_present_days=present_days,
        total_absent_days=absent_days,
        total_late_arrivals=late_arrivals,
        total_overtime_minutes=overtime,
        leave_breakdown=breakdown,
        total_leave_days=sum(breakdown.values()),
        attendance_percentage=_ratio(present_days, expected_days, 100),
        average_work_hours_per_day=_ratio(worked_minutes / 60, present_days),
        perfect_attendance_employees=perfect,
    )
