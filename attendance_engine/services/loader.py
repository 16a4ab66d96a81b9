"""
Store loaders — the read side of the roster, punch, leave, holiday and policy stores.

Each loader issues **one** query for the whole scope and range and returns
plain records; all aggregation happens in Python afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.core.exceptions import EmployeeNotFoundError, NotTrackedError
from attendance_engine.models.attendance_settings import AttendanceSettings
from attendance_engine.models.employee import Employee, PunchEvent
from attendance_engine.models.holiday import Holiday
from attendance_engine.models.leave import Leave, LeaveType
from attendance_engine.services.calendar_utils import DateRange
from attendance_engine.services.policy import AttendancePolicy
from attendance_engine.services.query import escape_like
from attendance_engine.services.records import (HolidaySpan, LeaveSpan, Punch,
                                                RosterEntry)

logger = logging.getLogger(__name__)


def _roster_entry(emp: Employee) -> RosterEntry:
    return RosterEntry(
        id=emp.id,
        name=emp.name,
        employee_code=emp.employee_code,
        department=emp.department,
    )


async def load_policy(db: AsyncSession) -> AttendancePolicy:
    """Read the singleton settings row; a missing row yields the default policy."""
    result = await db.execute(select(AttendanceSettings).limit(1))
    row = result.scalar_one_or_none()
    if row is None:
        logger.debug("No attendance settings row — using default policy")
    return AttendancePolicy.from_settings(row)


async def get_tracked_employee(db: AsyncSession, employee_id: int) -> RosterEntry:
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.is_active.is_(True))
    )
    emp = result.scalar_one_or_none()
    if emp is None:
        raise EmployeeNotFoundError("Employee not found")
    if not emp.is_tracked:
        raise NotTrackedError(f"Employee {employee_id} is not an attendance-tracked employee")
    return _roster_entry(emp)


async def load_roster(db: AsyncSession, search: str | None = None) -> list[RosterEntry]:
    """Active, attendance-tracked employees, optionally filtered by name or code."""
    query = (
        select(Employee)
        .where(Employee.is_active.is_(True), Employee.is_tracked.is_(True))
        .order_by(Employee.id)
    )
    if search:
        pattern = f"%{escape_like(search.strip())}%"
        query = query.where(
            or_(
                Employee.name.ilike(pattern, escape="\\"),
                Employee.employee_code.ilike(pattern, escape="\\"),
            )
        )
    result = await db.execute(query)
    return [_roster_entry(emp) for emp in result.scalars().all()]


async def load_punches(
    db: AsyncSession,
    span: DateRange,
    employee_ids: Iterable[int] | None = None,
) -> list[Punch]:
    query = (
        select(PunchEvent)
        .where(
            PunchEvent.date >= span.start,
            PunchEvent.date <= span.end,
            PunchEvent.punch_in.is_not(None),
        )
        .order_by(PunchEvent.employee_id, PunchEvent.date, PunchEvent.punch_in.asc(), PunchEvent.id)
    )
    if employee_ids is not None:
        query = query.where(PunchEvent.employee_id.in_(list(employee_ids)))
    result = await db.execute(query)
    return [
        Punch(
            id=p.id,
            employee_id=p.employee_id,
            date=p.date,
            punch_in=p.punch_in,
            punch_out=p.punch_out,
            punch_in_location=p.punch_in_location,
            punch_out_location=p.punch_out_location,
        )
        for p in result.scalars().all()
    ]


async def load_leaves(
    db: AsyncSession,
    span: DateRange,
    employee_ids: Iterable[int] | None = None,
) -> list[LeaveSpan]:
    """Approved leaves overlapping ``span`` with their type name and symbol resolved."""
    query = (
        select(Leave, LeaveType.name, LeaveType.symbol)
        .join(LeaveType, Leave.leave_type_id == LeaveType.id)
        .where(
            Leave.status == "approved",
            Leave.from_date <= span.end,
            Leave.to_date >= span.start,
        )
        .order_by(Leave.from_date.desc())
    )
    if employee_ids is not None:
        query = query.where(Leave.employee_id.in_(list(employee_ids)))
    result = await db.execute(query)
    return [
        LeaveSpan(
            id=lv.id,
            employee_id=lv.employee_id,
            leave_type_id=lv.leave_type_id,
            leave_type=type_name,
            symbol=symbol,
            from_date=lv.from_date,
            to_date=lv.to_date,
        )
        for lv, type_name, symbol in result.all()
    ]


async def load_holidays(db: AsyncSession, span: DateRange) -> list[HolidaySpan]:
    result = await db.execute(
        select(Holiday)
        .where(Holiday.from_date <= span.end, Holiday.to_date >= span.start)
        .order_by(Holiday.from_date)
    )
    return [
        HolidaySpan(from_date=h.from_date, to_date=h.to_date, title=h.title)
        for h in result.scalars().all()
    ]


async def load_leave_types(db: AsyncSession) -> list[LeaveType]:
    result = await db.execute(select(LeaveType).order_by(LeaveType.id))
    return list(result.scalars().all())
