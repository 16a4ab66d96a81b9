"""
Punch write path — the only mutation this service performs.

Punch-in reads then writes the employee's open session, so the read is done
under ``SELECT ... FOR UPDATE`` and backed by the partial unique index
``uq_punch_open_session``. A session opened yesterday and still running
(overnight shift) counts as open, the same window punch-out closes from.
A second concurrent punch-in is rejected, never merged into a second open
session.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.core.exceptions import (AttendanceError,
                                               AttendanceExistsError,
                                               NoOpenSessionError,
                                               OpenSessionExistsError)
from attendance_engine.models.employee import PunchEvent
from attendance_engine.services.loader import get_tracked_employee

logger = logging.getLogger(__name__)

DEFAULT_MARK_PRESENT_TIME = time(9, 0)


def _open_session_query(employee_id: int, today: date):
    """Newest open session dated today or yesterday (overnight shift)."""
    return (
        select(PunchEvent)
        .where(
            PunchEvent.employee_id == employee_id,
            PunchEvent.punch_out.is_(None),
            PunchEvent.date >= today - timedelta(days=1),
            PunchEvent.date <= today,
        )
        .order_by(PunchEvent.punch_in.desc(), PunchEvent.id.desc())
        .limit(1)
    )


async def punch_in(
    db: AsyncSession,
    employee_id: int,
    now: datetime,
    location: str | None = None,
) -> PunchEvent:
    employee = await get_tracked_employee(db, employee_id)
    today = now.date()

    # Lock the open session (if any) to serialise near-simultaneous punch-ins
    open_result = await db.execute(_open_session_query(employee_id, today).with_for_update())
    if open_result.scalars().first() is not None:
        await db.rollback()
        raise OpenSessionExistsError("Already punched in — punch out first")

    event = PunchEvent(
        employee_id=employee_id,
        date=today,
        punch_in=now,
        punch_in_location=location,
    )
    db.add(event)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Concurrent punch-in rejected for employee %d", employee_id)
        raise OpenSessionExistsError("Already punched in — punch out first")
    await db.refresh(event)

    logger.info("Punch IN for %s (employee %d) at %s", employee.name, employee_id, now)
    return event


async def punch_out(
    db: AsyncSession,
    employee_id: int,
    now: datetime,
    location: str | None = None,
) -> PunchEvent:
    """Close the most recent open session from today or yesterday (overnight shift)."""
    employee = await get_tracked_employee(db, employee_id)
    today = now.date()

    result = await db.execute(_open_session_query(employee_id, today).with_for_update())
    event = result.scalars().first()
    if event is None:
        await db.rollback()
        raise NoOpenSessionError("No open session to punch out of")

    event.punch_out = now
    event.punch_out_location = location
    await db.commit()
    await db.refresh(event)

    logger.info("Punch OUT for %s (employee %d) at %s", employee.name, employee_id, now)
    return event


async def mark_present(
    db: AsyncSession,
    employee_id: int,
    day: date,
    punch_in_time: time | None = None,
    punch_out_time: time | None = None,
    reason: str | None = None,
    location: str | None = None,
) -> PunchEvent:
    """Administrative correction: record attendance for a day that has none."""
    employee = await get_tracked_employee(db, employee_id)

    existing = await db.execute(
        select(PunchEvent.id)
        .where(PunchEvent.employee_id == employee_id, PunchEvent.date == day)
        .limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        raise AttendanceExistsError("Employee already has attendance for this date")

    event = PunchEvent(
        employee_id=employee_id,
        date=day,
        punch_in=datetime.combine(day, punch_in_time or DEFAULT_MARK_PRESENT_TIME),
        punch_out=datetime.combine(day, punch_out_time) if punch_out_time else None,
        punch_in_location=location,
        punch_out_location=location if punch_out_time else None,
        notes=reason or "Marked present by administrator",
    )
    db.add(event)
    await db.commit()
    await db.refresh(event)

    logger.info("Marked %s (employee %d) present on %s", employee.name, employee_id, day)
    return event


@dataclass
class BulkMarkOutcome:
    successful: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed) + len(self.skipped)


async def bulk_mark_present(
    db: AsyncSession,
    employee_ids: list[int],
    day: date,
    punch_in_time: time | None = None,
    punch_out_time: time | None = None,
    reason: str | None = None,
    location: str | None = None,
) -> BulkMarkOutcome:
    """Mark several employees present for ``day``, one commit per employee.

    Employees who already have attendance are skipped; unknown or untracked
    employees and unexpected failures are reported without stopping the batch.
    """
    outcome = BulkMarkOutcome()
    reason = reason or "Bulk marked present by administrator"

    for employee_id in dict.fromkeys(employee_ids):
        try:
            employee = await get_tracked_employee(db, employee_id)
        except AttendanceError as exc:
            outcome.failed.append({"employee_id": employee_id, "name": None, "reason": exc.detail})
            continue

        try:
            event = await mark_present(
                db,
                employee_id,
                day,
                punch_in_time=punch_in_time,
                punch_out_time=punch_out_time,
                reason=reason,
                location=location,
            )
        except AttendanceExistsError:
            outcome.skipped.append(
                {"employee_id": employee_id, "name": employee.name, "reason": "Already has attendance record"}
            )
        except Exception as exc:
            await db.rollback()
            logger.exception("Bulk mark-present failed for employee %d", employee_id)
            outcome.failed.append(
                {
                    "employee_id": employee_id,
                    "name": employee.name,
                    "reason": f"Failed to mark present: {type(exc).__name__}",
                }
            )
        else:
            outcome.successful.append(
                {"employee_id": employee_id, "name": employee.name, "punch_id": event.id}
            )

    logger.info(
        "Bulk mark-present for %s: %d successful, %d failed, %d skipped",
        day,
        len(outcome.successful),
        len(outcome.failed),
        len(outcome.skipped),
    )
    return outcome
