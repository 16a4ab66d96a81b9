"""
Attendance endpoints — punch write path, day records, daily views and the monthly timesheet.

Every read endpoint fetches its scope and range in a handful of queries and
then hands plain records to the computation core.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import defaultdict
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.api.v1.deps import (MonthParams, PageParams, get_db,
                                           month_params, page_params)
from attendance_engine.core.clock import local_now, local_today
from attendance_engine.schemas.attendance import (AbsentResponse,
                                                  BulkMarkPresentRequest,
                                                  BulkMarkPresentResponse,
                                                  BulkMarkSummary,
                                                  DailyAttendanceResponse,
                                                  DailyAttendanceRow,
                                                  DayRecordRead,
                                                  EmployeeBrief,
                                                  EmployeeDailyResponse,
                                                  EmployeeDayRecord, LeaveRead,
                                                  LeaveTypeRead,
                                                  MarkPresentRequest,
                                                  PunchItem, PunchRead,
                                                  PunchRequest, PunchResponse,
                                                  TimesheetError,
                                                  TimesheetResponse,
                                                  TimesheetRow, TodayPunch,
                                                  TodayResponse)
from attendance_engine.services import punch as punch_service
from attendance_engine.services.calendar_utils import (DateRange, is_holiday,
                                                       month_bounds,
                                                       month_range)
from attendance_engine.services.classifier import (DayContext, DayRecord,
                                                   StatusSymbols, classify_day,
                                                   classify_range, find_leave)
from attendance_engine.services.loader import (get_tracked_employee,
                                               load_holidays, load_leave_types,
                                               load_leaves, load_punches,
                                               load_roster)
from attendance_engine.services.query import effective_page, paginate
from attendance_engine.services.records import Punch, RosterEntry
from attendance_engine.services.sessions import (aggregate_sessions,
                                                 format_minutes,
                                                 format_seconds,
                                                 production_seconds,
                                                 session_seconds,
                                                 sorted_punches)
from attendance_engine.services.statistics import leave_days_in

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────────
def _brief(emp: RosterEntry) -> EmployeeBrief:
    return EmployeeBrief(
        id=emp.id,
        name=emp.name,
        employee_code=emp.employee_code,
        department=emp.department,
    )


def _day_record_read(record: DayRecord) -> DayRecordRead:
    return DayRecordRead(**{**dataclasses.asdict(record), "kind": record.kind.value})


def _daily_row(emp: RosterEntry, day: date, punches: list[Punch]) -> DailyAttendanceRow:
    """Group one employee-day of punches into a single row."""
    ordered = sorted_punches(punches)
    agg = aggregate_sessions(ordered)
    first = ordered[0] if ordered else None
    last_closed = next((p for p in reversed(ordered) if p.punch_out is not None), None)
    return DailyAttendanceRow(
        employee=_brief(emp),
        date=day,
        punch_in=agg.first_punch_in,
        punch_out=agg.last_completed_punch_out,
        punch_in_location=first.punch_in_location if first else None,
        punch_out_location=last_closed.punch_out_location if last_closed else None,
        total_work_minutes=agg.total_minutes,
        total_work_hours=format_minutes(agg.total_minutes),
        punch_count=agg.punch_count,
        complete_punches=agg.complete_punches,
        has_incomplete_punch=agg.has_open_session,
        punches=[
            PunchItem(
                id=p.id,
                date=p.date,
                punch_in=p.punch_in,
                punch_out=p.punch_out,
                punch_in_location=p.punch_in_location,
                punch_out_location=p.punch_out_location,
            )
            for p in ordered
        ],
    )


# ── Punch write path ────────────────────────────────────────────────
@router.post("/punch-in", response_model=PunchResponse)
async def punch_in(
    body: PunchRequest,
    db: AsyncSession = Depends(get_db),
) -> PunchResponse:
    """Open a new session. Rejected with 409 while today's or last night's session is still open."""
    event = await punch_service.punch_in(db, body.employee_id, local_now(), body.location)
    return PunchResponse(
        success=True,
        event="IN",
        message="Successfully punched in!",
        punch=PunchRead.model_validate(event),
    )


@router.post("/punch-out", response_model=PunchResponse)
async def punch_out(
    body: PunchRequest,
    db: AsyncSession = Depends(get_db),
) -> PunchResponse:
    """Close the open session (yesterday's too, for overnight shifts)."""
    event = await punch_service.punch_out(db, body.employee_id, local_now(), body.location)
    return PunchResponse(
        success=True,
        event="OUT",
        message="Successfully punched out!",
        punch=PunchRead.model_validate(event),
    )


@router.post("/mark-present", response_model=PunchResponse, status_code=201)
async def mark_present(
    body: MarkPresentRequest,
    db: AsyncSession = Depends(get_db),
) -> PunchResponse:
    """Administrative correction for a day with no attendance."""
    event = await punch_service.mark_present(
        db,
        body.employee_id,
        body.date,
        punch_in_time=body.punch_in_time,
        punch_out_time=body.punch_out_time,
        reason=body.reason,
        location=body.location,
    )
    return PunchResponse(
        success=True,
        event="IN",
        message=f"Employee {body.employee_id} marked as present for {body.date.strftime('%b %d, %Y')}",
        punch=PunchRead.model_validate(event),
    )


# ── Bulk mark present ───────────────────────────────────────────────
@router.post("/bulk-mark-present", response_model=BulkMarkPresentResponse)
async def bulk_mark_present(
    body: BulkMarkPresentRequest,
    db: AsyncSession = Depends(get_db),
) -> BulkMarkPresentResponse:
    """Mark several employees present for one date; each employee succeeds or fails on its own."""
    outcome = await punch_service.bulk_mark_present(
        db,
        body.employee_ids,
        body.date,
        punch_in_time=body.punch_in_time,
        punch_out_time=body.punch_out_time,
        reason=body.reason,
        location=body.location,
    )
    summary = BulkMarkSummary(
        total=outcome.total,
        successful=len(outcome.successful),
        failed=len(outcome.failed),
        skipped=len(outcome.skipped),
    )
    return BulkMarkPresentResponse(
        success=True,
        message=(
            f"Bulk mark present completed. {summary.successful} successful, "
            f"{summary.failed} failed, {summary.skipped} skipped out of {summary.total} employees."
        ),
        successful=outcome.successful,
        failed=outcome.failed,
        skipped=outcome.skipped,
        summary=summary,
    )


# ── Today's punches for one employee ───────────────────────────────
@router.get("/today/{employee_id}", response_model=TodayResponse)
async def today_punches(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
) -> TodayResponse:
    """Today's sessions; an open session counts up to now.

    A session opened yesterday and still running (overnight shift) is included.
    """
    await get_tracked_employee(db, employee_id)
    now = local_now()
    today = DateRange(now.date(), now.date())

    recent = await load_punches(db, DateRange(now.date() - timedelta(days=1), now.date()), [employee_id])
    punches = sorted_punches(p for p in recent if p.date == now.date() or p.punch_out is None)
    leaves = await load_leaves(db, today, [employee_id])

    items = [
        TodayPunch(
            date=p.date,
            punch_in=p.punch_in,
            punch_out=p.punch_out,
            punch_in_location=p.punch_in_location,
            punch_out_location=p.punch_out_location,
            duration=format_seconds(session_seconds(p, now)),
        )
        for p in punches
    ]

    leave = find_leave(now.date(), leaves)
    return TodayResponse(
        employee_id=employee_id,
        punches=items,
        total_production_time=format_seconds(production_seconds(punches, now)),
        leave=LeaveRead.model_validate(leave) if leave else None,
    )


# ── Single day record ──────────────────────────────────────────────
@router.get("/day/{employee_id}/{day}", response_model=EmployeeDayRecord)
async def day_record(
    employee_id: int,
    day: date,
    db: AsyncSession = Depends(get_db),
) -> EmployeeDayRecord:
    """Classify one (employee, date)."""
    await get_tracked_employee(db, employee_id)
    span = DateRange(day, day)

    punches = await load_punches(db, span, [employee_id])
    holidays = await load_holidays(db, span)
    leaves = await load_leaves(db, span, [employee_id])

    record = classify_day(
        DayContext(
            day=day,
            session=aggregate_sessions(punches),
            is_holiday=is_holiday(day, holidays),
            leave=find_leave(day, leaves),
            is_today=day == local_today(),
        ),
        StatusSymbols.from_settings(),
    )
    return EmployeeDayRecord(employee_id=employee_id, **_day_record_read(record).model_dump())


# ── Organisation view of one date ──────────────────────────────────
@router.get("/daily", response_model=DailyAttendanceResponse)
async def daily_attendance(
    day: date | None = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> DailyAttendanceResponse:
    """Present employees (grouped punches, paginated), absent employees and leaves for a date."""
    day = day or local_today()
    span = DateRange(day, day)

    roster = await load_roster(db, params.search)
    ids = [emp.id for emp in roster]
    by_employee: dict[int, list[Punch]] = defaultdict(list)
    for p in await load_punches(db, span, ids):
        by_employee[p.employee_id].append(p)

    present = [emp for emp in roster if emp.id in by_employee]
    absent = [emp for emp in roster if emp.id not in by_employee]

    page = paginate(present, effective_page(params.page, params.search), params.per_page)
    leaves = await load_leaves(db, span, ids)

    return DailyAttendanceResponse(
        date=day,
        attendances=[_daily_row(emp, day, by_employee[emp.id]) for emp in page.data],
        absent_users=[_brief(emp) for emp in absent],
        leaves=[LeaveRead.model_validate(lv) for lv in leaves],
        current_page=page.page,
        last_page=page.last_page,
        total=page.total,
    )


# ── Employee view of one month ─────────────────────────────────────
@router.get("/employee/{employee_id}/daily", response_model=EmployeeDailyResponse)
async def employee_daily_attendance(
    employee_id: int,
    month: MonthParams = Depends(month_params),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> EmployeeDailyResponse:
    """One grouped row per date the employee punched, newest first."""
    emp = await get_tracked_employee(db, employee_id)
    span = month_bounds(month.year, month.month)

    by_day: dict[date, list[Punch]] = defaultdict(list)
    for p in await load_punches(db, span, [employee_id]):
        by_day[p.date].append(p)

    rows = [_daily_row(emp, d, by_day[d]) for d in sorted(by_day, reverse=True)]
    page = paginate(rows, params.page, params.per_page)

    return EmployeeDailyResponse(
        employee=_brief(emp),
        year=month.year,
        month=month.month,
        attendances=page.data,
        current_page=page.page,
        last_page=page.last_page,
        total=page.total,
    )


# ── Absent employees for a date ────────────────────────────────────
@router.get("/absent", response_model=AbsentResponse)
async def absent_users(
    day: date | None = Query(default=None, description="YYYY-MM-DD, defaults to today"),
    search: str | None = Query(default=None, max_length=100),
    db: AsyncSession = Depends(get_db),
) -> AbsentResponse:
    day = day or local_today()
    span = DateRange(day, day)

    roster = await load_roster(db, search.strip() if search else None)
    punches = await load_punches(db, span, [emp.id for emp in roster])
    present_ids = {p.employee_id for p in punches}
    absent = [emp for emp in roster if emp.id not in present_ids]
    leaves = await load_leaves(db, span, [emp.id for emp in absent])

    return AbsentResponse(
        date=day,
        absent_users=[_brief(emp) for emp in absent],
        leaves=[LeaveRead.model_validate(lv) for lv in leaves],
        total_absent=len(absent),
    )


# ── Monthly timesheet (DayRecord stream per employee) ──────────────
@router.get("/timesheet", response_model=TimesheetResponse)
async def timesheet(
    month: MonthParams = Depends(month_params),
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> TimesheetResponse:
    """Classify every day of the month range for a page of employees.

    One employee failing does not abort the batch: the failure is logged and
    reported in ``errors``.
    """
    today = local_today()
    span = month_range(month.year, month.month, today)
    bounds = month_bounds(month.year, month.month)

    roster = await load_roster(db, params.search)
    page = paginate(roster, effective_page(params.page, params.search), params.per_page)
    ids = [emp.id for emp in page.data]

    punches = await load_punches(db, span, ids)
    leaves = await load_leaves(db, bounds, ids)
    holidays = await load_holidays(db, span)
    leave_types = await load_leave_types(db)
    leave_symbols = {lt.id: lt.symbol for lt in leave_types}
    symbols = StatusSymbols.from_settings()

    punches_by_emp: dict[int, dict[date, list[Punch]]] = defaultdict(lambda: defaultdict(list))
    for p in punches:
        punches_by_emp[p.employee_id][p.date].append(p)
    leaves_by_emp = defaultdict(list)
    for lv in leaves:
        leaves_by_emp[lv.employee_id].append(lv)

    rows: list[TimesheetRow] = []
    errors: list[TimesheetError] = []
    for emp in page.data:
        try:
            records = classify_range(
                span,
                punches_by_emp.get(emp.id, {}),
                holidays,
                leaves_by_emp.get(emp.id, []),
                today,
                symbols,
                leave_symbols,
            )
            leave_counts = {lt.name: 0 for lt in leave_types}
            leave_counts.update(leave_days_in(bounds, leaves_by_emp.get(emp.id, [])))
            rows.append(
                TimesheetRow(
                    employee=_brief(emp),
                    days=[_day_record_read(r) for r in records],
                    leave_counts=leave_counts,
                )
            )
        except Exception as exc:
            logger.exception("Timesheet failed for employee %d (%s)", emp.id, emp.name)
            errors.append(
                TimesheetError(
                    employee_id=emp.id,
                    name=emp.name,
                    detail=f"Failed to compute attendance: {type(exc).__name__}",
                )
            )

    return TimesheetResponse(
        year=month.year,
        month=month.month,
        range_start=span.start,
        range_end=span.end,
        data=rows,
        total=page.total,
        page=page.page,
        last_page=page.last_page,
        leave_types=[LeaveTypeRead.model_validate(lt) for lt in leave_types],
        errors=errors,
    )
