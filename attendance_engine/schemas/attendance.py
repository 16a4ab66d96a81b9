"""Pydantic schemas for punches, day records, timesheets and monthly statistics."""

from __future__ import annotations

from datetime import date, datetime, time

from pydantic import BaseModel, Field, PositiveInt, field_validator

from attendance_engine.services.policy import WEEKDAY_NAMES, parse_hhmm


# ── Punch ───────────────────────────────────────────────────────────
class PunchRequest(BaseModel):
    employee_id: int = Field(gt=0)
    location: str | None = Field(default=None, max_length=500)


class PunchRead(BaseModel):
    id: int
    employee_id: int
    date: date
    punch_in: datetime
    punch_out: datetime | None
    punch_in_location: str | None = None
    punch_out_location: str | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}


class PunchResponse(BaseModel):
    success: bool
    event: str  # IN | OUT
    message: str
    punch: PunchRead


class MarkPresentRequest(BaseModel):
    employee_id: int = Field(gt=0)
    date: date
    punch_in_time: time | None = None
    punch_out_time: time | None = None
    reason: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=500)


class BulkMarkPresentRequest(BaseModel):
    employee_ids: list[PositiveInt] = Field(min_length=1, max_length=500)
    date: date
    punch_in_time: time | None = None
    punch_out_time: time | None = None
    reason: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=500)


class BulkMarkItem(BaseModel):
    employee_id: int
    name: str | None = None
    punch_id: int | None = None
    reason: str | None = None


class BulkMarkSummary(BaseModel):
    total: int
    successful: int
    failed: int
    skipped: int


class BulkMarkPresentResponse(BaseModel):
    success: bool
    message: str
    successful: list[BulkMarkItem]
    failed: list[BulkMarkItem]
    skipped: list[BulkMarkItem]
    summary: BulkMarkSummary


# ── Roster / leave ─────────────────────────────────────────────────
class EmployeeBrief(BaseModel):
    id: int
    name: str
    employee_code: str | None = None
    department: str | None = None

    model_config = {"from_attributes": True}


class LeaveRead(BaseModel):
    id: int | None
    employee_id: int
    leave_type_id: int
    leave_type: str
    symbol: str | None
    from_date: date
    to_date: date

    model_config = {"from_attributes": True}


class LeaveTypeRead(BaseModel):
    id: int
    name: str
    symbol: str | None
    days: int

    model_config = {"from_attributes": True}


# ── Day record ─────────────────────────────────────────────────────
class DayRecordRead(BaseModel):
    date: date
    kind: str
    status: str
    punch_in: datetime | None
    punch_out: datetime | None
    total_minutes: int
    total_work_hours: str
    remarks: str
    leave_type: str | None = None

    model_config = {"from_attributes": True}


class EmployeeDayRecord(DayRecordRead):
    employee_id: int


# ── Today's punches ────────────────────────────────────────────────
class TodayPunch(BaseModel):
    date: date
    punch_in: datetime
    punch_out: datetime | None
    punch_in_location: str | None
    punch_out_location: str | None
    duration: str  # HH:MM:SS


class TodayResponse(BaseModel):
    employee_id: int
    punches: list[TodayPunch]
    total_production_time: str
    leave: LeaveRead | None = None


# ── Daily attendance (grouped punches) ─────────────────────────────
class PunchItem(BaseModel):
    id: int | None
    date: date
    punch_in: datetime | None
    punch_out: datetime | None
    punch_in_location: str | None = None
    punch_out_location: str | None = None


class DailyAttendanceRow(BaseModel):
    employee: EmployeeBrief
    date: date
    punch_in: datetime | None
    punch_out: datetime | None
    punch_in_location: str | None
    punch_out_location: str | None
    total_work_minutes: int
    total_work_hours: str
    punch_count: int
    complete_punches: int
    has_incomplete_punch: bool
    punches: list[PunchItem]


class DailyAttendanceResponse(BaseModel):
    date: date
    attendances: list[DailyAttendanceRow]
    absent_users: list[EmployeeBrief]
    leaves: list[LeaveRead]
    current_page: int
    last_page: int
    total: int


class EmployeeDailyResponse(BaseModel):
    employee: EmployeeBrief
    year: int
    month: int
    attendances: list[DailyAttendanceRow]
    current_page: int
    last_page: int
    total: int


class AbsentResponse(BaseModel):
    date: date
    absent_users: list[EmployeeBrief]
    leaves: list[LeaveRead]
    total_absent: int


# ── Timesheet ──────────────────────────────────────────────────────
class TimesheetRow(BaseModel):
    employee: EmployeeBrief
    days: list[DayRecordRead]
    leave_counts: dict[str, int]


class TimesheetError(BaseModel):
    employee_id: int
    name: str
    detail: str


class TimesheetResponse(BaseModel):
    year: int
    month: int
    range_start: date
    range_end: date
    data: list[TimesheetRow]
    total: int
    page: int
    last_page: int
    leave_types: list[LeaveTypeRead]
    errors: list[TimesheetError] = Field(default_factory=list)


# ── Statistics ─────────────────────────────────────────────────────
class MonthlyStatsResponse(BaseModel):
    year: int
    month: int
    month_name: str
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
    leave_breakdown: dict[str, int]
    total_leave_days: int
    attendance_percentage: float
    average_work_hours_per_day: float
    perfect_attendance_employees: float
    generated_at: datetime

    model_config = {"from_attributes": True}


class WorkingDaysResponse(BaseModel):
    start: date
    end: date
    total_days: int
    holiday_days: int
    weekend_days: int
    working_days: int


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool


# ── Attendance Settings ────────────────────────────────────────────
def _check_weekend(v: list[str]) -> list[str]:
    names = [d.strip().lower() for d in v if d and d.strip()]
    unknown = sorted(set(names) - set(WEEKDAY_NAMES))
    if unknown:
        raise ValueError(f"Unknown weekday name(s): {', '.join(unknown)}")
    # Keep calendar order, drop duplicates
    return [d for d in WEEKDAY_NAMES if d in names]


def _check_hhmm(v: str) -> str:
    return parse_hhmm(v).strftime("%H:%M")


class AttendanceSettingsRead(BaseModel):
    weekend_days: list[str]
    office_start: str
    office_end: str
    late_mark_after: int
    overtime_after: int

    model_config = {"from_attributes": True}


class AttendanceSettingsUpdate(BaseModel):
    weekend_days: list[str] | None = None
    office_start: str | None = None
    office_end: str | None = None
    late_mark_after: int | None = Field(default=None, ge=0, le=24 * 60)
    overtime_after: int | None = Field(default=None, ge=0, le=24 * 60)

    @field_validator("weekend_days")
    @classmethod
    def _weekend(cls, v: list[str] | None) -> list[str] | None:
        return _check_weekend(v) if v is not None else v

    @field_validator("office_start", "office_end")
    @classmethod
    def _hhmm(cls, v: str | None) -> str | None:
        return _check_hhmm(v) if v is not None else v
