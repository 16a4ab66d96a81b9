"""Tests for the day classifier — precedence, symbols and remarks."""

from datetime import date

from conftest import at, punch

from attendance_engine.services.calendar_utils import DateRange
from attendance_engine.services.classifier import (DayContext, DayStatus,
                                                   StatusSymbols, classify_day,
                                                   classify_range,
                                                   resolve_status)
from attendance_engine.services.records import HolidaySpan, LeaveSpan
from attendance_engine.services.sessions import (EMPTY_AGGREGATE,
                                                 aggregate_sessions)

DAY = date(2024, 3, 5)
SYMBOLS = StatusSymbols()
SICK = LeaveSpan(
    employee_id=1,
    leave_type_id=2,
    leave_type="Sick Leave",
    from_date=date(2024, 3, 4),
    to_date=date(2024, 3, 6),
    symbol="SL",
)


def _ctx(punches=(), **kwargs) -> DayContext:
    return DayContext(day=DAY, session=aggregate_sessions(punches), **kwargs)


def test_leave_beats_holiday():
    record = classify_day(_ctx(is_holiday=True, leave=SICK), SYMBOLS)
    assert record.kind is DayStatus.LEAVE
    assert record.status == "SL"
    assert record.remarks == "On Leave"
    assert record.leave_type == "Sick Leave"


def test_leave_beats_punches():
    record = classify_day(_ctx([punch(DAY, (9, 0), (17, 0))], leave=SICK), SYMBOLS)
    assert record.kind is DayStatus.LEAVE
    assert record.total_minutes == 480


def test_holiday_without_punches():
    record = classify_day(_ctx(is_holiday=True), SYMBOLS)
    assert record.kind is DayStatus.HOLIDAY
    assert record.status == "#"
    assert record.remarks == "Holiday"


def test_present_on_holiday():
    record = classify_day(_ctx([punch(DAY, (10, 0), (12, 0))], is_holiday=True), SYMBOLS)
    assert record.kind is DayStatus.HOLIDAY_PRESENT
    assert record.status == "√"
    assert record.remarks == "Present on Holiday"


def test_present_with_hours():
    record = classify_day(_ctx([punch(DAY, (9, 0), (17, 30))]), SYMBOLS)
    assert record.kind is DayStatus.PRESENT
    assert record.remarks == "Present"
    assert record.total_work_hours == "08:30"
    assert record.punch_in == at(DAY, 9)
    assert record.punch_out == at(DAY, 17, 30)


def test_open_session_today_is_currently_working():
    record = classify_day(_ctx([punch(DAY, (9, 0))], is_today=True), SYMBOLS)
    assert record.status == "√"
    assert record.remarks == "Currently Working"


def test_open_session_in_the_past_is_not_punched_out():
    record = classify_day(_ctx([punch(DAY, (9, 0))]), SYMBOLS)
    assert record.remarks == "Not Punched Out"
    assert record.total_work_hours == "00:00"


def test_absent():
    record = classify_day(DayContext(day=DAY, session=EMPTY_AGGREGATE), SYMBOLS)
    assert record.kind is DayStatus.ABSENT
    assert record.status == "▼"
    assert record.remarks == "Absent"


def test_leave_symbol_resolution_order():
    unmapped = LeaveSpan(1, 9, "Unpaid", date(2024, 3, 5), date(2024, 3, 5))
    assert classify_day(_ctx(leave=unmapped), SYMBOLS).status == "/"
    assert classify_day(_ctx(leave=unmapped), SYMBOLS, {9: "UL"}).status == "UL"
    assert classify_day(_ctx(leave=SICK), SYMBOLS, {2: None}).status == "SL"


def test_custom_symbols():
    symbols = StatusSymbols(present="P", absent="A", holiday="H", leave="L")
    assert classify_day(_ctx(), symbols).status == "A"
    assert classify_day(_ctx(is_holiday=True), symbols).status == "H"


def test_resolve_status_first_guard_wins():
    assert resolve_status(_ctx([punch(DAY, (9, 0))], is_holiday=True)) is DayStatus.HOLIDAY_PRESENT


def test_classify_range_one_record_per_day():
    span = DateRange(date(2024, 3, 4), date(2024, 3, 8))
    records = classify_range(
        span,
        {date(2024, 3, 4): [punch(date(2024, 3, 4), (9, 0), (17, 0))]},
        [HolidaySpan(date(2024, 3, 8), date(2024, 3, 8), "Founders Day")],
        [LeaveSpan(1, 2, "Sick Leave", date(2024, 3, 6), date(2024, 3, 6), "SL")],
        today=date(2024, 3, 31),
        symbols=SYMBOLS,
    )
    assert [r.date for r in records] == list(span)
    assert [r.kind for r in records] == [
        DayStatus.PRESENT,
        DayStatus.ABSENT,
        DayStatus.LEAVE,
        DayStatus.ABSENT,
        DayStatus.HOLIDAY,
    ]


def test_reclassification_is_idempotent():
    ctx = _ctx([punch(DAY, (9, 0), (12, 0)), punch(DAY, (13, 0))], is_holiday=True)
    assert classify_day(ctx, SYMBOLS) == classify_day(ctx, SYMBOLS)
