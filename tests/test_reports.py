"""Tests for the read side — day records, daily views, timesheet and monthly statistics."""

from datetime import date, datetime

import pytest
from conftest import add_employee, add_holiday, add_leave, add_punch
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.api.v1.endpoints import attendance as attendance_endpoints


async def _seed_march(db: AsyncSession):
    """Two tracked employees and one untracked; March 2024 punches, leave and holiday."""
    alice = await add_employee(db, "Alice Smith", employee_code="E-001")
    bob = await add_employee(db, "Bob Jones", employee_code="E-002")
    await add_employee(db, "Contractor", is_tracked=False)

    await add_punch(db, alice.id, datetime(2024, 3, 5, 9, 10), datetime(2024, 3, 5, 18, 5))
    await add_punch(db, alice.id, datetime(2024, 3, 7, 9, 45), datetime(2024, 3, 7, 12, 0))
    await add_punch(db, alice.id, datetime(2024, 3, 7, 13, 0))
    await add_leave(db, alice.id, date(2024, 3, 6), date(2024, 3, 6), "Sick Leave", "SL")
    await add_leave(db, bob.id, date(2024, 3, 8), date(2024, 3, 8), "Sick Leave", "SL")
    await add_holiday(db, "Founders Day", date(2024, 3, 8), date(2024, 3, 9))
    return alice, bob


# ── Day record ─────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_day_record_leave_beats_holiday(async_client: AsyncClient, db_session: AsyncSession):
    """Approved leave on a holiday shows the leave symbol."""
    _, bob = await _seed_march(db_session)
    resp = await async_client.get(f"/api/v1/attendance/day/{bob.id}/2024-03-08")
    assert resp.status_code == 200
    record = resp.json()
    assert record["kind"] == "leave"
    assert record["status"] == "SL"
    assert record["remarks"] == "On Leave"


@pytest.mark.asyncio
async def test_day_record_holiday(async_client: AsyncClient, db_session: AsyncSession):
    alice, _ = await _seed_march(db_session)
    resp = await async_client.get(f"/api/v1/attendance/day/{alice.id}/2024-03-08")
    record = resp.json()
    assert record["kind"] == "holiday"
    assert record["status"] == "#"
    assert record["remarks"] == "Holiday"


@pytest.mark.asyncio
async def test_day_record_overnight(async_client: AsyncClient, db_session: AsyncSession):
    emp = await add_employee(db_session, "Night Owl")
    await add_punch(db_session, emp.id, datetime(2024, 3, 5, 22, 0), datetime(2024, 3, 6, 6, 0))
    resp = await async_client.get(f"/api/v1/attendance/day/{emp.id}/2024-03-05")
    record = resp.json()
    assert record["total_minutes"] == 480
    assert record["total_work_hours"] == "08:00"


@pytest.mark.asyncio
async def test_day_record_not_punched_out(async_client: AsyncClient, db_session: AsyncSession):
    alice, _ = await _seed_march(db_session)
    resp = await async_client.get(f"/api/v1/attendance/day/{alice.id}/2024-03-07")
    record = resp.json()
    assert record["kind"] == "present"
    assert record["punch_out"] == "2024-03-07T12:00:00"
    assert record["total_minutes"] == 135


@pytest.mark.asyncio
async def test_day_record_bad_date(async_client: AsyncClient, db_session: AsyncSession):
    emp = await add_employee(db_session, "Gil")
    resp = await async_client.get(f"/api/v1/attendance/day/{emp.id}/2024-02-30")
    assert resp.status_code == 422


# ── Daily views ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_daily_attendance(async_client: AsyncClient, db_session: AsyncSession):
    alice, bob = await _seed_march(db_session)
    resp = await async_client.get("/api/v1/attendance/daily", params={"day": "2024-03-07"})
    assert resp.status_code == 200
    data = resp.json()

    assert data["total"] == 1
    row = data["attendances"][0]
    assert row["employee"]["id"] == alice.id
    assert row["punch_count"] == 2
    assert row["complete_punches"] == 1
    assert row["has_incomplete_punch"] is True
    assert row["total_work_hours"] == "02:15"
    assert [u["id"] for u in data["absent_users"]] == [bob.id]


@pytest.mark.asyncio
async def test_daily_attendance_search(async_client: AsyncClient, db_session: AsyncSession):
    await _seed_march(db_session)
    resp = await async_client.get(
        "/api/v1/attendance/daily", params={"day": "2024-03-07", "search": "bob", "page": 3}
    )
    data = resp.json()
    assert data["current_page"] == 1
    assert data["attendances"] == []
    assert [u["name"] for u in data["absent_users"]] == ["Bob Jones"]


@pytest.mark.asyncio
async def test_employee_daily_newest_first(async_client: AsyncClient, db_session: AsyncSession):
    alice, _ = await _seed_march(db_session)
    resp = await async_client.get(
        f"/api/v1/attendance/employee/{alice.id}/daily", params={"year": 2024, "month": 3}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [row["date"] for row in data["attendances"]] == ["2024-03-07", "2024-03-05"]
    assert data["total"] == 2
    assert data["last_page"] == 1


@pytest.mark.asyncio
async def test_absent_users(async_client: AsyncClient, db_session: AsyncSession):
    _, bob = await _seed_march(db_session)
    resp = await async_client.get("/api/v1/attendance/absent", params={"day": "2024-03-08"})
    data = resp.json()
    assert data["total_absent"] == 2
    assert len(data["leaves"]) == 1
    assert data["leaves"][0]["employee_id"] == bob.id
    assert data["leaves"][0]["leave_type"] == "Sick Leave"


# ── Timesheet ──────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_timesheet(async_client: AsyncClient, db_session: AsyncSession):
    alice, bob = await _seed_march(db_session)
    resp = await async_client.get("/api/v1/attendance/timesheet", params={"year": 2024, "month": 3})
    assert resp.status_code == 200
    data = resp.json()

    assert data["total"] == 2  # untracked employee excluded
    assert data["errors"] == []
    assert data["range_start"] == "2024-03-01"
    assert data["range_end"] == "2024-03-31"

    rows = {row["employee"]["id"]: row for row in data["data"]}
    alice_days = rows[alice.id]["days"]
    assert len(alice_days) == 31
    assert [d["status"] for d in alice_days[4:8]] == ["√", "SL", "√", "#"]
    assert alice_days[6]["remarks"] == "Present"
    assert alice_days[6]["punch_out"] == "2024-03-07T12:00:00"
    assert rows[alice.id]["leave_counts"] == {"Sick Leave": 1}

    bob_days = rows[bob.id]["days"]
    assert bob_days[7]["status"] == "SL"  # leave on a holiday
    assert bob_days[8]["status"] == "#"
    assert bob_days[4]["status"] == "▼"


@pytest.mark.asyncio
async def test_timesheet_pagination(async_client: AsyncClient, db_session: AsyncSession):
    alice, bob = await _seed_march(db_session)
    resp = await async_client.get(
        "/api/v1/attendance/timesheet", params={"year": 2024, "month": 3, "per_page": 1, "page": 2}
    )
    data = resp.json()
    assert data["last_page"] == 2
    assert [row["employee"]["id"] for row in data["data"]] == [bob.id]


@pytest.mark.asyncio
async def test_timesheet_rejects_bad_month(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/attendance/timesheet", params={"year": 2024, "month": 13})
    assert resp.status_code == 422
    body = resp.json()
    assert body["success"] is False
    assert isinstance(body["detail"], list)


# ── Monthly statistics ─────────────────────────────────────────────
@pytest.mark.asyncio
async def test_monthly_stats_single_employee(async_client: AsyncClient, db_session: AsyncSession):
    alice, _ = await _seed_march(db_session)
    resp = await async_client.get(
        "/api/v1/reports/monthly-stats", params={"year": 2024, "month": 3, "employee_id": alice.id}
    )
    assert resp.status_code == 200
    stats = resp.json()

    assert stats["month_name"] == "March"
    assert stats["employee_id"] == alice.id
    assert stats["total_holidays"] == 2
    assert stats["total_weekend_days"] == 9
    assert stats["total_working_days"] == 20
    assert stats["total_present_days"] == 2
    assert stats["total_absent_days"] == 18
    assert stats["total_late_arrivals"] == 1
    assert stats["total_overtime_minutes"] == 35
    assert stats["leave_breakdown"] == {"Sick Leave": 1}
    assert stats["attendance_percentage"] == 10.0


@pytest.mark.asyncio
async def test_monthly_stats_organisation(async_client: AsyncClient, db_session: AsyncSession):
    await _seed_march(db_session)
    resp = await async_client.get("/api/v1/reports/monthly-stats", params={"year": 2024, "month": 3})
    stats = resp.json()
    assert stats["employee_id"] is None
    assert stats["total_employees"] == 2
    assert stats["total_present_days"] == 2
    assert stats["total_absent_days"] == 38
    assert stats["leave_breakdown"] == {"Sick Leave": 2}
    assert stats["attendance_percentage"] == 5.0


@pytest.mark.asyncio
async def test_monthly_stats_untracked_employee(async_client: AsyncClient, db_session: AsyncSession):
    emp = await add_employee(db_session, "Contractor", is_tracked=False)
    resp = await async_client.get(
        "/api/v1/reports/monthly-stats", params={"year": 2024, "month": 3, "employee_id": emp.id}
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_monthly_stats_empty_organisation(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/monthly-stats", params={"year": 2024, "month": 3})
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["attendance_percentage"] == 0.0
    assert stats["average_work_hours_per_day"] == 0.0


# ── Working days / health ──────────────────────────────────────────
@pytest.mark.asyncio
async def test_working_days_with_weekend_holiday(async_client: AsyncClient, db_session: AsyncSession):
    await add_holiday(db_session, "Festival", date(2024, 3, 8), date(2024, 3, 9))
    resp = await async_client.get(
        "/api/v1/reports/working-days", params={"start": "2024-03-04", "end": "2024-03-10"}
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "start": "2024-03-04",
        "end": "2024-03-10",
        "total_days": 7,
        "holiday_days": 2,
        "weekend_days": 1,
        "working_days": 4,
    }


@pytest.mark.asyncio
async def test_working_days_inverted_range(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/reports/working-days", params={"start": "2024-03-10", "end": "2024-03-04"}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json() == {"db": True}


@pytest.mark.asyncio
async def test_timesheet_isolates_employee_failure(
    async_client: AsyncClient, db_session: AsyncSession, monkeypatch
):
    """One employee failing to classify is reported in ``errors``; the rest of the page is returned."""
    alice, bob = await _seed_march(db_session)
    real_classify = attendance_endpoints.classify_range
    calls = []

    def fail_first(*args, **kwargs):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("corrupt punch row")
        return real_classify(*args, **kwargs)

    monkeypatch.setattr(attendance_endpoints, "classify_range", fail_first)

    resp = await async_client.get("/api/v1/attendance/timesheet", params={"year": 2024, "month": 3})
    assert resp.status_code == 200
    data = resp.json()
    assert [row["employee"]["id"] for row in data["data"]] == [bob.id]
    assert data["errors"] == [
        {
            "employee_id": alice.id,
            "name": "Alice Smith",
            "detail": "Failed to compute attendance: RuntimeError",
        }
    ]
