"""
Reporting endpoints — monthly statistics, working-day counts and health.

Each endpoint fetches the scope's punches, leaves and holidays in one query
apiece and aggregates in Python.
"""

from __future__ import annotations

import calendar
import dataclasses
import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.api.v1.deps import MonthParams, get_db, month_params
from attendance_engine.core.clock import local_now
from attendance_engine.schemas.attendance import (HealthResponse,
                                                  MonthlyStatsResponse,
                                                  WorkingDaysResponse)
from attendance_engine.services.calendar_utils import (DateRange, month_bounds,
                                                       month_range,
                                                       working_days)
from attendance_engine.services.loader import (get_tracked_employee,
                                               load_holidays, load_leaves,
                                               load_policy, load_punches,
                                               load_roster)
from attendance_engine.services.statistics import Scope, compute_monthly_stats

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


# ── Monthly statistics ─────────────────────────────────────────────
@router.get("/reports/monthly-stats", response_model=MonthlyStatsResponse)
async def monthly_stats(
    month: MonthParams = Depends(month_params),
    employee_id: int | None = Query(default=None, gt=0),
    db: AsyncSession = Depends(get_db),
) -> MonthlyStatsResponse:
    """Statistics for one employee, or for every tracked employee when ``employee_id`` is omitted."""
    now = local_now()
    today = now.date()

    if employee_id is not None:
        await get_tracked_employee(db, employee_id)
        scope = Scope.single(employee_id)
    else:
        roster = await load_roster(db)
        scope = Scope.organisation(emp.id for emp in roster)

    ids = sorted(scope.employee_ids)
    span = month_range(month.year, month.month, today)
    policy = await load_policy(db)
    punches = await load_punches(db, span, ids)
    leaves = await load_leaves(db, month_bounds(month.year, month.month), ids)
    holidays = await load_holidays(db, span)

    stats = compute_monthly_stats(
        month.year, month.month, scope, punches, leaves, holidays, policy, today
    )
    logger.info(
        "Monthly stats %04d-%02d for %s: %d present / %d working days",
        month.year,
        month.month,
        f"employee {employee_id}" if scope.is_single else f"{scope.employee_count} employees",
        stats.total_present_days,
        stats.total_working_days,
    )
    return MonthlyStatsResponse(
        **dataclasses.asdict(stats),
        month_name=calendar.month_name[month.month],
        generated_at=now,
    )


# ── Working days between two dates ─────────────────────────────────
@router.get("/reports/working-days", response_model=WorkingDaysResponse)
async def working_days_between(
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
) -> WorkingDaysResponse:
    """Inclusive day count minus holidays and non-holiday weekend days."""
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")

    span = DateRange(start, end)
    policy = await load_policy(db)
    holidays = await load_holidays(db, span)
    counts = working_days(span, policy.weekend_days, holidays)
    return WorkingDaysResponse(
        start=start,
        end=end,
        total_days=counts.total_days,
        holiday_days=counts.holiday_days,
        weekend_days=counts.weekend_days,
        working_days=max(0, counts.working_days),
    )


# ── Health (PUBLIC) ────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    result = HealthResponse(db=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    return result
