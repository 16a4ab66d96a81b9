"""
Settings endpoints — the attendance policy.

Singleton pattern: only one row in attendance_settings. GET retrieves it,
PUT updates it. If no row exists, one is created with defaults on first GET.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.api.v1.deps import get_db
from attendance_engine.models.attendance_settings import AttendanceSettings
from attendance_engine.schemas.attendance import (AttendanceSettingsRead,
                                                  AttendanceSettingsUpdate)
from attendance_engine.services.policy import (DEFAULT_LATE_MARK_AFTER,
                                               DEFAULT_OVERTIME_AFTER,
                                               DEFAULT_WEEKEND)

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


async def _get_or_create_settings(db: AsyncSession) -> AttendanceSettings:
    """Fetch the singleton settings row, creating it with defaults if absent."""
    result = await db.execute(select(AttendanceSettings).limit(1))
    row = result.scalar_one_or_none()
    if row is None:
        row = AttendanceSettings(
            id=1,
            weekend_days=sorted(DEFAULT_WEEKEND),
            office_start="09:00",
            office_end="17:00",
            late_mark_after=DEFAULT_LATE_MARK_AFTER,
            overtime_after=DEFAULT_OVERTIME_AFTER,
        )
        db.add(row)
        await db.commit()
        await db.refresh(row)
        logger.info("Created default attendance settings")
    return row


@router.get("/settings", response_model=AttendanceSettingsRead)
async def get_settings(db: AsyncSession = Depends(get_db)) -> AttendanceSettings:
    """Get current attendance policy."""
    return await _get_or_create_settings(db)


@router.put("/settings", response_model=AttendanceSettingsRead)
async def update_settings(
    body: AttendanceSettingsUpdate,
    db: AsyncSession = Depends(get_db),
) -> AttendanceSettings:
    """Update weekend days, office hours and grace periods."""
    row = await _get_or_create_settings(db)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(row, field, value)

    await db.commit()
    await db.refresh(row)
    logger.info("Attendance settings updated: %s", changes)
    return row
