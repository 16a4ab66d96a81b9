"""
Attendance Settings model — singleton table for admin-configurable rules.

Only one row should ever exist. The admin updates it via the settings API,
and the classifier / statistics logic reads it (as an immutable
``AttendancePolicy``) to determine weekends, late arrivals and overtime.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String

from attendance_engine.db.base import Base


class AttendanceSettings(Base):
    __tablename__ = "attendance_settings"

    id: int = Column(Integer, primary_key=True, default=1)  # type: ignore[assignment]
    weekend_days: list[str] = Column(  # type: ignore[assignment]
        JSON,
        nullable=False,
        default=lambda: ["saturday", "sunday"],
    )
    office_start: str = Column(String(5), nullable=False, default="09:00")  # type: ignore[assignment]
    office_end: str = Column(String(5), nullable=False, default="17:00")  # type: ignore[assignment]
    late_mark_after: int = Column(Integer, nullable=False, default=30)  # type: ignore[assignment]
    overtime_after: int = Column(Integer, nullable=False, default=30)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
