"""
Employee roster & punch models — core business domain.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Boolean, Column, Date, DateTime, ForeignKey, Index,
                        Integer, String, text)
from sqlalchemy.orm import relationship

from attendance_engine.db.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    employee_code: str | None = Column(String(64), unique=True, nullable=True, index=True)  # type: ignore[assignment]
    department: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    # Attendance-tracked role flag; only tracked employees appear in org-wide figures.
    is_tracked: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    punches = relationship(
        "PunchEvent",
        back_populates="employee",
        cascade="all, delete-orphan",
    )


class PunchEvent(Base):
    """One punch cycle. ``punch_out`` is NULL while the session is open."""

    __tablename__ = "punch_events"
    __table_args__ = (
        Index("ix_punch_employee_date", "employee_id", "date"),
        # At most one open session per employee per day.
        Index(
            "uq_punch_open_session",
            "employee_id",
            "date",
            unique=True,
            postgresql_where=text("punch_out IS NULL"),
            sqlite_where=text("punch_out IS NULL"),
        ),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    punch_in: datetime = Column(DateTime, nullable=False)  # type: ignore[assignment]
    punch_out: datetime | None = Column(DateTime, nullable=True)  # type: ignore[assignment]
    punch_in_location: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    punch_out_location: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]

    employee = relationship("Employee", back_populates="punches")
