"""
Leave models — leave types (with timesheet symbols) and leave records.

Both tables are owned by the leave-management system; this service only reads them.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Index, Integer,
                        String)
from sqlalchemy.orm import relationship

from attendance_engine.db.base import Base


class LeaveType(Base):
    __tablename__ = "leave_types"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), unique=True, nullable=False)  # type: ignore[assignment]
    # Casual | Sick | Earned | ...
    symbol: str | None = Column(String(10), nullable=True)  # type: ignore[assignment]
    days: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]


class Leave(Base):
    __tablename__ = "leaves"
    __table_args__ = (Index("ix_leave_employee_range", "employee_id", "from_date", "to_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("employees.id"), nullable=False)  # type: ignore[assignment]
    leave_type_id: int = Column(Integer, ForeignKey("leave_types.id"), nullable=False)  # type: ignore[assignment]
    from_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    to_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="approved",
        server_default="approved",
    )  # pending | approved | rejected
    reason: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    leave_type = relationship("LeaveType")
