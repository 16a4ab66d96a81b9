"""
Holiday model — organisation-wide, inclusive date ranges.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import Column, Date, Index, Integer, String

from attendance_engine.db.base import Base


class Holiday(Base):
    __tablename__ = "holidays"
    __table_args__ = (Index("ix_holiday_range", "from_date", "to_date"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    from_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    to_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
