"""
Plain immutable records handed to the computation core.

The loaders turn ORM rows into these so calendar / session / classifier /
statistics code never touches a database session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class Punch:
    employee_id: int
    date: date
    punch_in: datetime | None
    punch_out: datetime | None = None
    id: int | None = None
    punch_in_location: str | None = None
    punch_out_location: str | None = None


@dataclass(frozen=True)
class HolidaySpan:
    from_date: date
    to_date: date
    title: str = ""


@dataclass(frozen=True)
class LeaveSpan:
    employee_id: int
    leave_type_id: int
    leave_type: str
    from_date: date
    to_date: date
    symbol: str | None = None
    id: int | None = None

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date


@dataclass(frozen=True)
class RosterEntry:
    id: int
    name: str
    employee_code: str | None = None
    department: str | None = None
