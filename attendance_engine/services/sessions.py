"""
Session aggregator — folds one employee-day of punches into a single record.

Only closed sessions contribute worked minutes. A punch-out whose time of day
is earlier than its punch-in belongs to the following day (overnight shift).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from functools import reduce
from typing import TypeVar

from attendance_engine.services.records import Punch

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class SessionAggregate:
    total_minutes: int = 0
    first_punch_in: datetime | None = None
    last_completed_punch_out: datetime | None = None
    has_any_punch: bool = False
    punch_count: int = 0
    complete_punches: int = 0
    has_open_session: bool = False


EMPTY_AGGREGATE = SessionAggregate()


def corrected_punch_out(punch_in: datetime, punch_out: datetime) -> datetime:
    """Anchor ``punch_out`` to the punch-in day, rolling past midnight if needed."""
    out = datetime.combine(punch_in.date(), punch_out.time())
    if out < punch_in:
        out += timedelta(days=1)
    return out


def elapsed_minutes(punch_in: datetime, punch_out: datetime) -> int:
    """Whole minutes worked in one closed session; never negative."""
    delta = corrected_punch_out(punch_in, punch_out) - punch_in
    return int(delta.total_seconds() // 60)


def _fold(agg: SessionAggregate, punch: Punch) -> SessionAggregate:
    closed = punch.punch_out is not None
    return SessionAggregate(
        total_minutes=agg.total_minutes
        + (elapsed_minutes(punch.punch_in, punch.punch_out) if closed else 0),
        first_punch_in=agg.first_punch_in or punch.punch_in,
        last_completed_punch_out=punch.punch_out if closed else agg.last_completed_punch_out,
        has_any_punch=True,
        punch_count=agg.punch_count + 1,
        complete_punches=agg.complete_punches + (1 if closed else 0),
        has_open_session=agg.has_open_session or not closed,
    )


def sorted_punches(punches: Iterable[Punch]) -> list[Punch]:
    """Punches with a punch-in, oldest first. Rows without punch-in carry no data."""
    return sorted((p for p in punches if p.punch_in is not None), key=lambda p: p.punch_in)


def aggregate_sessions(punches: Iterable[Punch]) -> SessionAggregate:
    """Reduce one employee-day of punches (any order) to a ``SessionAggregate``.

    Folding oldest-first means the last closed session seen wins, so
    ``last_completed_punch_out`` survives a trailing open session.
    """
    return reduce(_fold, sorted_punches(punches), EMPTY_AGGREGATE)


def group_punches(
    punches: Iterable[Punch],
    key: Callable[[Punch], K],
) -> dict[K, list[Punch]]:
    grouped: dict[K, list[Punch]] = defaultdict(list)
    for punch in punches:
        grouped[key(punch)].append(punch)
    return dict(grouped)


def employee_day_key(punch: Punch) -> tuple[int, date]:
    return punch.employee_id, punch.date


def aggregate_by_employee_day(
    punches: Iterable[Punch],
) -> dict[tuple[int, date], SessionAggregate]:
    return {
        k: aggregate_sessions(group)
        for k, group in group_punches(punches, employee_day_key).items()
    }


def session_seconds(punch: Punch, now: datetime) -> int:
    """Seconds in one session; an open session runs until ``now``."""
    if punch.punch_in is None:
        return 0
    if punch.punch_out is not None:
        end = corrected_punch_out(punch.punch_in, punch.punch_out)
    else:
        end = now
    return max(0, int((end - punch.punch_in).total_seconds()))


def production_seconds(punches: Iterable[Punch], now: datetime) -> int:
    return sum(session_seconds(p, now) for p in punches)


def format_minutes(minutes: int) -> str:
    """``HH:MM``; hours are not capped at 24."""
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours:02d}:{mins:02d}"


def format_seconds(seconds: int) -> str:
    hours, rem = divmod(max(0, int(seconds)), 3600)
    mins, secs = divmod(rem, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"
