"""
FastAPI dependencies — database session and shared query parameters.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Query
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_engine.core.config import settings
from attendance_engine.db.session import async_session_factory


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Shared query parameters ─────────────────────────────────────────
@dataclass
class PageParams:
    page: int
    per_page: int
    search: str | None


def page_params(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
    search: str | None = Query(default=None, max_length=100),
) -> PageParams:
    search = search.strip() if search else None
    return PageParams(page=page, per_page=per_page, search=search or None)


@dataclass
class MonthParams:
    year: int
    month: int


def month_params(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
) -> MonthParams:
    return MonthParams(year=year, month=month)
