"""
Attendance Engine — Application entry point.

This is the **only** file that assembles the app.  All computation lives
in `services/`; `api/`, `models/` and `core/` wire it to HTTP and storage.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from attendance_engine.api.v1.api import api_router
from attendance_engine.core.config import settings
from attendance_engine.core.exceptions import register_exception_handlers
from attendance_engine.db.base import Base
from attendance_engine.db.session import engine

# Ensure all models are imported so metadata.create_all can see them
from attendance_engine.models.attendance_settings import AttendanceSettings  # noqa: F401
from attendance_engine.models.employee import Employee, PunchEvent  # noqa: F401
from attendance_engine.models.holiday import Holiday  # noqa: F401
from attendance_engine.models.leave import Leave, LeaveType  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    logger.info("%s v%s started (TZ %s)", settings.PROJECT_NAME, settings.VERSION, settings.TIMEZONE_OFFSET)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Employee attendance reconciliation and statistics",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
