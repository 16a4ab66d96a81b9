"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from attendance_engine.api.v1.endpoints import attendance, reports, settings

api_router = APIRouter()

# Punches, day records, daily views, timesheet
api_router.include_router(attendance.router)

# Monthly statistics, working days, health
api_router.include_router(reports.router)

# Attendance policy (weekend, office hours, grace periods)
api_router.include_router(settings.router)
