"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from shiftclock.api.v1.endpoints import (attendance, collaborators, reports, schedules,
                                         settings, shifts)

api_router = APIRouter()

# Collaborator catalog
api_router.include_router(collaborators.router)

# Shifts and shift patterns
api_router.include_router(shifts.router)

# Schedule grid and planning tools
api_router.include_router(schedules.router)

# Capture, manual records, corrections
api_router.include_router(attendance.router)

# Hours report, health, status
api_router.include_router(reports.router)

# Working-hour rules
api_router.include_router(settings.router)
