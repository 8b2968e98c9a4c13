"""
Settings endpoints — admin-configurable attendance rules.

Singleton pattern: only one row in attendance_settings. GET retrieves it,
PUT updates it. If no row exists, one is created with defaults on first GET.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import Principal, get_db, require_admin
from shiftclock.models.attendance_settings import AttendanceSettings
from shiftclock.schemas.report import AttendanceSettingsRead, AttendanceSettingsUpdate
from shiftclock.services.rules import get_or_create_settings

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)


@router.get("/settings", response_model=AttendanceSettingsRead)
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> AttendanceSettings:
    """Get current attendance rules."""
    return await get_or_create_settings(db)


@router.put("/settings", response_model=AttendanceSettingsRead)
async def update_settings(
    body: AttendanceSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> AttendanceSettings:
    """Update working-hour rules (daily norm, weekly limit, unscheduled policy)."""
    rules = await get_or_create_settings(db)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(rules, field, value)

    await db.commit()
    await db.refresh(rules)
    logger.info("Attendance settings updated: %s", body.model_dump(exclude_unset=True))
    return rules
