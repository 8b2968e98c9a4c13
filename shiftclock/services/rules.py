"""
Access to the singleton attendance-settings row.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.models.attendance_settings import AttendanceSettings

logger = logging.getLogger(__name__)


async def get_or_create_settings(db: AsyncSession) -> AttendanceSettings:
    """Fetch the singleton settings row, creating it with defaults if absent."""
    result = await db.execute(select(AttendanceSettings).limit(1))
    rules = result.scalar_one_or_none()
    if rules is None:
        rules = AttendanceSettings(
            id=1,
            daily_hours=8.0,
            weekly_hours_limit=44.0,
            allow_unscheduled_entry=True,
        )
        db.add(rules)
        await db.commit()
        await db.refresh(rules)
        logger.info("Created default attendance settings")
    return rules
