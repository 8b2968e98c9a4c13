"""
Reporting endpoints — worked hours / overtime, health and status.

Each report fetches its records in **one** query and aggregates in Python.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import Principal, get_current_active_user, get_db
from shiftclock.core.config import settings
from shiftclock.models.attendance import AttendanceRecord
from shiftclock.models.collaborator import Collaborator
from shiftclock.schemas.report import HealthResponse, HoursReportResponse, HoursRow, StatusResponse
from shiftclock.services.attendance import facility_today, list_open_shifts
from shiftclock.services.grid import ScheduleGrid
from shiftclock.services.hours import aggregate, scheduled_hours_from_schedules
from shiftclock.services.rules import get_or_create_settings

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


# ── Hours & overtime ───────────────────────────────────────────────
@router.get("/reports/hours", response_model=HoursReportResponse)
async def hours_report(
    start: date | None = None,
    end: date | None = None,
    collaborator_id: int | None = None,
    baseline: Literal["heuristic", "schedule"] = "heuristic",
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> HoursReportResponse:
    """Worked, scheduled and overtime hours per collaborator for the filter."""
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    if baseline == "schedule" and (start is None or end is None):
        raise HTTPException(status_code=400, detail="Schedule baseline needs start and end")

    rules = await get_or_create_settings(db)

    query = select(AttendanceRecord).order_by(
        AttendanceRecord.collaborator_id, AttendanceRecord.seq
    )
    if start is not None:
        query = query.where(AttendanceRecord.date >= start.isoformat())
    if end is not None:
        query = query.where(AttendanceRecord.date <= end.isoformat())
    if collaborator_id is not None:
        query = query.where(AttendanceRecord.collaborator_id == collaborator_id)
    records = list((await db.execute(query)).scalars().all())

    scheduled = None
    if baseline == "schedule":
        grid = ScheduleGrid(db)
        ids = [collaborator_id] if collaborator_id is not None else None
        rows = await grid.list_range(start, end, ids)
        scheduled = scheduled_hours_from_schedules(rows, await grid.shifts_by_id())

    summaries = aggregate(
        records,
        daily_hours=rules.daily_hours,
        scheduled_baseline=scheduled,
        weekly_limit=rules.weekly_hours_limit,
    )
    return HoursReportResponse(
        start_date=start,
        end_date=end,
        baseline=baseline,
        daily_hours=rules.daily_hours,
        weekly_hours_limit=rules.weekly_hours_limit,
        collaborators=[HoursRow.model_validate(s) for s in summaries],
    )


# ── Health (PUBLIC) ─────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Check DB and Redis connectivity."""
    result = HealthResponse(db=False, redis=False)
    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    try:
        import redis.asyncio as aioredis

        r = aioredis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        result.redis = True
    except Exception as e:
        logger.error("Health check Redis failure: %s", e)

    return result


@router.get("/status", response_model=StatusResponse)
async def system_status(
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> StatusResponse:
    """Collaborator count, today's records and blocked open shifts."""
    today = facility_today()
    collab_count = await db.execute(
        select(func.count(Collaborator.id)).where(Collaborator.is_active.is_(True))
    )
    record_count = await db.execute(
        select(func.count(AttendanceRecord.id)).where(AttendanceRecord.date == today.isoformat())
    )
    return StatusResponse(
        total_collaborators=collab_count.scalar() or 0,
        today_records=record_count.scalar() or 0,
        open_shifts=len(await list_open_shifts(db, today)),
        status="operational",
    )
