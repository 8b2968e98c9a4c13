"""
Schedule grid endpoints — weekly view, cell edits and bulk planning tools.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import Principal, get_current_active_user, get_db, require_admin
from shiftclock.models.schedule import Schedule
from shiftclock.schemas.schedule import (ApplyPatternRequest, BulkWriteResponse,
                                         CellRemoveResponse, CellSet, CellStatusUpdate,
                                         CopyWeekRequest, FillGapsRequest, ScheduleRead,
                                         WeekResponse)
from shiftclock.services.attendance import facility_today
from shiftclock.services.grid import ScheduleGrid, week_bounds
from shiftclock.services.patterns import apply_pattern

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.get("", response_model=list[ScheduleRead])
async def list_schedules(
    start: date = Query(...),
    end: date = Query(...),
    collaborator_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> list[Schedule]:
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    if (end - start).days > 366:
        raise HTTPException(status_code=400, detail="Range must not exceed one year")
    ids = [collaborator_id] if collaborator_id is not None else None
    return await ScheduleGrid(db).list_range(start, end, ids)


@router.get("/week", response_model=WeekResponse)
async def week_view(
    day: date | None = None,
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> WeekResponse:
    """Schedules of the Monday-Sunday week containing ``day`` (default today)."""
    start, end = week_bounds(day or facility_today())
    rows = await ScheduleGrid(db).list_range(start, end)
    return WeekResponse(
        start_date=start,
        end_date=end,
        schedules=[ScheduleRead.model_validate(r) for r in rows],
    )


@router.put("/cell", response_model=ScheduleRead)
async def set_cell(
    body: CellSet,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Schedule:
    return await ScheduleGrid(db).set_cell(body.collaborator_id, body.date, body.shift_id)


@router.delete("/cell", response_model=CellRemoveResponse)
async def remove_cell(
    collaborator_id: int = Query(...),
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> CellRemoveResponse:
    removed = await ScheduleGrid(db).remove_cell(collaborator_id, day)
    return CellRemoveResponse(success=True, removed=removed)


@router.patch("/cell/status", response_model=ScheduleRead)
async def update_cell_status(
    body: CellStatusUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Schedule:
    """Override a day's status (absent, on leave, late...)."""
    return await ScheduleGrid(db).update_status(body.collaborator_id, body.date, body.status)


@router.get("/cell", response_model=ScheduleRead)
async def get_cell(
    collaborator_id: int = Query(...),
    day: date = Query(..., alias="date"),
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> Schedule:
    row = await ScheduleGrid(db).get_cell(collaborator_id, day)
    if row is None:
        raise HTTPException(status_code=404, detail="Collaborator is not scheduled on this date")
    return row


@router.post("/apply-pattern", response_model=BulkWriteResponse)
async def assign_pattern(
    body: ApplyPatternRequest,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> BulkWriteResponse:
    result = await apply_pattern(
        db, body.pattern_id, body.start_date, body.end_date, body.collaborator_ids
    )
    return BulkWriteResponse(success=True, created=result.created, updated=result.updated)


@router.post("/copy-week", response_model=BulkWriteResponse)
async def copy_previous_week(
    body: CopyWeekRequest,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> BulkWriteResponse:
    """Fill empty slots of the window from the same days one week earlier."""
    created = await ScheduleGrid(db).copy_week(body.start_date, body.end_date)
    return BulkWriteResponse(
        success=True,
        created=len(created),
        schedules=[ScheduleRead.model_validate(r) for r in created],
    )


@router.post("/fill-gaps", response_model=BulkWriteResponse)
async def fill_gaps(
    body: FillGapsRequest,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> BulkWriteResponse:
    created = await ScheduleGrid(db).fill_gaps(
        body.shift_id, body.collaborator_ids, body.start_date, body.end_date
    )
    return BulkWriteResponse(
        success=True,
        created=len(created),
        schedules=[ScheduleRead.model_validate(r) for r in created],
    )
