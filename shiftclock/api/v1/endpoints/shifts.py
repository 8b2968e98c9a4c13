"""
Shift catalog endpoints — shift templates and shift patterns.

Reads are open to any authenticated user, writes require admin role.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import Principal, get_current_active_user, get_db, require_admin
from shiftclock.core.exceptions import NotFoundError
from shiftclock.models.schedule import Schedule
from shiftclock.models.shift import Shift, ShiftPattern
from shiftclock.schemas.collaborator import DeleteResponse
from shiftclock.schemas.shift import (ShiftCreate, ShiftPatternCreate, ShiftPatternRead,
                                      ShiftPatternUpdate, ShiftRead, ShiftUpdate)

router = APIRouter(tags=["shifts"])
logger = logging.getLogger(__name__)


async def _check_sequence(db: AsyncSession, sequence: list[int | None]) -> None:
    """Every non-rest slot must name an existing shift."""
    wanted = {s for s in sequence if s is not None}
    if not wanted:
        return
    result = await db.execute(select(Shift.id).where(Shift.id.in_(wanted)))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise NotFoundError("Pattern references unknown shifts", shift_ids=sorted(missing))


# ── Shifts ──────────────────────────────────────────────────────────
@router.get("/shifts", response_model=list[ShiftRead])
async def list_shifts(
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> list[Shift]:
    result = await db.execute(select(Shift).order_by(Shift.start_time, Shift.name))
    return list(result.scalars().all())


@router.post("/shifts", response_model=ShiftRead, status_code=201)
async def create_shift(
    body: ShiftCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Shift:
    shift = Shift(**body.model_dump())
    db.add(shift)
    await db.commit()
    await db.refresh(shift)
    logger.info("Created shift %s (%s-%s)", shift.name, shift.start_time, shift.end_time)
    return shift


@router.put("/shifts/{shift_id}", response_model=ShiftRead)
async def update_shift(
    shift_id: int,
    body: ShiftUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Shift:
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(shift, field, value)
    await db.commit()
    await db.refresh(shift)
    logger.info("Updated shift %d", shift_id)
    return shift


@router.delete("/shifts/{shift_id}", response_model=DeleteResponse)
async def delete_shift(
    shift_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> DeleteResponse:
    """Delete a shift that no schedule row or shift pattern references."""
    shift = await db.get(Shift, shift_id)
    if shift is None:
        raise HTTPException(status_code=404, detail="Shift not found")

    in_use = await db.execute(select(func.count(Schedule.id)).where(Schedule.shift_id == shift_id))
    if in_use.scalar():
        raise HTTPException(status_code=409, detail="Shift is assigned in the schedule")

    patterns = await db.execute(select(ShiftPattern))
    using = sorted(p.name for p in patterns.scalars().all() if shift_id in (p.sequence or []))
    if using:
        raise HTTPException(
            status_code=409,
            detail=f"Shift is used by shift pattern(s): {', '.join(using)}",
        )

    await db.delete(shift)
    await db.commit()
    logger.info("Deleted shift %d (%s)", shift_id, shift.name)
    return DeleteResponse(success=True, message=f"Shift '{shift.name}' deleted")


# ── Shift patterns ──────────────────────────────────────────────────
@router.get("/shift-patterns", response_model=list[ShiftPatternRead])
async def list_patterns(
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> list[ShiftPattern]:
    result = await db.execute(select(ShiftPattern).order_by(ShiftPattern.name))
    return list(result.scalars().all())


@router.post("/shift-patterns", response_model=ShiftPatternRead, status_code=201)
async def create_pattern(
    body: ShiftPatternCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> ShiftPattern:
    await _check_sequence(db, body.sequence)
    pattern = ShiftPattern(name=body.name, sequence=list(body.sequence))
    db.add(pattern)
    await db.commit()
    await db.refresh(pattern)
    logger.info("Created shift pattern %s (%d-day cycle)", pattern.name, len(pattern.sequence))
    return pattern


@router.put("/shift-patterns/{pattern_id}", response_model=ShiftPatternRead)
async def update_pattern(
    pattern_id: int,
    body: ShiftPatternUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> ShiftPattern:
    pattern = await db.get(ShiftPattern, pattern_id)
    if pattern is None:
        raise HTTPException(status_code=404, detail="Shift pattern not found")
    if body.name is not None:
        pattern.name = body.name.strip()
    if body.sequence is not None:
        await _check_sequence(db, body.sequence)
        # Reassign so the JSON column is flagged dirty
        pattern.sequence = list(body.sequence)
    await db.commit()
    await db.refresh(pattern)
    logger.info("Updated shift pattern %d", pattern_id)
    return pattern


@router.delete("/shift-patterns/{pattern_id}", response_model=DeleteResponse)
async def delete_pattern(
    pattern_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> DeleteResponse:
    pattern = await db.get(ShiftPattern, pattern_id)
    if pattern is None:
        raise HTTPException(status_code=404, detail="Shift pattern not found")
    await db.delete(pattern)
    await db.commit()
    logger.info("Deleted shift pattern %d (%s)", pattern_id, pattern.name)
    return DeleteResponse(success=True, message=f"Shift pattern '{pattern.name}' deleted")
