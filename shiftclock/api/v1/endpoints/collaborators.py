"""
Collaborator CRUD endpoints.

- GET operations require any authenticated user.
- POST / PUT / DELETE operations require admin role.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import Principal, get_current_active_user, get_db, require_admin
from shiftclock.models.collaborator import Collaborator
from shiftclock.schemas.collaborator import (CollaboratorCreate, CollaboratorRead,
                                             CollaboratorUpdate, DeleteResponse)

router = APIRouter(tags=["collaborators"])
logger = logging.getLogger(__name__)


async def _get_or_404(db: AsyncSession, collaborator_id: int) -> Collaborator:
    collab = await db.get(Collaborator, collaborator_id)
    if collab is None or not collab.is_active:
        raise HTTPException(status_code=404, detail="Collaborator not found")
    return collab


@router.get("/collaborators", response_model=list[CollaboratorRead])
async def list_collaborators(
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> list[Collaborator]:
    query = (
        select(Collaborator)
        .where(Collaborator.is_active.is_(True))
        .order_by(Collaborator.name)
        .offset(skip)
        .limit(limit)
    )
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        query = query.where(Collaborator.name.ilike(f"%{safe_search}%", escape="\\"))
    result = await db.execute(query)
    return list(result.scalars().all())


@router.post("/collaborators", response_model=CollaboratorRead, status_code=201)
async def create_collaborator(
    body: CollaboratorCreate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Collaborator:
    collab = Collaborator(**body.model_dump())
    db.add(collab)
    await db.commit()
    await db.refresh(collab)
    logger.info("Created collaborator %d (%s)", collab.id, collab.name)
    return collab


@router.get("/collaborators/{collaborator_id}", response_model=CollaboratorRead)
async def get_collaborator(
    collaborator_id: int,
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> Collaborator:
    return await _get_or_404(db, collaborator_id)


@router.put("/collaborators/{collaborator_id}", response_model=CollaboratorRead)
async def update_collaborator(
    collaborator_id: int,
    body: CollaboratorUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> Collaborator:
    collab = await _get_or_404(db, collaborator_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(collab, field, value)

    await db.commit()
    await db.refresh(collab)
    logger.info("Updated collaborator %d", collaborator_id)
    return collab


@router.delete("/collaborators/{collaborator_id}", response_model=DeleteResponse)
async def delete_collaborator(
    collaborator_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> DeleteResponse:
    """Soft-delete (deactivate) a collaborator. Attendance history is preserved."""
    collab = await _get_or_404(db, collaborator_id)
    collab.is_active = False
    await db.commit()
    logger.info("Soft-deleted collaborator %d (%s)", collaborator_id, collab.name)
    return DeleteResponse(success=True, message=f"Collaborator '{collab.name}' deactivated")
