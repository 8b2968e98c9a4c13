"""
Attendance endpoints — face capture, manual record, feeds and corrections.

- POST /attendance/capture and GET /attendance/today are public (kiosk).
- POST /attendance/record needs any authenticated user.
- Open-shift listing and corrections require admin role.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.api.v1.deps import (Principal, get_current_active_user, get_db,
                                    get_face_matcher, get_media_store, require_admin)
from shiftclock.core.config import settings
from shiftclock.models.attendance import AttendanceRecord
from shiftclock.models.collaborator import Collaborator
from shiftclock.schemas.attendance import (AttendanceEventResponse, AttendanceRead,
                                           CaptureRequest, CorrectionRequest, OpenShiftRead,
                                           RecordRequest)
from shiftclock.schemas.schedule import ScheduleRead
from shiftclock.services.attendance import (AttendanceOutcome, NoMatch, close_open_shift,
                                            ensure_utc, facility_today, identify,
                                            last_record, list_open_shifts, record_event)
from shiftclock.services.face_match import FaceMatcher
from shiftclock.services.media import MediaStore

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


def _event_response(outcome: AttendanceOutcome) -> AttendanceEventResponse:
    record = outcome.record
    verb = "entry" if record.event_type == "entry" else "exit"
    return AttendanceEventResponse(
        success=True,
        event=record.event_type,
        collaborator_id=record.collaborator_id,
        name=record.collaborator_name,
        record=AttendanceRead.model_validate(record),
        schedule=ScheduleRead.model_validate(outcome.schedule) if outcome.schedule else None,
        warnings=outcome.warnings,
        message=f"Welcome {record.collaborator_name}! {verb.capitalize()} recorded.",
    )


async def _debounced(
    db: AsyncSession, collaborator: Collaborator, now: datetime
) -> AttendanceEventResponse | None:
    """Return the previous event if the kiosk captured the same face twice in a row."""
    last = await last_record(db, collaborator.id)
    if last is None:
        return None
    if (now - ensure_utc(last.timestamp)).total_seconds() >= settings.BOUNCE_WINDOW_SECONDS:
        return None
    logger.info("Ignoring repeated capture for collaborator %d", collaborator.id)
    return AttendanceEventResponse(
        success=True,
        event=last.event_type,
        collaborator_id=collaborator.id,
        name=collaborator.name,
        record=AttendanceRead.model_validate(last),
        warnings=["duplicate_capture"],
        message="Capture already recorded",
    )


# ── Capture (PUBLIC — kiosk) ────────────────────────────────────────
@router.post("/capture", response_model=AttendanceEventResponse)
async def capture(
    body: CaptureRequest,
    db: AsyncSession = Depends(get_db),
    matcher: FaceMatcher = Depends(get_face_matcher),
    media: MediaStore = Depends(get_media_store),
) -> AttendanceEventResponse:
    """Identify the face in the frame and record an entry or exit for it."""
    image = body.image_bytes()
    outcome = await identify(db, matcher, image)
    if isinstance(outcome, NoMatch):
        return AttendanceEventResponse(
            success=False,
            matched=False,
            message="Recognition failed. Collaborator not found.",
        )

    now = datetime.now(timezone.utc)
    repeated = await _debounced(db, outcome.collaborator, now)
    if repeated is not None:
        return repeated

    result = await record_event(
        db,
        outcome.collaborator,
        now,
        photo=image,
        photo_content_type=body.content_type(),
        media=media,
    )
    return _event_response(result)


@router.post("/record", response_model=AttendanceEventResponse)
async def record(
    body: RecordRequest,
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> AttendanceEventResponse:
    """Record an entry or exit for an already identified collaborator."""
    collaborator = await db.get(Collaborator, body.collaborator_id)
    if collaborator is None:
        raise HTTPException(status_code=404, detail="Collaborator not found")
    if not collaborator.is_active:
        raise HTTPException(status_code=403, detail="Collaborator is deactivated")

    result = await record_event(db, collaborator, datetime.now(timezone.utc))
    return _event_response(result)


# ── Feeds ───────────────────────────────────────────────────────────
@router.get("/today", response_model=list[AttendanceRead])
async def attendance_today(
    db: AsyncSession = Depends(get_db),
) -> list[AttendanceRecord]:
    """Today's records, newest first, for the kiosk live feed."""
    result = await db.execute(
        select(AttendanceRecord)
        .where(AttendanceRecord.date == facility_today().isoformat())
        .order_by(AttendanceRecord.timestamp.desc())
        .limit(50)
    )
    return list(result.scalars().all())


@router.get("", response_model=list[AttendanceRead])
async def list_attendance(
    start: date | None = None,
    end: date | None = None,
    collaborator_id: int | None = None,
    limit: int = Query(default=1000, le=10000),
    db: AsyncSession = Depends(get_db),
    _user: Principal = Depends(get_current_active_user),
) -> list[AttendanceRecord]:
    """Records filtered by facility-local date range and collaborator."""
    query = select(AttendanceRecord).order_by(AttendanceRecord.timestamp.desc()).limit(limit)
    if start is not None:
        query = query.where(AttendanceRecord.date >= start.isoformat())
    if end is not None:
        query = query.where(AttendanceRecord.date <= end.isoformat())
    if collaborator_id is not None:
        query = query.where(AttendanceRecord.collaborator_id == collaborator_id)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Corrections (admin) ─────────────────────────────────────────────
@router.get("/open-shifts", response_model=list[OpenShiftRead])
async def open_shifts(
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
) -> list[OpenShiftRead]:
    """Collaborators blocked by an entry without exit from a previous day."""
    return [
        OpenShiftRead(
            collaborator_id=item.collaborator.id,
            name=item.collaborator.name,
            position=item.collaborator.position,
            entry_id=item.entry.id,
            entry_timestamp=ensure_utc(item.entry.timestamp),
            entry_date=item.entry.date,
        )
        for item in await list_open_shifts(db, facility_today())
    ]


@router.post("/corrections", response_model=AttendanceRead, status_code=201)
async def correct_open_shift(
    body: CorrectionRequest,
    db: AsyncSession = Depends(get_db),
    admin: Principal = Depends(require_admin),
) -> AttendanceRecord:
    """Close a stale open shift with an administrator-chosen exit time."""
    record = await close_open_shift(db, body.collaborator_id, body.exit_at, notes=body.notes)
    logger.info("Admin %s closed open shift of collaborator %d", admin.user_id, body.collaborator_id)
    return record
