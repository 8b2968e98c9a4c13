"""
Attendance state machine.

A collaborator's presence is derived from their latest record:

* ``OUT``        — no record yet, or the latest record is an exit
* ``IN``         — the latest record is an entry from today (facility time)
* ``STALE_OPEN`` — the latest record is an entry from an earlier day

A capture while ``OUT`` writes an entry, while ``IN`` writes an exit, and
while ``STALE_OPEN`` is refused until an administrator appends a corrective
exit (``close_open_shift``). History is never rewritten.

Writers are serialised per collaborator: the latest record is read with
``FOR UPDATE`` and the new record takes ``seq = last.seq + 1``, so a second
writer that saw the same latest record violates the (collaborator_id, seq)
constraint and gets ``ConflictError`` instead of a duplicate entry.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.core.config import settings
from shiftclock.core.exceptions import (BlockedError, ConflictError, NotFoundError,
                                        UnscheduledError, ValidationError)
from shiftclock.models.attendance import AttendanceRecord
from shiftclock.models.collaborator import Collaborator
from shiftclock.models.schedule import Schedule
from shiftclock.services.face_match import FaceMatcher
from shiftclock.services.grid import ScheduleGrid
from shiftclock.services.media import MediaStore
from shiftclock.services.rules import get_or_create_settings

logger = logging.getLogger(__name__)

ENTRY = "entry"
EXIT = "exit"


class PresenceState(str, enum.Enum):
    OUT = "out"
    IN = "in"
    STALE_OPEN = "stale_open"


@dataclass
class AttendanceOutcome:
    record: AttendanceRecord
    schedule: Schedule | None
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Matched:
    collaborator: Collaborator


@dataclass(frozen=True)
class NoMatch:
    pass


MatchOutcome = Matched | NoMatch


@dataclass(frozen=True)
class OpenShift:
    collaborator: Collaborator
    entry: AttendanceRecord


# ── Time helpers ────────────────────────────────────────────────────
def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def local_date(ts: datetime, tz: ZoneInfo | None = None) -> date:
    """Facility-local calendar date of an instant."""
    return ensure_utc(ts).astimezone(tz or settings.facility_tz).date()


def facility_today(tz: ZoneInfo | None = None) -> date:
    return datetime.now(tz or settings.facility_tz).date()


def derive_state(last: AttendanceRecord | None, today: date, tz: ZoneInfo | None = None) -> PresenceState:
    if last is None or last.event_type == EXIT:
        return PresenceState.OUT
    if local_date(last.timestamp, tz) < today:
        return PresenceState.STALE_OPEN
    return PresenceState.IN


# ── Persistence helpers ─────────────────────────────────────────────
async def last_record(
    db: AsyncSession, collaborator_id: int, *, lock: bool = False
) -> AttendanceRecord | None:
    query = (
        select(AttendanceRecord)
        .where(AttendanceRecord.collaborator_id == collaborator_id)
        .order_by(AttendanceRecord.seq.desc())
        .limit(1)
    )
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


def _next_record(
    collaborator: Collaborator,
    last: AttendanceRecord | None,
    event_type: str,
    ts: datetime,
    tz: ZoneInfo | None,
    **extra,
) -> AttendanceRecord:
    return AttendanceRecord(
        collaborator_id=collaborator.id,
        collaborator_name=collaborator.name,
        seq=(last.seq + 1) if last else 1,
        event_type=event_type,
        timestamp=ts,
        date=local_date(ts, tz).isoformat(),
        **extra,
    )


async def _commit_record(db: AsyncSession, record: AttendanceRecord) -> None:
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(
            "Another attendance event for this collaborator was recorded at the same time, retry",
            collaborator_id=record.collaborator_id,
            date=record.date,
        ) from exc
    await db.refresh(record)


# ── Operations ──────────────────────────────────────────────────────
async def identify(db: AsyncSession, matcher: FaceMatcher, image: bytes) -> MatchOutcome:
    """First collaborator (catalog order) whose reference photo matches wins."""
    result = await db.execute(
        select(Collaborator)
        .where(Collaborator.is_active.is_(True), Collaborator.photo_url.is_not(None))
        .order_by(Collaborator.id)
    )
    for collaborator in result.scalars().all():
        if await matcher.match(image, collaborator.photo_url):
            logger.info("Face matched collaborator %d (%s)", collaborator.id, collaborator.name)
            return Matched(collaborator)
    logger.info("Face capture matched no collaborator")
    return NoMatch()


async def record_event(
    db: AsyncSession,
    collaborator: Collaborator,
    captured_at: datetime,
    *,
    photo: bytes | None = None,
    photo_content_type: str = "image/jpeg",
    media: MediaStore | None = None,
    tz: ZoneInfo | None = None,
) -> AttendanceOutcome:
    """Decide entry vs exit for a matched capture and write it."""
    captured_at = ensure_utc(captured_at)
    today = local_date(captured_at, tz)
    # Read before taking the row lock: creating the defaults row commits
    rules = await get_or_create_settings(db)

    last = await last_record(db, collaborator.id, lock=True)
    if last is not None and captured_at < ensure_utc(last.timestamp):
        raise ValidationError(
            "Capture is older than the latest attendance record",
            collaborator_id=collaborator.id,
            captured_at=captured_at,
            last_record_at=ensure_utc(last.timestamp),
        )

    state = derive_state(last, today, tz)
    if state is PresenceState.STALE_OPEN:
        stale_date = local_date(last.timestamp, tz)
        logger.warning(
            "Blocked capture for collaborator %d: open entry from %s", collaborator.id, stale_date
        )
        raise BlockedError(
            f"{collaborator.name} has an open shift from {stale_date.isoformat()} "
            "that must be closed by an administrator",
            collaborator_id=collaborator.id,
            stale_date=stale_date,
            entry_at=ensure_utc(last.timestamp),
        )
    event_type = ENTRY if state is PresenceState.OUT else EXIT

    warnings: list[str] = []
    schedule = await ScheduleGrid(db).get_cell(collaborator.id, today)
    if event_type == ENTRY and schedule is None:
        if not rules.allow_unscheduled_entry:
            raise UnscheduledError(
                f"{collaborator.name} is not scheduled on {today.isoformat()}",
                collaborator_id=collaborator.id,
                date=today,
            )
        warnings.append("unscheduled")
        logger.warning("Entry for collaborator %d on unscheduled day %s", collaborator.id, today)

    photo_url = None
    if photo is not None and media is not None:
        photo_url = await media.save(photo, photo_content_type)

    record = _next_record(
        collaborator, last, event_type, captured_at, tz, captured_photo_url=photo_url
    )
    db.add(record)
    if event_type == ENTRY and schedule is not None:
        schedule.status = "present"

    try:
        await _commit_record(db, record)
    except ConflictError:
        if photo_url is not None:
            await media.delete(photo_url)
        raise
    logger.info(
        "Recorded %s for %s (collaborator %d) at %s",
        event_type,
        collaborator.name,
        collaborator.id,
        captured_at.isoformat(),
    )
    return AttendanceOutcome(record=record, schedule=schedule, warnings=warnings)


async def list_open_shifts(
    db: AsyncSession, today: date, tz: ZoneInfo | None = None
) -> list[OpenShift]:
    """Collaborators whose latest record is an entry from before ``today``."""
    latest = (
        select(
            AttendanceRecord.collaborator_id,
            func.max(AttendanceRecord.seq).label("max_seq"),
        )
        .group_by(AttendanceRecord.collaborator_id)
        .subquery()
    )
    result = await db.execute(
        select(AttendanceRecord, Collaborator)
        .join(
            latest,
            (AttendanceRecord.collaborator_id == latest.c.collaborator_id)
            & (AttendanceRecord.seq == latest.c.max_seq),
        )
        .join(Collaborator, Collaborator.id == AttendanceRecord.collaborator_id)
        .where(AttendanceRecord.event_type == ENTRY)
        .order_by(Collaborator.name)
    )
    return [
        OpenShift(collaborator=collab, entry=rec)
        for rec, collab in result.all()
        if derive_state(rec, today, tz) is PresenceState.STALE_OPEN
    ]


async def close_open_shift(
    db: AsyncSession,
    collaborator_id: int,
    exit_at: datetime,
    *,
    notes: str | None = None,
    tz: ZoneInfo | None = None,
) -> AttendanceRecord:
    """Append an administrator-chosen exit after a collaborator's open entry."""
    collaborator = await db.get(Collaborator, collaborator_id)
    if collaborator is None:
        raise NotFoundError("Collaborator not found", collaborator_id=collaborator_id)

    if exit_at.tzinfo is None:
        # Administrators enter wall-clock facility time
        exit_at = exit_at.replace(tzinfo=tz or settings.facility_tz)
    exit_at = exit_at.astimezone(timezone.utc)
    last = await last_record(db, collaborator_id, lock=True)
    if last is None or last.event_type != ENTRY:
        raise ValidationError("Collaborator has no open shift", collaborator_id=collaborator_id)
    entry_at = ensure_utc(last.timestamp)
    if exit_at <= entry_at:
        raise ValidationError(
            "Exit time must be after the open entry",
            collaborator_id=collaborator_id,
            entry_at=entry_at,
            exit_at=exit_at,
        )
    if exit_at > datetime.now(timezone.utc):
        raise ValidationError(
            "Exit time must not be in the future",
            collaborator_id=collaborator_id,
            exit_at=exit_at,
        )

    record = _next_record(
        collaborator,
        last,
        EXIT,
        exit_at,
        tz,
        is_correction=True,
        notes=notes or "Manual exit recorded by administrator",
    )
    db.add(record)
    await _commit_record(db, record)
    logger.info(
        "Closed open shift for collaborator %d: entry %s, exit %s",
        collaborator_id,
        entry_at.isoformat(),
        exit_at.isoformat(),
    )
    return record
