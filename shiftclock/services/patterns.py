"""
Shift pattern engine.

A pattern is a cyclic sequence of shift ids with ``None`` marking rest days.
Day ``i`` of an assignment window takes ``sequence[i % len(sequence)]``; the
cycle position advances once per calendar date, rest day or not.

Expansion is pure (``expand``). ``apply_pattern`` writes the result into the
schedule grid using an upsert policy: a slot that already holds a different
shift is re-assigned (status back to ``scheduled``), a slot with the same
shift is left alone, and rest days never touch existing rows.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.core.exceptions import ConflictError, NotFoundError, ValidationError
from shiftclock.models.collaborator import Collaborator
from shiftclock.models.schedule import Schedule
from shiftclock.models.shift import Shift, ShiftPattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannedCell:
    collaborator_id: int
    date: date
    shift_id: int


@dataclass
class PatternResult:
    created: int = 0
    updated: int = 0
    unchanged: int = 0
    cells: list[PlannedCell] = field(default_factory=list)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date from ``start`` to ``end`` inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def expand(
    sequence: Sequence[int | None],
    start: date,
    end: date,
    collaborator_ids: Iterable[int],
) -> list[PlannedCell]:
    if not sequence:
        return []
    collaborator_ids = list(dict.fromkeys(collaborator_ids))
    cycle = len(sequence)

    cells: list[PlannedCell] = []
    for offset, day in enumerate(iter_dates(start, end)):
        shift_id = sequence[offset % cycle]
        if shift_id is None:
            continue
        cells.extend(PlannedCell(cid, day, shift_id) for cid in collaborator_ids)
    return cells


async def apply_pattern(
    db: AsyncSession,
    pattern_id: int,
    start: date,
    end: date,
    collaborator_ids: Sequence[int],
) -> PatternResult:
    """Expand a stored pattern and upsert the rows in one transaction."""
    if start > end:
        raise ValidationError("start date must not be after end date", start=start, end=end)
    if not collaborator_ids:
        raise ValidationError("at least one collaborator is required")

    pattern = await db.get(ShiftPattern, pattern_id)
    if pattern is None:
        raise NotFoundError("Shift pattern not found", pattern_id=pattern_id)

    wanted = set(collaborator_ids)
    found = await db.execute(
        select(Collaborator.id).where(Collaborator.id.in_(wanted), Collaborator.is_active.is_(True))
    )
    missing = wanted - set(found.scalars().all())
    if missing:
        raise NotFoundError("Collaborator not found", collaborator_ids=sorted(missing))

    shift_ids = {s for s in pattern.sequence or [] if s is not None}
    if shift_ids:
        known = await db.execute(select(Shift.id).where(Shift.id.in_(shift_ids)))
        missing_shifts = shift_ids - set(known.scalars().all())
        if missing_shifts:
            raise NotFoundError(
                "Pattern references unknown shifts",
                pattern_id=pattern_id,
                shift_ids=sorted(missing_shifts),
            )

    cells = expand(pattern.sequence or [], start, end, collaborator_ids)
    result = PatternResult(cells=cells)
    if not cells:
        logger.info("Pattern %s has no shifts in %s..%s, nothing to write", pattern.name, start, end)
        return result

    existing_rows = await db.execute(
        select(Schedule).where(
            Schedule.collaborator_id.in_(wanted),
            Schedule.date >= start.isoformat(),
            Schedule.date <= end.isoformat(),
        )
    )
    existing = {(s.collaborator_id, s.date): s for s in existing_rows.scalars().all()}

    for cell in cells:
        row = existing.get((cell.collaborator_id, cell.date.isoformat()))
        if row is None:
            db.add(
                Schedule(
                    collaborator_id=cell.collaborator_id,
                    shift_id=cell.shift_id,
                    date=cell.date.isoformat(),
                    status="scheduled",
                )
            )
            result.created += 1
        elif row.shift_id != cell.shift_id:
            row.shift_id = cell.shift_id
            row.status = "scheduled"
            result.updated += 1
        else:
            result.unchanged += 1

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise ConflictError(
            "Schedule changed concurrently, retry the pattern assignment",
            pattern_id=pattern_id,
            start=start,
            end=end,
        ) from exc

    logger.info(
        "Applied pattern %s over %s..%s to %d collaborator(s): %d created, %d updated",
        pattern.name,
        start,
        end,
        len(wanted),
        result.created,
        result.updated,
    )
    return result
