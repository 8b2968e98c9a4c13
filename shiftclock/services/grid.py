"""
Schedule grid store — per-collaborator, per-date shift assignments.

All writes respect the (collaborator, date) unique constraint: a writer that
loses a race gets ``ConflictError`` after rollback, and bulk writes (copy
week, fill gaps) commit once so a failure never leaves half a week behind.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.core.exceptions import ConflictError, NotFoundError, ValidationError
from shiftclock.models.collaborator import Collaborator
from shiftclock.models.schedule import SCHEDULE_STATUSES, Schedule
from shiftclock.models.shift import Shift
from shiftclock.services.patterns import iter_dates

logger = logging.getLogger(__name__)


def week_bounds(day: date) -> tuple[date, date]:
    """Return the Monday..Sunday window containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


class ScheduleGrid:
    """Schedule rows for one request, with a read-through shift cache."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._shifts: dict[int, Shift] = {}

    # ── Catalog lookups ─────────────────────────────────────────────
    async def get_shift(self, shift_id: int) -> Shift:
        shift = self._shifts.get(shift_id)
        if shift is None:
            shift = await self._db.get(Shift, shift_id)
            if shift is None:
                raise NotFoundError("Shift not found", shift_id=shift_id)
            self._shifts[shift_id] = shift
        return shift

    async def shifts_by_id(self) -> dict[int, Shift]:
        result = await self._db.execute(select(Shift))
        self._shifts.update({s.id: s for s in result.scalars().all()})
        return dict(self._shifts)

    async def _require_collaborators(self, collaborator_ids: Sequence[int]) -> None:
        wanted = set(collaborator_ids)
        found = await self._db.execute(
            select(Collaborator.id).where(Collaborator.id.in_(wanted), Collaborator.is_active.is_(True))
        )
        missing = wanted - set(found.scalars().all())
        if missing:
            raise NotFoundError("Collaborator not found", collaborator_ids=sorted(missing))

    # ── Reads ───────────────────────────────────────────────────────
    async def get_cell(self, collaborator_id: int, day: date) -> Schedule | None:
        result = await self._db.execute(
            select(Schedule).where(
                Schedule.collaborator_id == collaborator_id,
                Schedule.date == day.isoformat(),
            )
        )
        return result.scalar_one_or_none()

    async def list_range(
        self,
        start: date,
        end: date,
        collaborator_ids: Sequence[int] | None = None,
    ) -> list[Schedule]:
        query = (
            select(Schedule)
            .where(Schedule.date >= start.isoformat(), Schedule.date <= end.isoformat())
            .order_by(Schedule.collaborator_id, Schedule.date)
        )
        if collaborator_ids is not None:
            query = query.where(Schedule.collaborator_id.in_(list(collaborator_ids)))
        result = await self._db.execute(query)
        return list(result.scalars().all())

    # ── Single-cell edits ───────────────────────────────────────────
    async def set_cell(self, collaborator_id: int, day: date, shift_id: int) -> Schedule:
        """Assign ``shift_id`` to the slot. Re-applying the same shift is a no-op."""
        await self.get_shift(shift_id)
        await self._require_collaborators([collaborator_id])

        row = await self.get_cell(collaborator_id, day)
        if row is not None and row.shift_id == shift_id:
            return row

        if row is None:
            row = Schedule(
                collaborator_id=collaborator_id,
                shift_id=shift_id,
                date=day.isoformat(),
                status="scheduled",
            )
            self._db.add(row)
        else:
            # Re-assignment starts the day over
            row.shift_id = shift_id
            row.status = "scheduled"

        await self._commit(collaborator_id=collaborator_id, date=day)
        await self._db.refresh(row)
        logger.info("Set cell collaborator=%d date=%s shift=%d", collaborator_id, day, shift_id)
        return row

    async def remove_cell(self, collaborator_id: int, day: date) -> bool:
        row = await self.get_cell(collaborator_id, day)
        if row is None:
            return False
        await self._db.delete(row)
        await self._db.commit()
        logger.info("Removed cell collaborator=%d date=%s", collaborator_id, day)
        return True

    async def update_status(self, collaborator_id: int, day: date, status: str) -> Schedule:
        if status not in SCHEDULE_STATUSES:
            raise ValidationError("Unknown schedule status", status=status)
        row = await self.get_cell(collaborator_id, day)
        if row is None:
            raise NotFoundError(
                "No schedule for this collaborator on this date",
                collaborator_id=collaborator_id,
                date=day,
            )
        row.status = status
        await self._db.commit()
        await self._db.refresh(row)
        return row

    # ── Bulk writes ─────────────────────────────────────────────────
    async def copy_week(self, target_start: date, target_end: date) -> list[Schedule]:
        """Gap-fill the target window from the same weekdays one week earlier."""
        if target_start > target_end:
            raise ValidationError(
                "start date must not be after end date", start=target_start, end=target_end
            )
        week = timedelta(days=7)
        source = await self.list_range(target_start - week, target_end - week)
        if not source:
            raise NotFoundError(
                "No schedules found in the previous week",
                start=target_start - week,
                end=target_end - week,
            )

        occupied = {
            (s.collaborator_id, s.date) for s in await self.list_range(target_start, target_end)
        }
        created: list[Schedule] = []
        for src in source:
            target_date = (date.fromisoformat(src.date) + week).isoformat()
            if (src.collaborator_id, target_date) in occupied:
                continue
            created.append(
                Schedule(
                    collaborator_id=src.collaborator_id,
                    shift_id=src.shift_id,
                    date=target_date,
                    status="scheduled",
                )
            )

        self._db.add_all(created)
        await self._commit(start=target_start, end=target_end)
        logger.info(
            "Copied %d schedule(s) into %s..%s (%d source rows)",
            len(created),
            target_start,
            target_end,
            len(source),
        )
        return created

    async def fill_gaps(
        self,
        shift_id: int,
        collaborator_ids: Sequence[int],
        start: date,
        end: date,
    ) -> list[Schedule]:
        """Assign ``shift_id`` to every empty slot of collaborators x dates."""
        if start > end:
            raise ValidationError("start date must not be after end date", start=start, end=end)
        await self.get_shift(shift_id)
        await self._require_collaborators(collaborator_ids)

        occupied = {
            (s.collaborator_id, s.date)
            for s in await self.list_range(start, end, collaborator_ids)
        }
        created = [
            Schedule(
                collaborator_id=cid,
                shift_id=shift_id,
                date=day.isoformat(),
                status="scheduled",
            )
            for cid in dict.fromkeys(collaborator_ids)
            for day in iter_dates(start, end)
            if (cid, day.isoformat()) not in occupied
        ]

        self._db.add_all(created)
        await self._commit(start=start, end=end)
        logger.info("Filled %d empty slot(s) with shift %d over %s..%s", len(created), shift_id, start, end)
        return created

    async def _commit(self, **context: object) -> None:
        try:
            await self._db.commit()
        except IntegrityError as exc:
            await self._db.rollback()
            raise ConflictError("Schedule slot was written concurrently, retry", **context) from exc
