"""
Worked-hours and overtime aggregation.

Pure functions over record-like objects (anything with ``collaborator_id``,
``collaborator_name``, ``event_type`` and ``timestamp``), so reports can be
recomputed on every filter change.

Pairing is tolerant: an entry while a session is already open and an exit
while none is open are skipped. Malformed histories therefore under- or
over-count; the numbers are an approximation, not a payroll figure.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from shiftclock.services.attendance import ENTRY, EXIT, ensure_utc, local_date

DEFAULT_DAILY_HOURS = 8.0


@dataclass
class HoursSummary:
    collaborator_id: int
    collaborator_name: str
    record_count: int
    sessions: int
    worked_hours: float
    scheduled_hours: float
    overtime_hours: float
    weekly_excess_hours: float = 0.0


def pair_sessions(records: Iterable) -> list[tuple[datetime, datetime]]:
    """Chronological (entry, exit) pairs for a single collaborator."""
    ordered = sorted(records, key=lambda r: (ensure_utc(r.timestamp), getattr(r, "seq", 0) or 0))
    sessions: list[tuple[datetime, datetime]] = []
    open_entry: datetime | None = None
    for rec in ordered:
        ts = ensure_utc(rec.timestamp)
        if rec.event_type == ENTRY and open_entry is None:
            open_entry = ts
        elif rec.event_type == EXIT and open_entry is not None:
            sessions.append((open_entry, ts))
            open_entry = None
    return sessions


def heuristic_scheduled_hours(record_count: int, daily_hours: float = DEFAULT_DAILY_HOURS) -> float:
    """One shift per entry/exit pair observed: ceil(count / 2) * daily hours."""
    return math.ceil(record_count / 2) * daily_hours


def shift_duration_hours(start_time: str, end_time: str) -> float:
    """Length of an HH:MM..HH:MM shift; an end at or before the start wraps midnight."""
    sh, sm = (int(p) for p in start_time.split(":"))
    eh, em = (int(p) for p in end_time.split(":"))
    minutes = (eh * 60 + em) - (sh * 60 + sm)
    if minutes <= 0:
        minutes += 24 * 60
    return minutes / 60


def scheduled_hours_from_schedules(schedules: Iterable, shifts: Mapping[int, object]) -> dict[int, float]:
    """Sum each collaborator's assigned shift durations."""
    totals: dict[int, float] = defaultdict(float)
    for row in schedules:
        shift = shifts.get(row.shift_id)
        if shift is None:
            continue
        totals[row.collaborator_id] += shift_duration_hours(shift.start_time, shift.end_time)
    return dict(totals)


def _weekly_excess(
    sessions: list[tuple[datetime, datetime]], weekly_limit: float, tz: ZoneInfo | None
) -> float:
    per_week: dict[tuple[int, int], timedelta] = defaultdict(timedelta)
    for start, end in sessions:
        iso = local_date(start, tz).isocalendar()
        per_week[(iso[0], iso[1])] += end - start
    return sum(max(0.0, worked.total_seconds() / 3600 - weekly_limit) for worked in per_week.values())


def aggregate(
    records: Iterable,
    *,
    daily_hours: float = DEFAULT_DAILY_HOURS,
    scheduled_baseline: Mapping[int, float] | None = None,
    weekly_limit: float | None = None,
    tz: ZoneInfo | None = None,
) -> list[HoursSummary]:
    """Per-collaborator worked, scheduled and overtime hours.

    ``scheduled_baseline`` replaces the ceil(count / 2) * ``daily_hours``
    heuristic with real scheduled hours per collaborator when given.
    ``weekly_limit`` additionally reports hours above the limit per ISO week.
    """
    by_collab: dict[int, list] = defaultdict(list)
    for rec in records:
        by_collab[rec.collaborator_id].append(rec)

    summaries: list[HoursSummary] = []
    for collab_id, recs in by_collab.items():
        sessions = pair_sessions(recs)
        worked = sum((end - start).total_seconds() for start, end in sessions) / 3600
        if scheduled_baseline is not None:
            scheduled = scheduled_baseline.get(collab_id, 0.0)
        else:
            scheduled = heuristic_scheduled_hours(len(recs), daily_hours)
        latest = max(recs, key=lambda r: ensure_utc(r.timestamp))
        summaries.append(
            HoursSummary(
                collaborator_id=collab_id,
                collaborator_name=latest.collaborator_name,
                record_count=len(recs),
                sessions=len(sessions),
                worked_hours=round(worked, 2),
                scheduled_hours=round(scheduled, 2),
                overtime_hours=round(max(0.0, worked - scheduled), 2),
                weekly_excess_hours=(
                    round(_weekly_excess(sessions, weekly_limit, tz), 2) if weekly_limit is not None else 0.0
                ),
            )
        )
    summaries.sort(key=lambda s: (s.collaborator_name.lower(), s.collaborator_id))
    return summaries
