"""Tests for worked-hours and overtime aggregation."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from shiftclock.services.hours import (aggregate, heuristic_scheduled_hours, pair_sessions,
                                       scheduled_hours_from_schedules, shift_duration_hours)

MONDAY = datetime(2024, 3, 4, tzinfo=timezone.utc)


def _rec(event_type, ts, collaborator_id=1, name="Ana", seq=0):
    return SimpleNamespace(
        collaborator_id=collaborator_id,
        collaborator_name=name,
        event_type=event_type,
        timestamp=ts,
        seq=seq,
    )


def _day(hour, days=0, minute=0):
    return MONDAY + timedelta(days=days, hours=hour, minutes=minute)


def test_single_session_worked_hours():
    records = [_rec("entry", _day(8)), _rec("exit", _day(17))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 9.0
    assert summary.sessions == 1
    assert summary.scheduled_hours == 8.0
    assert summary.overtime_hours == 1.0


def test_malformed_history_skips_unpaired_records():
    """Entry, entry, exit, exit pairs the first entry with the first exit only."""
    records = [
        _rec("entry", _day(8)),
        _rec("entry", _day(9)),
        _rec("exit", _day(17)),
        _rec("exit", _day(18)),
    ]
    [summary] = aggregate(records)
    assert summary.worked_hours == 9.0
    assert summary.sessions == 1


def test_heuristic_scheduled_hours_rounds_up():
    assert heuristic_scheduled_hours(2) == 8.0
    assert heuristic_scheduled_hours(3) == 16.0
    assert heuristic_scheduled_hours(0) == 0.0
    assert heuristic_scheduled_hours(4, daily_hours=7.5) == 15.0


def test_no_overtime_when_under_schedule():
    records = [_rec("entry", _day(8)), _rec("exit", _day(12))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 4.0
    assert summary.overtime_hours == 0.0


def test_open_session_is_not_counted():
    records = [_rec("entry", _day(8)), _rec("exit", _day(16)), _rec("entry", _day(8, days=1))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 8.0
    assert summary.record_count == 3
    assert summary.scheduled_hours == 16.0


def test_session_across_midnight():
    records = [_rec("entry", _day(22)), _rec("exit", _day(6, days=1))]
    assert pair_sessions(records) == [(_day(22), _day(6, days=1))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 8.0


def test_rounding_to_two_decimals():
    records = [_rec("entry", _day(8)), _rec("exit", _day(8, minute=20))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 0.33


def test_groups_and_sorts_by_name():
    records = [
        _rec("entry", _day(8), collaborator_id=2, name="luis"),
        _rec("exit", _day(12), collaborator_id=2, name="luis"),
        _rec("entry", _day(8), collaborator_id=1, name="Ana"),
        _rec("exit", _day(10), collaborator_id=1, name="Ana"),
    ]
    summaries = aggregate(records)
    assert [(s.collaborator_name, s.worked_hours) for s in summaries] == [("Ana", 2.0), ("luis", 4.0)]


def test_aggregate_empty():
    assert aggregate([]) == []


@pytest.mark.parametrize(
    "start, end, hours",
    [("06:00", "14:00", 8.0), ("22:00", "06:00", 8.0), ("09:30", "18:00", 8.5), ("08:00", "08:00", 24.0)],
)
def test_shift_duration_hours(start, end, hours):
    assert shift_duration_hours(start, end) == hours


def test_schedule_baseline_replaces_heuristic():
    shifts = {1: SimpleNamespace(start_time="06:00", end_time="14:00")}
    schedules = [
        SimpleNamespace(collaborator_id=1, shift_id=1),
        SimpleNamespace(collaborator_id=1, shift_id=1),
        SimpleNamespace(collaborator_id=2, shift_id=99),
    ]
    baseline = scheduled_hours_from_schedules(schedules, shifts)
    assert baseline == {1: 16.0}

    records = [_rec("entry", _day(6)), _rec("exit", _day(14)), _rec("entry", _day(6, days=1)), _rec("exit", _day(16, days=1))]
    [summary] = aggregate(records, scheduled_baseline=baseline)
    assert summary.scheduled_hours == 16.0
    assert summary.worked_hours == 18.0
    assert summary.overtime_hours == 2.0


def test_weekly_excess_per_iso_week():
    records = []
    # Five 10-hour days in one week, one 10-hour day the next
    for day in range(5):
        records += [_rec("entry", _day(7, days=day)), _rec("exit", _day(17, days=day))]
    records += [_rec("entry", _day(7, days=7)), _rec("exit", _day(17, days=7))]

    [summary] = aggregate(records, weekly_limit=44.0)
    assert summary.worked_hours == 60.0
    assert summary.weekly_excess_hours == 6.0


def test_weekly_excess_defaults_to_zero():
    records = [_rec("entry", _day(0)), _rec("exit", _day(23))]
    [summary] = aggregate(records)
    assert summary.weekly_excess_hours == 0.0


def test_double_entry_then_exit():
    records = [_rec("entry", _day(8)), _rec("entry", _day(9)), _rec("exit", _day(17))]
    [summary] = aggregate(records)
    assert summary.worked_hours == 9.0
    assert summary.scheduled_hours == 16.0
    assert summary.overtime_hours == 0.0
