"""Pydantic schemas for reports, settings and service status."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field


# ── Hours report ───────────────────────────────────────────────────
class HoursRow(BaseModel):
    collaborator_id: int
    collaborator_name: str
    record_count: int
    sessions: int
    worked_hours: float
    scheduled_hours: float
    overtime_hours: float
    weekly_excess_hours: float

    model_config = {"from_attributes": True}


class HoursReportResponse(BaseModel):
    start_date: date | None
    end_date: date | None
    baseline: str
    daily_hours: float
    weekly_hours_limit: float
    collaborators: list[HoursRow]


# ── Attendance settings ────────────────────────────────────────────
class AttendanceSettingsRead(BaseModel):
    daily_hours: float
    weekly_hours_limit: float
    law_reference: str | None
    allow_unscheduled_entry: bool

    model_config = {"from_attributes": True}


class AttendanceSettingsUpdate(BaseModel):
    daily_hours: float | None = Field(default=None, gt=0, le=24)
    weekly_hours_limit: float | None = Field(default=None, gt=0, le=168)
    law_reference: str | None = Field(default=None, max_length=500)
    allow_unscheduled_entry: bool | None = None


# ── Health / Status ────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
    redis: bool


class StatusResponse(BaseModel):
    total_collaborators: int
    today_records: int
    open_shifts: int
    status: str
