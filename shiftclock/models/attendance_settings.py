"""
Attendance Settings model — singleton table for admin-configurable rules.

Only one row should ever exist. The admin updates it via the settings API,
and the attendance / reports logic reads it for the daily-hours baseline,
the weekly hours limit and the unscheduled-entry policy.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String

from shiftclock.db.base import Base


class AttendanceSettings(Base):
    __tablename__ = "attendance_settings"

    id: int = Column(Integer, primary_key=True, default=1)  # type: ignore[assignment]
    daily_hours: float = Column(Float, nullable=False, default=8.0)  # type: ignore[assignment]
    weekly_hours_limit: float = Column(Float, nullable=False, default=44.0)  # type: ignore[assignment]
    law_reference: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    allow_unscheduled_entry: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=True, server_default="true"
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
