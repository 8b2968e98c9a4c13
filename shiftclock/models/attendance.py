"""
AttendanceRecord model — append-only entry/exit events.

``seq`` is the position of the record in the collaborator's history. The
unique (collaborator_id, seq) pair makes two writers that observed the same
last record collide instead of both appending.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String, UniqueConstraint)

from shiftclock.db.base import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("collaborator_id", "seq", name="uq_attendance_collab_seq"),
        Index("ix_attendance_collab_date", "collaborator_id", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    collaborator_id: int = Column(Integer, ForeignKey("collaborators.id"), nullable=False)  # type: ignore[assignment]
    # Kept even if the collaborator is later renamed or removed
    collaborator_name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    seq: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    event_type: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # entry | exit
    timestamp: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    date: str = Column(String(10), index=True)  # type: ignore[assignment]  # facility-local YYYY-MM-DD
    captured_photo_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    is_correction: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
