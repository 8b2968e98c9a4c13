"""
Schedule model — one shift assigned to one collaborator on one date.

Absence of a row means "unscheduled"; a row always carries a shift.
"""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from shiftclock.db.base import Base

SCHEDULE_STATUSES = ("scheduled", "present", "absent", "late", "on_leave")


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        UniqueConstraint("collaborator_id", "date", name="uq_schedule_collab_date"),
        Index("ix_schedule_date", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    collaborator_id: int = Column(Integer, ForeignKey("collaborators.id"), nullable=False)  # type: ignore[assignment]
    shift_id: int = Column(Integer, ForeignKey("shifts.id"), nullable=False)  # type: ignore[assignment]
    date: str = Column(String(10), nullable=False)  # type: ignore[assignment]  # YYYY-MM-DD
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="scheduled",
        server_default="scheduled",
    )  # scheduled | present | absent | late | on_leave

    collaborator = relationship("Collaborator", back_populates="schedules")
