"""
Collaborator model — the people whose shifts and attendance are tracked.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from shiftclock.db.base import Base


class Collaborator(Base):
    __tablename__ = "collaborators"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    position: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    # Reference photo for face matching (URL / media id, never raw bytes)
    photo_url: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    schedules = relationship(
        "Schedule",
        back_populates="collaborator",
        cascade="all, delete-orphan",
    )
