"""
Shift catalog — shift templates and cyclic shift patterns.
"""

from __future__ import annotations

from sqlalchemy import JSON, Column, Integer, String

from shiftclock.db.base import Base


class Shift(Base):
    __tablename__ = "shifts"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    start_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:MM
    end_time: str = Column(String(5), nullable=False)  # type: ignore[assignment]  # HH:MM
    color: str = Column(String(7), nullable=False, default="#3B82F6")  # type: ignore[assignment]


class ShiftPattern(Base):
    __tablename__ = "shift_patterns"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    # Shift ids, None marks a rest day
    sequence: list[int | None] = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
