"""Pydantic schemas for the schedule grid."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, model_validator

ScheduleStatus = Literal["scheduled", "present", "absent", "late", "on_leave"]


class ScheduleRead(BaseModel):
    id: int
    collaborator_id: int
    shift_id: int
    date: str
    status: str

    model_config = {"from_attributes": True}


class CellKey(BaseModel):
    collaborator_id: int
    date: date


class CellSet(CellKey):
    shift_id: int


class CellStatusUpdate(CellKey):
    status: ScheduleStatus


class _DateRange(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _ordered(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class ApplyPatternRequest(_DateRange):
    pattern_id: int
    collaborator_ids: list[int] = Field(min_length=1)


class CopyWeekRequest(_DateRange):
    pass


class FillGapsRequest(_DateRange):
    shift_id: int
    collaborator_ids: list[int] = Field(min_length=1)


class WeekResponse(BaseModel):
    start_date: date
    end_date: date
    schedules: list[ScheduleRead]


class BulkWriteResponse(BaseModel):
    success: bool
    created: int
    updated: int = 0
    schedules: list[ScheduleRead] = []


class CellRemoveResponse(BaseModel):
    success: bool
    removed: bool
