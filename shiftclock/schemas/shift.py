"""Pydantic schemas for the shift catalog."""

from __future__ import annotations

import re

from pydantic import BaseModel, field_validator

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_time(v: str) -> str:
    v = v.strip()
    if not _TIME_RE.match(v):
        raise ValueError("Time must be HH:MM (24h)")
    return v


def _check_color(v: str) -> str:
    v = v.strip()
    if not _COLOR_RE.match(v):
        raise ValueError("Color must be a #RRGGBB hex value")
    return v.upper()


def _check_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    return v


# ── Shift ───────────────────────────────────────────────────────────
class ShiftCreate(BaseModel):
    name: str
    start_time: str
    end_time: str
    color: str = "#3B82F6"

    @field_validator("start_time", "end_time")
    @classmethod
    def _times(cls, v: str) -> str:
        return _check_time(v)

    @field_validator("color")
    @classmethod
    def _color(cls, v: str) -> str:
        return _check_color(v)

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _check_name(v)


class ShiftUpdate(BaseModel):
    name: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    color: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _times(cls, v: str | None) -> str | None:
        return _check_time(v) if v is not None else v

    @field_validator("color")
    @classmethod
    def _color(cls, v: str | None) -> str | None:
        return _check_color(v) if v is not None else v

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return _check_name(v) if v is not None else v


class ShiftRead(BaseModel):
    id: int
    name: str
    start_time: str
    end_time: str
    color: str

    model_config = {"from_attributes": True}


# ── Shift pattern ───────────────────────────────────────────────────
class ShiftPatternCreate(BaseModel):
    name: str
    sequence: list[int | None] = []

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _check_name(v)


class ShiftPatternUpdate(BaseModel):
    name: str | None = None
    sequence: list[int | None] | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return _check_name(v) if v is not None else v


class ShiftPatternRead(BaseModel):
    id: int
    name: str
    sequence: list[int | None]

    model_config = {"from_attributes": True}
