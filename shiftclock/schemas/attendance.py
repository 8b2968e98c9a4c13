"""Pydantic schemas for attendance capture, records and corrections."""

from __future__ import annotations

import base64
import binascii
import re
from datetime import datetime

from pydantic import BaseModel, field_validator

from shiftclock.schemas.schedule import ScheduleRead

_DATA_URL_RE = re.compile(r"^data:(?P<mime>image/[a-z+.-]+);base64,(?P<data>.+)$", re.S)
_MAX_IMAGE_BYTES = 5 * 1024 * 1024


# ── Capture ─────────────────────────────────────────────────────────
class CaptureRequest(BaseModel):
    """A camera frame, either a ``data:image/...;base64,`` URL or bare base64."""

    image: str

    @field_validator("image")
    @classmethod
    def _image(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Image must not be empty")
        m = _DATA_URL_RE.match(v)
        payload = m.group("data") if m else v
        try:
            raw = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Image must be base64 encoded") from None
        if not raw:
            raise ValueError("Image must not be empty")
        if len(raw) > _MAX_IMAGE_BYTES:
            raise ValueError("Image must not exceed 5 MB")
        return v

    def image_bytes(self) -> bytes:
        m = _DATA_URL_RE.match(self.image)
        return base64.b64decode(m.group("data") if m else self.image)

    def content_type(self) -> str:
        m = _DATA_URL_RE.match(self.image)
        return m.group("mime") if m else "image/jpeg"


class RecordRequest(BaseModel):
    """Attendance for a collaborator identified by other means (kiosk PIN, admin)."""

    collaborator_id: int


# ── Records ─────────────────────────────────────────────────────────
class AttendanceRead(BaseModel):
    id: int
    collaborator_id: int
    collaborator_name: str
    seq: int
    event_type: str
    timestamp: datetime
    date: str
    captured_photo_url: str | None = None
    is_correction: bool = False
    notes: str | None = None

    model_config = {"from_attributes": True}


class AttendanceEventResponse(BaseModel):
    success: bool
    matched: bool = True
    event: str | None = None
    collaborator_id: int | None = None
    name: str | None = None
    record: AttendanceRead | None = None
    schedule: ScheduleRead | None = None
    warnings: list[str] = []
    message: str | None = None


# ── Corrections ─────────────────────────────────────────────────────
class OpenShiftRead(BaseModel):
    collaborator_id: int
    name: str
    position: str | None
    entry_id: int
    entry_timestamp: datetime
    entry_date: str


class CorrectionRequest(BaseModel):
    collaborator_id: int
    exit_at: datetime
    notes: str | None = None

    @field_validator("notes")
    @classmethod
    def _notes(cls, v: str | None) -> str | None:
        if v is not None and len(v) > 500:
            raise ValueError("Notes must not exceed 500 characters")
        return v
