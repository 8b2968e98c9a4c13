"""Pydantic schemas for Collaborator CRUD."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator


class CollaboratorCreate(BaseModel):
    name: str
    position: str | None = None
    photo_url: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 200:
            raise ValueError("Name must not exceed 200 characters")
        return v


class CollaboratorUpdate(BaseModel):
    name: str | None = None
    position: str | None = None
    photo_url: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("Name must not be empty")
        return v.strip() if v else v


class CollaboratorRead(BaseModel):
    id: int
    name: str
    position: str | None
    photo_url: str | None
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class DeleteResponse(BaseModel):
    success: bool
    message: str
