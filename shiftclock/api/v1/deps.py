"""
FastAPI dependencies — auth guards, database session and external services.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from shiftclock.core.security import decode_access_token
from shiftclock.db.session import async_session_factory
from shiftclock.services.face_match import FaceMatcher, HttpFaceMatcher
from shiftclock.services.media import FilesystemMediaStore, MediaStore

# Tokens come from the identity provider; auto_error=False so the cookie can be tried
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str
    is_active: bool = True


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── External services ───────────────────────────────────────────────
def get_face_matcher() -> FaceMatcher:
    return HttpFaceMatcher()


def get_media_store() -> MediaStore:
    return FilesystemMediaStore()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
) -> Principal:
    """Decode JWT from Header OR Cookie into a principal."""
    final_token = token
    if not final_token and access_token:
        final_token = access_token.removeprefix("Bearer ")

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not final_token:
        raise credentials_exc

    payload = decode_access_token(final_token)
    if payload is None or payload.get("sub") is None:
        raise credentials_exc

    return Principal(
        user_id=str(payload["sub"]),
        role=str(payload.get("role", "staff")),
        is_active=bool(payload.get("active", True)),
    )


async def get_current_active_user(
    current_user: Principal = Depends(get_current_user),
) -> Principal:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def require_admin(
    current_user: Principal = Depends(get_current_active_user),
) -> Principal:
    """Only allow admin role to proceed."""
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user
