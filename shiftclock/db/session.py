"""
Async engine and session factory.

PostgreSQL (asyncpg) in production, where row locks on the attendance
history are real; SQLite (aiosqlite) for local runs and tests.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from shiftclock.core.config import settings


def build_engine(url: str | None = None) -> AsyncEngine:
    url = url or settings.DATABASE_URL
    options: dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=300,
        )
    elif url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    return create_async_engine(url, **options)


engine = build_engine()

# Objects stay readable after commit; responses are built from them
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
