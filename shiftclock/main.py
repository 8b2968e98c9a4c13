"""
Shiftclock — application entry point.

This is the **only** file that assembles the app. Business rules live in
`services/`, persistence in `models/` and `db/`, HTTP in `api/`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from shiftclock.api.v1.api import api_router
from shiftclock.core.config import settings
from shiftclock.core.exceptions import register_exception_handlers
from shiftclock.db.base import Base
from shiftclock.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from shiftclock.models.attendance import AttendanceRecord  # noqa: F401
from shiftclock.models.attendance_settings import AttendanceSettings  # noqa: F401
from shiftclock.models.collaborator import Collaborator  # noqa: F401
from shiftclock.models.schedule import Schedule  # noqa: F401
from shiftclock.models.shift import Shift, ShiftPattern  # noqa: F401
from shiftclock.services.rules import get_or_create_settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed the working-hour rules on first run
    async with async_session_factory() as session:
        await get_or_create_settings(session)

    logger.info("Shiftclock v%s started (facility timezone %s)", settings.VERSION, settings.FACILITY_TIMEZONE)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Facility attendance and shift scheduling",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Serve captured and reference photos
    media_dir = Path(settings.MEDIA_DIR)
    media_dir.mkdir(parents=True, exist_ok=True)
    application.mount(
        settings.MEDIA_URL_PREFIX,
        StaticFiles(directory=str(media_dir)),
        name="media",
    )
    logger.info("Media served from %s", media_dir.resolve())

    return application


app = create_app()
