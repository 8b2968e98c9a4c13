"""
Shared test fixtures for the Shiftclock test suite.

Async throughout (aiosqlite + AsyncSession), one in-memory database shared
by the app and the tests through a StaticPool.
"""

import os
import sys
import tempfile
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["FACILITY_TIMEZONE"] = "UTC"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="shiftclock-media-")

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from shiftclock.api.v1.deps import (Principal, get_current_active_user, get_db,
                                    get_face_matcher, require_admin)
from shiftclock.db.base import Base
from shiftclock.main import app
from shiftclock.models.collaborator import Collaborator
from shiftclock.models.shift import Shift

# Separate test engine; the app's get_db is overridden below
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def clash_on_commit(db_session: AsyncSession, monkeypatch):
    """Make the next ``db_session.commit()`` lose a race to another session.

    The given rows are committed through a second session right before the
    armed commit runs, as a concurrent writer would.
    """

    def _arm(*rows) -> None:
        original = db_session.commit

        async def _commit() -> None:
            monkeypatch.setattr(db_session, "commit", original)
            async with TestingSessionLocal() as rival:
                rival.add_all(rows)
                await rival.commit()
            await original()

        monkeypatch.setattr(db_session, "commit", _commit)

    return _arm


# ── Face matcher ────────────────────────────────────────────────────
class FakeFaceMatcher:
    """Matches a capture against the reference photos listed in ``known``."""

    def __init__(self) -> None:
        self.known: set[str] = set()
        self.calls: list[str] = []

    async def match(self, live_image: bytes, reference: str) -> bool:
        self.calls.append(reference)
        return reference in self.known


@pytest.fixture
def face_matcher() -> FakeFaceMatcher:
    matcher = FakeFaceMatcher()
    app.dependency_overrides[get_face_matcher] = lambda: matcher
    yield matcher
    app.dependency_overrides.pop(get_face_matcher, None)


# ── Factories ───────────────────────────────────────────────────────
@pytest.fixture
def make_collaborator(db_session: AsyncSession):
    async def _make(name: str = "Ana Torres", photo_url: str | None = None, **kwargs) -> Collaborator:
        collab = Collaborator(name=name, photo_url=photo_url, **kwargs)
        db_session.add(collab)
        await db_session.commit()
        await db_session.refresh(collab)
        return collab

    return _make


@pytest.fixture
def make_shift(db_session: AsyncSession):
    async def _make(name: str = "Morning", start_time: str = "06:00", end_time: str = "14:00") -> Shift:
        shift = Shift(name=name, start_time=start_time, end_time=end_time, color="#3B82F6")
        db_session.add(shift)
        await db_session.commit()
        await db_session.refresh(shift)
        return shift

    return _make


# ── Auth Overrides ──────────────────────────────────────────────────
async def _override_get_current_active_user():
    return Principal(user_id="1", role="admin")


async def _override_require_admin():
    return Principal(user_id="1", role="admin")


app.dependency_overrides[get_current_active_user] = _override_get_current_active_user
app.dependency_overrides[require_admin] = _override_require_admin
