"""Tests for the /attendance endpoints."""

import base64
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from httpx import AsyncClient

from shiftclock.core.config import settings
from shiftclock.models.attendance import AttendanceRecord

FRAME = "data:image/png;base64," + base64.b64encode(b"fake-png-bytes").decode()


def _utc_today() -> str:
    """Today's date in the facility timezone (UTC under test)."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


async def _known_face(make_collaborator, face_matcher, name="Ana Torres"):
    reference = f"/media/ref/{name.lower().replace(' ', '-')}.jpg"
    collab = await make_collaborator(name, photo_url=reference)
    face_matcher.known.add(reference)
    return collab


@pytest.mark.asyncio
async def test_capture_records_entry(async_client: AsyncClient, make_collaborator, face_matcher):
    ana = await _known_face(make_collaborator, face_matcher)

    resp = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["event"] == "entry"
    assert data["collaborator_id"] == ana.id
    assert data["name"] == "Ana Torres"
    assert data["warnings"] == ["unscheduled"]
    assert data["record"]["date"] == _utc_today()
    assert data["record"]["captured_photo_url"].startswith("/media/captures/")
    assert data["record"]["captured_photo_url"].endswith(".png")


@pytest.mark.asyncio
async def test_capture_toggles_entry_exit(async_client: AsyncClient, make_collaborator, face_matcher):
    await _known_face(make_collaborator, face_matcher)

    with patch.object(settings, "BOUNCE_WINDOW_SECONDS", 0.0):
        r1 = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
        r2 = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
        r3 = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})

    assert [r.json()["event"] for r in (r1, r2, r3)] == ["entry", "exit", "entry"]


@pytest.mark.asyncio
async def test_capture_repeated_within_bounce_window(async_client: AsyncClient, make_collaborator, face_matcher):
    """A second capture right after the first returns the same event."""
    await _known_face(make_collaborator, face_matcher)

    r1 = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
    r2 = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})

    assert r2.json()["event"] == "entry"
    assert r2.json()["warnings"] == ["duplicate_capture"]
    assert r2.json()["record"]["id"] == r1.json()["record"]["id"]

    today = await async_client.get("/api/v1/attendance/today")
    assert len(today.json()) == 1


@pytest.mark.asyncio
async def test_capture_no_match(async_client: AsyncClient, make_collaborator, face_matcher):
    await make_collaborator("Stranger", photo_url="/media/ref/stranger.jpg")

    resp = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is False
    assert data["matched"] is False
    assert data["record"] is None


@pytest.mark.asyncio
async def test_capture_blocked_by_stale_open_shift(
    async_client: AsyncClient, db_session, make_collaborator, face_matcher
):
    ana = await _known_face(make_collaborator, face_matcher)
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.add(
        AttendanceRecord(
            collaborator_id=ana.id,
            collaborator_name=ana.name,
            seq=1,
            event_type="entry",
            timestamp=yesterday,
            date=yesterday.strftime("%Y-%m-%d"),
        )
    )
    await db_session.commit()

    resp = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
    assert resp.status_code == 423
    body = resp.json()
    assert body["success"] is False
    assert body["context"]["collaborator_id"] == ana.id
    assert body["context"]["stale_date"] == yesterday.strftime("%Y-%m-%d")

    open_shifts = await async_client.get("/api/v1/attendance/open-shifts")
    assert [o["collaborator_id"] for o in open_shifts.json()] == [ana.id]

    exit_at = yesterday.replace(hour=23, minute=0, second=0, microsecond=0)
    if exit_at <= yesterday:
        exit_at = yesterday + timedelta(minutes=1)
    resp = await async_client.post(
        "/api/v1/attendance/corrections",
        json={"collaborator_id": ana.id, "exit_at": exit_at.isoformat(), "notes": "Badge left at desk"},
    )
    assert resp.status_code == 201
    assert resp.json()["is_correction"] is True
    assert resp.json()["event_type"] == "exit"

    resp = await async_client.post("/api/v1/attendance/capture", json={"image": FRAME})
    assert resp.status_code == 200
    assert resp.json()["event"] == "entry"


@pytest.mark.asyncio
async def test_capture_rejects_bad_image(async_client: AsyncClient, face_matcher):
    resp = await async_client.post("/api/v1/attendance/capture", json={"image": "not base64 !!"})
    assert resp.status_code == 422
    resp = await async_client.post("/api/v1/attendance/capture", json={"image": ""})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_manual_record(async_client: AsyncClient, make_collaborator):
    ana = await make_collaborator("Ana")
    resp = await async_client.post("/api/v1/attendance/record", json={"collaborator_id": ana.id})
    assert resp.status_code == 200
    assert resp.json()["event"] == "entry"

    resp = await async_client.post("/api/v1/attendance/record", json={"collaborator_id": 999})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_manual_record_rejects_deactivated(async_client: AsyncClient, make_collaborator):
    ana = await make_collaborator("Ana", is_active=False)
    resp = await async_client.post("/api/v1/attendance/record", json={"collaborator_id": ana.id})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_list_attendance_filters(async_client: AsyncClient, make_collaborator):
    ana = await make_collaborator("Ana")
    luis = await make_collaborator("Luis")
    await async_client.post("/api/v1/attendance/record", json={"collaborator_id": ana.id})
    await async_client.post("/api/v1/attendance/record", json={"collaborator_id": luis.id})

    resp = await async_client.get("/api/v1/attendance", params={"collaborator_id": ana.id})
    assert [r["collaborator_id"] for r in resp.json()] == [ana.id]

    resp = await async_client.get("/api/v1/attendance", params={"start": "2000-01-01", "end": "2000-01-31"})
    assert resp.json() == []


@pytest.mark.asyncio
async def test_correction_without_open_shift_is_422(async_client: AsyncClient, make_collaborator):
    ana = await make_collaborator("Ana")
    resp = await async_client.post(
        "/api/v1/attendance/corrections",
        json={"collaborator_id": ana.id, "exit_at": datetime.now(timezone.utc).isoformat()},
    )
    assert resp.status_code == 422
