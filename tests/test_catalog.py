"""Tests for collaborator, shift and shift-pattern CRUD."""

import pytest
from httpx import AsyncClient


# ── Collaborators ──────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_and_get_collaborator(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/collaborators",
        json={"name": "  Ana Torres ", "position": "Nurse", "photo_url": "/media/ref/ana.jpg"},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Ana Torres"
    assert data["is_active"] is True

    resp = await async_client.get(f"/api/v1/collaborators/{data['id']}")
    assert resp.status_code == 200
    assert resp.json()["position"] == "Nurse"


@pytest.mark.asyncio
async def test_create_collaborator_rejects_blank_name(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/collaborators", json={"name": "   "})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_list_collaborators_search(async_client: AsyncClient):
    for name in ("Ana Torres", "Luis Pérez", "Anabel Ruiz"):
        await async_client.post("/api/v1/collaborators", json={"name": name})

    resp = await async_client.get("/api/v1/collaborators", params={"search": "ana"})
    assert [c["name"] for c in resp.json()] == ["Ana Torres", "Anabel Ruiz"]

    resp = await async_client.get("/api/v1/collaborators", params={"search": "%"})
    assert resp.json() == []


@pytest.mark.asyncio
async def test_update_collaborator(async_client: AsyncClient):
    created = (await async_client.post("/api/v1/collaborators", json={"name": "Ana"})).json()
    resp = await async_client.put(f"/api/v1/collaborators/{created['id']}", json={"position": "Guard"})
    assert resp.status_code == 200
    assert resp.json()["position"] == "Guard"
    assert resp.json()["name"] == "Ana"


@pytest.mark.asyncio
async def test_delete_collaborator_is_soft(async_client: AsyncClient):
    created = (await async_client.post("/api/v1/collaborators", json={"name": "Ana"})).json()
    resp = await async_client.delete(f"/api/v1/collaborators/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    assert (await async_client.get(f"/api/v1/collaborators/{created['id']}")).status_code == 404
    assert (await async_client.get("/api/v1/collaborators")).json() == []


# ── Shifts ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_shift(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/shifts",
        json={"name": "Night", "start_time": "22:00", "end_time": "06:00", "color": "#1e40af"},
    )
    assert resp.status_code == 201
    assert resp.json()["color"] == "#1E40AF"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"name": "Bad", "start_time": "25:00", "end_time": "06:00"},
        {"name": "Bad", "start_time": "6am", "end_time": "06:00"},
        {"name": "Bad", "start_time": "06:00", "end_time": "14:00", "color": "blue"},
    ],
)
async def test_create_shift_validation(async_client: AsyncClient, payload):
    resp = await async_client.post("/api/v1/shifts", json=payload)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_update_shift(async_client: AsyncClient, make_shift):
    shift = await make_shift()
    resp = await async_client.put(f"/api/v1/shifts/{shift.id}", json={"end_time": "15:00"})
    assert resp.status_code == 200
    assert resp.json()["end_time"] == "15:00"
    assert resp.json()["start_time"] == "06:00"


@pytest.mark.asyncio
async def test_delete_shift_in_use_is_409(async_client: AsyncClient, make_collaborator, make_shift):
    ana = await make_collaborator("Ana")
    shift = await make_shift()
    await async_client.put(
        "/api/v1/schedules/cell",
        json={"collaborator_id": ana.id, "date": "2024-01-01", "shift_id": shift.id},
    )

    resp = await async_client.delete(f"/api/v1/shifts/{shift.id}")
    assert resp.status_code == 409

    await async_client.delete("/api/v1/schedules/cell", params={"collaborator_id": ana.id, "date": "2024-01-01"})
    resp = await async_client.delete(f"/api/v1/shifts/{shift.id}")
    assert resp.status_code == 200


# ── Shift patterns ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_pattern_crud(async_client: AsyncClient, make_shift):
    morning = await make_shift("Morning")
    night = await make_shift("Night", "22:00", "06:00")

    resp = await async_client.post(
        "/api/v1/shift-patterns",
        json={"name": "2-2-2", "sequence": [morning.id, morning.id, night.id, night.id, None, None]},
    )
    assert resp.status_code == 201
    pattern = resp.json()
    assert pattern["sequence"] == [morning.id, morning.id, night.id, night.id, None, None]

    resp = await async_client.put(f"/api/v1/shift-patterns/{pattern['id']}", json={"sequence": [night.id, None]})
    assert resp.json()["sequence"] == [night.id, None]

    resp = await async_client.get("/api/v1/shift-patterns")
    assert [p["name"] for p in resp.json()] == ["2-2-2"]

    resp = await async_client.delete(f"/api/v1/shift-patterns/{pattern['id']}")
    assert resp.status_code == 200
    assert (await async_client.get("/api/v1/shift-patterns")).json() == []


@pytest.mark.asyncio
async def test_pattern_with_unknown_shift_is_404(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/shift-patterns", json={"name": "Ghost", "sequence": [77, None]})
    assert resp.status_code == 404
    assert resp.json()["context"]["shift_ids"] == [77]


@pytest.mark.asyncio
async def test_blank_names_rejected_on_update(async_client: AsyncClient, make_shift):
    shift = await make_shift()
    resp = await async_client.put(f"/api/v1/shifts/{shift.id}", json={"name": "   "})
    assert resp.status_code == 422

    pattern = (await async_client.post("/api/v1/shift-patterns", json={"name": "Days", "sequence": [shift.id]})).json()
    resp = await async_client.put(f"/api/v1/shift-patterns/{pattern['id']}", json={"name": "  "})
    assert resp.status_code == 422

    resp = await async_client.put(f"/api/v1/shifts/{shift.id}", json={"name": " Early "})
    assert resp.json()["name"] == "Early"
