from __future__ import annotations

import pytest


@pytest.mark.asyncio
async def test_health(async_client) -> None:
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_list_destinations(async_client) -> None:
    resp = await async_client.get("/commute/destinations")
    assert resp.status_code == 200
    assert [d["id"] for d in resp.json()] == ["elte", "bme", "corvinus"]


@pytest.mark.asyncio
async def test_get_commute_defaults_to_transit(async_client) -> None:
    resp = await async_client.get(
        "/commute",
        params={"lat": 47.4930, "lng": 19.0600, "destination_id": "bme", "origin_id": "apt-1"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["mode"] == "transit"
    assert body["destination_id"] == "bme"
    assert body["origin_id"] == "apt-1"
    assert body["travel_time_minutes"] >= 5
    assert body["is_estimate"] is True


@pytest.mark.asyncio
async def test_get_commute_unknown_destination_is_404(async_client) -> None:
    resp = await async_client.get(
        "/commute", params={"lat": 47.49, "lng": 19.06, "destination_id": "nope"}
    )
    assert resp.status_code == 404
    assert "nope" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_get_commute_rejects_invalid_mode(async_client) -> None:
    resp = await async_client.get(
        "/commute",
        params={"lat": 47.49, "lng": 19.06, "destination_id": "bme", "mode": "teleport"},
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_all_commutes(async_client) -> None:
    resp = await async_client.post(
        "/commute/all",
        json={"origin_id": "apt-1", "location": {"lat": 47.4930, "lng": 19.0600}},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["origin_id"] == "apt-1"
    assert len(body["commutes"]) == 3


@pytest.mark.asyncio
async def test_batch_commutes(async_client) -> None:
    resp = await async_client.post(
        "/commute/batch",
        json={
            "apartments": [
                {"id": "apt-1", "location": {"lat": 47.4930, "lng": 19.0600}},
                {"id": "apt-2", "location": {"lat": 47.5000, "lng": 19.0700}},
            ]
        },
    )
    assert resp.status_code == 200
    results = resp.json()["results"]
    assert set(results) == {"apt-1", "apt-2"}
    assert all(len(v) == 3 for v in results.values())


@pytest.mark.asyncio
async def test_batch_requires_apartments(async_client) -> None:
    resp = await async_client.post("/commute/batch", json={"apartments": []})
    assert resp.status_code == 422
