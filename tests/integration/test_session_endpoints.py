"""
Integration tests for the edit session API endpoints
"""
import pytest


async def _open(async_client, tour_id):
    r = await async_client.post("/sessions", json={"variant": "tour", "entity_id": tour_id})
    assert r.status_code == 201
    return r.json()["data"]


async def _settle(service_container, session_id):
    await service_container.get_session_manager().get(session_id).wait_idle()


@pytest.mark.asyncio
async def test_open_session_returns_overlay_state(async_client, tour_id):
    data = await _open(async_client, tour_id)

    assert data["variant"] == "tour"
    assert data["entity_id"] == tour_id
    assert data["fields"]["tour_name"]["en"] == "Heritage Walk"
    assert data["fields"]["tour_name"]["hi"] == ""
    assert [item["texts"]["en"] for item in data["fields"]["highlights"]] == ["Clock Tower"]
    assert data["fields"]["duration_days"] == 2
    assert set(data["collections"]) == {"media", "itinerary_day", "itinerary_item", "tag"}
    assert data["errors"] == []


@pytest.mark.asyncio
async def test_open_missing_entity_is_404(async_client):
    r = await async_client.post("/sessions", json={"variant": "tour", "entity_id": 999})
    assert r.status_code == 404
    assert r.json()["error_code"] == "ENTITY_NOT_FOUND"


@pytest.mark.asyncio
async def test_edit_cascade_and_save(async_client, service_container, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    r = await async_client.patch(
        f"/sessions/{session_id}/fields",
        json={"field": "tour_name", "language": "en", "value": "Clock Tower"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["busy_fields"] == ["tour_name"]

    await _settle(service_container, session_id)
    r = await async_client.get(f"/sessions/{session_id}")
    assert r.json()["data"]["fields"]["tour_name"]["ja"] == "時計塔"

    r = await async_client.post(f"/sessions/{session_id}/save")
    assert r.status_code == 200
    result = r.json()["data"]
    assert result["succeeded"] is True
    assert result["base_written"] is True
    assert result["translation_rows_written"] == 5
    assert result["session"]["fields"]["tour_name"]["fr"] == "Tour de l'Horloge"

    r = await async_client.post(f"/sessions/{session_id}/save")
    assert r.json()["data"]["total_writes"] == 0


@pytest.mark.asyncio
async def test_unknown_session_is_404(async_client):
    r = await async_client.get("/sessions/nope")
    assert r.status_code == 404
    body = r.json()
    assert body["error_code"] == "SESSION_NOT_FOUND"
    assert body["request_id"]


@pytest.mark.asyncio
async def test_unknown_field_is_rejected(async_client, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    r = await async_client.patch(
        f"/sessions/{session_id}/fields",
        json={"field": "vendor_name", "language": "en", "value": "x"},
    )

    assert r.status_code == 400
    assert r.json()["error_code"] == "UNKNOWN_FIELD"


@pytest.mark.asyncio
async def test_unsupported_language_is_rejected(async_client, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    r = await async_client.patch(
        f"/sessions/{session_id}/fields",
        json={"field": "tour_name", "language": "de", "value": "Uhrturm"},
    )

    assert r.status_code == 400
    assert r.json()["error_code"] == "UNSUPPORTED_LANGUAGE"


@pytest.mark.asyncio
async def test_child_lifecycle_and_reorder(async_client, service_container, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    for url in ("a.jpg", "b.jpg"):
        r = await async_client.post(
            f"/sessions/{session_id}/collections/media",
            json={"values": {"media_url": url, "alt_text": "Clock Tower"}},
        )
        assert r.status_code == 201
    media = r.json()["data"]["collections"]["media"]
    assert [m["client_id"] for m in media] == [-1, -2]

    r = await async_client.put(f"/sessions/{session_id}/collections/media", json={"client_ids": [-2, -1]})
    assert [m["values"]["media_url"] for m in r.json()["data"]["collections"]["media"]] == ["b.jpg", "a.jpg"]

    await _settle(service_container, session_id)
    r = await async_client.post(f"/sessions/{session_id}/save")
    result = r.json()["data"]
    assert result["collections"]["media"]["inserted"] == 2
    assert result["collections"]["media"]["translations_written"] == 10
    saved = result["session"]["collections"]["media"]
    assert [m["values"]["media_url"] for m in saved] == ["b.jpg", "a.jpg"]
    assert all(m["client_id"] > 0 for m in saved)
    assert saved[0]["translations"]["alt_text"]["gu"] == "ઘડિયાળ ટાવર"


@pytest.mark.asyncio
async def test_itinerary_item_requires_parent(async_client, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    r = await async_client.post(
        f"/sessions/{session_id}/collections/itinerary_item",
        json={"values": {"title": "Clock Tower"}},
    )

    assert r.status_code == 400
    assert r.json()["error_code"] == "UNKNOWN_FIELD"


@pytest.mark.asyncio
async def test_translate_all(async_client, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]

    r = await async_client.post(f"/sessions/{session_id}/translate-all")

    assert r.status_code == 200
    data = r.json()["data"]
    # tour_name and city in five target languages
    assert data["cells_written"] == 10
    assert data["session"]["fields"]["tour_name"]["es"] == "Paseo patrimonial"


@pytest.mark.asyncio
async def test_cancel_discards_session(async_client, tour_id):
    session_id = (await _open(async_client, tour_id))["session_id"]
    await async_client.patch(
        f"/sessions/{session_id}/fields",
        json={"field": "tour_name", "language": "en", "value": "Clock Tower"},
    )

    r = await async_client.delete(f"/sessions/{session_id}")
    assert r.status_code == 200
    assert r.json()["data"]["message"] == "Session closed"

    r = await async_client.get(f"/sessions/{session_id}")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_health_reports_open_sessions(async_client, tour_id):
    await _open(async_client, tour_id)

    r = await async_client.get("/health")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["details"]["open_sessions"] == 1
