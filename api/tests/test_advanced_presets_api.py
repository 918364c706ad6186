"""Tests for advanced preset endpoints."""

import uuid

from httpx import AsyncClient


async def _create(client: AsyncClient, name: str, config: dict | None = None) -> dict:
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "realtime", "presetName": name, "config": config or {}},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["preset"]


async def test_list_includes_system_preset(client: AsyncClient):
    resp = await client.get("/api/advanced-presets", params={"endpoint": "realtime"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    system = body["presets"][0]
    assert body["currentPreset"]["id"] == system["id"]
    assert system["isCurrent"] is True
    assert system["presetName"] == "Default"
    assert system["isSystem"] is True
    assert system["temperature"] == 0.8
    assert system["prefixPaddingMs"] == 300
    assert system["silenceDurationMs"] == 500


async def test_list_requires_endpoint(client: AsyncClient):
    resp = await client.get("/api/advanced-presets/list")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Endpoint parameter is required"


async def test_create_with_config(client: AsyncClient):
    preset = await _create(
        client,
        "Calm",
        {"temperature": 0.6, "speed": 0.9, "noise_reduction": "near_field", "truncation": "disabled"},
    )
    assert preset["version"] == "v1"
    assert preset["presetName"] == "Calm"
    assert preset["temperature"] == 0.6
    assert preset["speed"] == 0.9
    assert preset["noiseReduction"] == "near_field"
    assert preset["truncation"] == "disabled"
    assert preset["threshold"] is None
    assert preset["isSystem"] is False


async def test_create_subpath(client: AsyncClient):
    resp = await client.post(
        "/api/advanced-presets/create",
        json={"endpoint": "tts", "presetName": "Bright", "config": {"speed": 1.2}},
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Preset created successfully"


async def test_out_of_range_config_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "realtime", "presetName": "Hot", "config": {"temperature": 5}},
    )
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("config.temperature:")


async def test_unknown_config_field_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "realtime", "presetName": "Odd", "config": {"volume": 11}},
    )
    assert resp.status_code == 400


async def test_invalid_noise_reduction_rejected(client: AsyncClient):
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "realtime", "presetName": "Odd", "config": {"noise_reduction": "studio"}},
    )
    assert resp.status_code == 400


async def test_invalid_endpoint_in_body(client: AsyncClient):
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "weather", "presetName": "Calm"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid endpoint. Must be one of:")


async def test_duplicate_name(client: AsyncClient):
    await _create(client, "Calm")
    resp = await client.post(
        "/api/advanced-presets",
        json={"endpoint": "realtime", "presetName": "Calm", "config": {}},
    )
    assert resp.status_code == 409
    assert resp.json()["error"] == "Preset already exists"


async def test_switch_and_current(client: AsyncClient):
    calm = await _create(client, "Calm", {"temperature": 0.6})
    resp = await client.put("/api/advanced-presets", json={"endpoint": "realtime", "presetId": calm["id"]})
    assert resp.status_code == 200
    assert resp.json()["preset"]["isCurrent"] is True

    resp = await client.get("/api/advanced-presets/current", params={"endpoint": "realtime"})
    assert resp.status_code == 200
    assert resp.json()["preset"]["id"] == calm["id"]

    listing = (await client.get("/api/advanced-presets", params={"endpoint": "realtime"})).json()
    assert listing["currentPreset"]["id"] == calm["id"]


async def test_current_falls_back_to_system_preset(client: AsyncClient):
    resp = await client.get("/api/advanced-presets/current", params={"endpoint": "realtime"})
    assert resp.status_code == 200
    assert resp.json()["preset"]["isSystem"] is True


async def test_current_without_any_preset(client: AsyncClient):
    resp = await client.get("/api/advanced-presets/current", params={"endpoint": "tts"})
    assert resp.status_code == 404
    assert resp.json()["error"] == "No preset found for this endpoint"


async def test_switch_unknown_preset(client: AsyncClient):
    resp = await client.put(
        "/api/advanced-presets/switch",
        json={"endpoint": "realtime", "presetId": str(uuid.uuid4())},
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "Preset not found or does not belong to this endpoint"


async def test_delete_rules(client: AsyncClient):
    calm = await _create(client, "Calm")
    system = (await client.get("/api/advanced-presets/current", params={"endpoint": "realtime"})).json()["preset"]

    resp = await client.request(
        "DELETE", "/api/advanced-presets", json={"endpoint": "realtime", "presetId": system["id"]}
    )
    assert resp.status_code == 403
    assert resp.json()["error"] == "Cannot delete system preset"

    await client.put("/api/advanced-presets", json={"endpoint": "realtime", "presetId": calm["id"]})
    resp = await client.request(
        "DELETE", "/api/advanced-presets/delete", json={"endpoint": "realtime", "presetId": calm["id"]}
    )
    assert resp.status_code == 403

    await client.put("/api/advanced-presets", json={"endpoint": "realtime", "presetId": system["id"]})
    resp = await client.request(
        "DELETE", "/api/advanced-presets", json={"endpoint": "realtime", "presetId": calm["id"]}
    )
    assert resp.status_code == 200
    assert resp.json()["deletedPreset"]["name"] == "Calm"


async def test_delete_with_wrong_endpoint_is_not_found(client: AsyncClient):
    calm = await _create(client, "Calm")
    resp = await client.request(
        "DELETE", "/api/advanced-presets", json={"endpoint": "tts", "presetId": calm["id"]}
    )
    assert resp.status_code == 404
