"""Tests for health checks and the error envelope."""

from unittest.mock import AsyncMock, MagicMock

from api.dependencies import get_database
from daybook.database import Database
from daybook.errors import StoreUnavailableError
from httpx import AsyncClient


async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "daybook-api"}


async def test_ready(client: AsyncClient):
    resp = await client.get("/health/ready")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ready"}


async def test_not_ready_when_store_is_down(app, client: AsyncClient):
    broken = MagicMock(spec=Database)
    broken.ping = AsyncMock(side_effect=StoreUnavailableError(detail="connection refused"))
    app.dependency_overrides[get_database] = lambda: broken

    resp = await client.get("/health/ready")
    assert resp.status_code == 503
    assert resp.json() == {"status": "not_ready", "error": "Database unavailable"}


async def test_store_outage_on_api_route(app, client: AsyncClient):
    broken = MagicMock(spec=Database)
    broken.execute = AsyncMock(side_effect=StoreUnavailableError(detail="connection refused"))
    app.dependency_overrides[get_database] = lambda: broken

    resp = await client.get("/api/prompts/tts/versions")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "Database unavailable"}


async def test_unknown_route_uses_envelope(client: AsyncClient):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Not Found"}
