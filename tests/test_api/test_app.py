"""
Tests for app wiring: health probes, request context headers, and the
catch-all 500 handler.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from agentledger.main import create_app


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ready(client):
    resp = await client.get("/ready")
    assert resp.json() == {"status": "ready", "storage": "memory"}


@pytest.mark.asyncio
async def test_ready_before_startup(settings):
    app = create_app(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/ready")
    assert resp.status_code == 503


@pytest.mark.asyncio
async def test_request_id_echoed(client):
    resp = await client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time" in resp.headers


@pytest.mark.asyncio
async def test_unhandled_error_is_flat_500(auth_client, registry, monkeypatch):
    async def explode(*args, **kwargs):
        raise RuntimeError("database on fire")

    monkeypatch.setattr(registry.repository, "list_alerts", explode)
    resp = await auth_client.get("/api/alerts")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert "database on fire" not in resp.text


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(client):
    resp = await client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}
