"""Health endpoint tests."""

import pytest


@pytest.mark.asyncio
async def test_health_returns_ok(client):
    """Health endpoint should return server status and version."""
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["redis"] == "disabled"
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_health_degraded_when_redis_fails(app, client):
    class DeadRedis:
        async def ping(self):
            raise ConnectionError("nope")

    app.state.redis = DeadRedis()
    data = (await client.get("/api/health")).json()
    assert data["redis"].startswith("error")
    assert data["status"] == "degraded"
