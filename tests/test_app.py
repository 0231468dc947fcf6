import json

import pytest

from poolkeeper import app
from poolkeeper.actions.monitor import health
from poolkeeper.app import health_response, lifespan, mcp, readiness_response
from poolkeeper.core.registry import create_connection_manager, get_connection_manager

pytestmark = pytest.mark.usefixtures("healthy_host")


@pytest.mark.asyncio
async def test_health_route_ok(connected_manager):
    response = await health_response(connected_manager)

    assert response.status_code == 200
    body = json.loads(response.body)
    assert body["status"] == "healthy"
    assert body["uptime_seconds"] >= 0


@pytest.mark.asyncio
async def test_health_route_degraded_still_serves(connected_manager, monkeypatch):
    async def disk_full():
        return {"status": "down", "details": {"utilization": 97.0}}

    monkeypatch.setattr(health, "check_disk", disk_full)

    response = await health_response(connected_manager)

    assert response.status_code == 200
    assert json.loads(response.body)["status"] == "degraded"


@pytest.mark.asyncio
async def test_health_route_unavailable_without_manager():
    response = await health_response(None)

    assert response.status_code == 503
    assert json.loads(response.body)["status"] == "unhealthy"


@pytest.mark.asyncio
async def test_ready_route(connected_manager, mock_connection):
    assert (await readiness_response(connected_manager)).status_code == 200

    mock_connection.fetchval.side_effect = OSError("timeout")
    response = await readiness_response(connected_manager)
    assert response.status_code == 503
    assert json.loads(response.body)["error"] == "timeout"


@pytest.mark.asyncio
async def test_ready_route_without_manager():
    assert (await readiness_response(None)).status_code == 503


@pytest.mark.asyncio
async def test_lifespan_context_tracks_manager(monkeypatch, pool_factory, mock_pool):
    monkeypatch.setattr(
        app, "create_connection_manager",
        lambda config: create_connection_manager(config, pool_factory=pool_factory),
    )

    async with lifespan(mcp) as state:
        context = state["action_context"]
        manager = get_connection_manager()
        assert context.manager is manager
        assert manager.is_healthy()
        assert context.uptime_seconds >= 0

    mock_pool.close.assert_awaited_once()
    assert get_connection_manager() is None
    assert not hasattr(app, "_action_context")
