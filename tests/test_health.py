"""Smoke tests for health and app wiring."""

from httpx import AsyncClient

from beatcrest.infrastructure.firebase.repositories import build_repositories
from tests.fakes import FakeFirestoreClient


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200 and status ok."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ok"
    assert data.get("version")


async def test_ready_is_503_without_firestore(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "not_ready"
    assert "Firestore not configured" in body["message"]


async def test_ready_when_repositories_are_wired(app, client: AsyncClient) -> None:
    app.state.repositories = build_repositories(FakeFirestoreClient())
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_unknown_route_uses_json_error(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "HTTP_ERROR"


async def test_lifespan_without_credentials_leaves_repositories_unset(app) -> None:
    from beatcrest.core.lifespan import create_lifespan

    async with create_lifespan(app):
        assert app.state.repositories is None
    assert app.state.repositories is None
