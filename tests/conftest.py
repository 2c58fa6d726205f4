"""Pytest configuration and fixtures for beatcrest.

Repository tests run against tests.fakes.FakeFirestoreClient; HTTP tests use
beatcrest.main.create_app() over ASGITransport (lifespan is not run, so
app.state.repositories is whatever the test puts there).
"""

import pytest
from httpx import ASGITransport, AsyncClient

from beatcrest.core.config import get_settings
from beatcrest.infrastructure.firebase.repositories import (
    Repositories,
    build_repositories,
)
from beatcrest.main import create_app
from tests.fakes import FakeFirestoreClient


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    """Settings come from defaults only; no service account leaks in from the shell."""
    monkeypatch.delenv("FIREBASE_SERVICE_ACCOUNT_KEY", raising=False)
    monkeypatch.delenv("FIREBASE_SERVICE_ACCOUNT_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_client() -> FakeFirestoreClient:
    return FakeFirestoreClient()


@pytest.fixture
def repos(fake_client: FakeFirestoreClient) -> Repositories:
    return build_repositories(fake_client, license_prefix="BC")


@pytest.fixture
def indexless_client() -> FakeFirestoreClient:
    """Client that rejects queries needing a composite index."""
    return FakeFirestoreClient(require_indexes=True)


@pytest.fixture
def indexless_repos(indexless_client: FakeFirestoreClient) -> Repositories:
    return build_repositories(indexless_client, license_prefix="BC")


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
async def client(app) -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
