"""Tests for app wiring: health, security headers, error envelopes, auth dependency."""

import uuid
from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from portal.core.config import settings
from tests.conftest import TEST_USER_ID, create_test_jwt


async def test_health(unauthenticated_client):
    response = await unauthenticated_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_security_headers(client):
    response = await client.get("/api/v1/roles")

    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["Cache-Control"] == "no-store, max-age=0"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]
    assert "Strict-Transport-Security" not in response.headers


async def test_missing_credentials_is_401_envelope(unauthenticated_client):
    response = await unauthenticated_client.get("/api/v1/me")

    assert response.status_code == 401
    assert response.json() == {
        "error": {
            "code": "UNAUTHORIZED",
            "message": "Authentication required",
            "details": None,
        }
    }


async def test_expired_token_rejected(unauthenticated_client):
    token = create_test_jwt(expires_delta=timedelta(seconds=-10))

    response = await unauthenticated_client.get(
        "/api/v1/me", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


async def test_wrong_secret_rejected(unauthenticated_client):
    token = create_test_jwt(secret="another-secret-that-is-also-long-enough-to-use")

    response = await unauthenticated_client.get(
        "/api/v1/me", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


async def test_bearer_header_accepted(unauthenticated_client):
    response = await unauthenticated_client.get(
        "/api/v1/me", headers={"Authorization": f"Bearer {create_test_jwt()}"}
    )

    assert response.status_code == 200
    assert response.json()["data"]["id"] == TEST_USER_ID


async def test_unknown_route_is_not_enveloped_as_api_error(client):
    response = await client.get("/api/v1/nothing-here")
    assert response.status_code == 404


@pytest.fixture
def local_first(monkeypatch, registry, auth_provider):
    """Auth disabled with DEFAULT_USER_ID set."""
    from portal.api.deps import get_auth_provider, get_registry
    from portal.main import app

    monkeypatch.setattr(settings, "auth_enabled", False)
    monkeypatch.setattr(settings, "default_user_id", uuid.UUID(TEST_USER_ID))
    monkeypatch.setattr(settings, "default_user_email", "local@example.com")
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_auth_provider] = lambda: auth_provider
    yield AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    app.dependency_overrides.clear()


async def test_local_first_mode_uses_default_user(local_first):
    async with local_first as ac:
        response = await ac.get("/api/v1/me")

    assert response.status_code == 200
    assert response.json()["data"]["id"] == TEST_USER_ID
    assert response.json()["data"]["email"] == "local@example.com"


async def test_local_first_without_default_user(local_first, monkeypatch):
    monkeypatch.setattr(settings, "default_user_id", None)

    async with local_first as ac:
        response = await ac.get("/api/v1/me")

    assert response.status_code == 401
