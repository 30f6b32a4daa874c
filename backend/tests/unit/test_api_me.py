"""Tests for GET /me, /sections and /roles."""

from portal.providers.store.base import Collection
from tests.conftest import ADMIN_ROLE_ID, TEST_EMAIL, TEST_FULL_NAME, TEST_USER_ID


async def test_me_for_new_identity(client, data_store):
    response = await client.get("/api/v1/me")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == TEST_USER_ID
    assert data["email"] == TEST_EMAIL
    assert data["display_name"] == TEST_FULL_NAME
    assert data["provider"] == "email"
    assert data["is_onboarding_complete"] is False
    assert [role["name"] for role in data["roles"]] == ["user"]
    assert data["permissions"] == ["basic_access"]
    assert data_store.rows(Collection.PROFILES)[0]["id"] == TEST_USER_ID


async def test_me_for_admin(client, data_store):
    data_store.seed(Collection.USER_ROLES, {"user_id": TEST_USER_ID, "role_id": ADMIN_ROLE_ID})

    response = await client.get("/api/v1/me")

    data = response.json()["data"]
    assert [role["name"] for role in data["roles"]] == ["admin"]
    assert data["permissions"] == ["admin_access", "basic_access"]


async def test_me_for_onboarded_identity(client, onboarded):
    response = await client.get("/api/v1/me")
    assert response.json()["data"]["is_onboarding_complete"] is True


# =============================================================================
# Sections
# =============================================================================


async def test_sections_in_profile_mode(client):
    response = await client.get("/api/v1/sections")

    assert response.status_code == 200
    ids = [section["id"] for section in response.json()["data"]]
    assert "welcome" not in ids
    assert ids[0] == "personal"


async def test_sections_in_onboarding_mode_hide_optional_fields(client):
    onboarding = (await client.get("/api/v1/sections", params={"mode": "onboarding"})).json()
    profile = (await client.get("/api/v1/sections", params={"mode": "profile"})).json()

    assert onboarding["data"][0]["id"] == "welcome"
    onboarding_fields = {
        s["id"]: len(s["fields"]) for s in onboarding["data"]
    }
    profile_fields = {s["id"]: len(s["fields"]) for s in profile["data"]}
    assert onboarding_fields["personal"] <= profile_fields["personal"]
    assert all(
        field["tier"] == "ESSENTIAL"
        for section in onboarding["data"]
        for field in section["fields"]
    )


async def test_section_detail(client):
    response = await client.get("/api/v1/sections/roles")

    assert response.status_code == 200
    assert response.json()["data"]["required"] is True


async def test_unknown_section(client):
    response = await client.get("/api/v1/sections/hobbies")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


async def test_invalid_mode(client):
    response = await client.get("/api/v1/sections", params={"mode": "admin"})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


# =============================================================================
# Roles
# =============================================================================


async def test_roles(client):
    response = await client.get("/api/v1/roles")

    roles = response.json()["data"]
    assert roles[0] == {"id": "frontend", "name": "Frontend Engineer", "category": "engineering"}
    assert len(roles) == 9


async def test_roles_by_category(client):
    response = await client.get("/api/v1/roles/by-category")

    grouped = response.json()["data"]
    assert [role["id"] for role in grouped["product"]] == ["pm"]
