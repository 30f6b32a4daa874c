"""Tests for the /onboarding wizard endpoints."""

from portal.providers.errors import TransientError
from portal.providers.store.base import Collection

from tests.conftest import TEST_USER_ID


async def _forward(client):
    return await client.post("/api/v1/onboarding/forward")


async def test_state_starts_onboarding_for_new_identity(client):
    response = await client.get("/api/v1/onboarding/state")

    assert response.status_code == 200
    state = response.json()["data"]
    assert state["mode"] == "onboarding"
    assert state["active_section_id"] == "welcome"
    assert state["current_step_index"] == 0
    assert state["can_advance"] is True
    assert state["completion_percentage"] == 0


async def test_forward_records_step_and_saves(client, data_store):
    response = await _forward(client)

    assert response.status_code == 200
    outcome = response.json()["data"]
    assert outcome["moved"] is True
    assert outcome["state"]["active_section_id"] == "personal"
    assert outcome["save"]["ok"] is True
    assert data_store.rows(Collection.USER_ONBOARDING)[0]["completed_steps"] == ["welcome"]


async def test_forward_blocked_on_required_section(client):
    await _forward(client)
    await _forward(client)

    response = await _forward(client)

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "INVALID_STATE_TRANSITION"
    assert error["details"][0]["field"] == "selected_roles"


async def test_full_flow_unlocks_dashboard(client, data_store):
    blocked = await client.get("/api/v1/dashboard/matches")
    assert blocked.status_code == 403

    await _forward(client)
    await _forward(client)
    await client.patch("/api/v1/profile", json={"selected_roles": ["frontend", "pm"]})
    for _ in range(3):
        assert (await _forward(client)).json()["data"]["moved"] is True

    finish = await _forward(client)

    outcome = finish.json()["data"]
    assert outcome["moved"] is True
    assert outcome["redirect"] == "/dashboard"
    assert outcome["state"]["completion_percentage"] == 100
    row = data_store.rows(Collection.USER_ONBOARDING)[0]
    assert row["completed"] is True
    assert row["completed_steps"] == [
        "welcome",
        "personal",
        "roles",
        "preferences",
        "education",
        "resume",
    ]
    assert (await client.get("/api/v1/dashboard/matches")).status_code == 200


async def test_failed_final_save_stays_put(client, data_store):
    await _forward(client)
    await _forward(client)
    await client.patch("/api/v1/profile", json={"selected_roles": ["frontend"]})
    for _ in range(3):
        await _forward(client)
    data_store.fail_on[("upsert", Collection.USER_ONBOARDING)] = TransientError("down")

    response = await _forward(client)

    outcome = response.json()["data"]
    assert outcome["moved"] is False
    assert outcome["redirect"] is None
    assert outcome["message"] == "Failed to save changes. Please try again."
    assert outcome["state"]["active_section_id"] == "resume"


async def test_back_and_jump(client):
    await _forward(client)
    await _forward(client)

    back = await client.post("/api/v1/onboarding/back")
    assert back.json()["data"]["state"]["active_section_id"] == "personal"

    ahead = await client.post("/api/v1/onboarding/jump/education")
    assert ahead.json()["data"]["moved"] is False

    done = await client.post("/api/v1/onboarding/jump/welcome")
    assert done.json()["data"]["moved"] is True
    assert done.json()["data"]["state"]["active_section_id"] == "welcome"


async def test_start_profile_mode(client, onboarded):
    response = await client.post("/api/v1/onboarding/start", json={"mode": "profile"})

    state = response.json()["data"]
    assert state["mode"] == "profile"
    assert state["active_section_id"] == "personal"


async def test_forced_start_reenters_onboarding(client, onboarded):
    response = await client.post("/api/v1/onboarding/start", json={"force": True})

    state = response.json()["data"]
    assert state["mode"] == "onboarding"
    assert state["forced"] is True


async def test_start_rejects_unknown_fields(client):
    response = await client.post("/api/v1/onboarding/start", json={"mode": "profile", "x": 1})
    assert response.status_code == 400


async def test_save_without_moving(client, data_store):
    await client.get("/api/v1/onboarding/state")
    await client.patch("/api/v1/profile", json={"title": "Designer"})

    response = await client.post("/api/v1/onboarding/save")

    outcome = response.json()["data"]
    assert outcome["moved"] is False
    assert outcome["message"] == "Changes saved successfully!"
    assert outcome["state"]["active_section_id"] == "welcome"
    assert data_store.rows(Collection.PROFILES)[0]["title"] == "Designer"


async def test_profile_mode_forward_on_last_section(client, onboarded):
    await client.post("/api/v1/onboarding/start", json={"mode": "profile"})
    await client.post("/api/v1/onboarding/jump/resume")

    response = await _forward(client)

    outcome = response.json()["data"]
    assert outcome["moved"] is False
    assert outcome["save"]["ok"] is True
    assert outcome["state"]["active_section_id"] == "resume"


async def test_forward_while_saving_is_a_conflict(client, registry, monkeypatch):
    await client.get("/api/v1/onboarding/state")
    orchestrator = registry.peek(TEST_USER_ID).orchestrator
    monkeypatch.setattr(orchestrator, "_saving", True)

    response = await _forward(client)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "SAVE_IN_PROGRESS"
    assert orchestrator.state.active_section_id == "welcome"
