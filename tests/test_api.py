from __future__ import annotations

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from api.main import app
from core import services

ADMIN = {"X-User-Id": "1", "X-User-Admin": "true"}
DIRECTOR = {"X-User-Id": "100"}
DIVER = {"X-User-Id": "200"}
STRANGER = {"X-User-Id": "999"}


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _team(client: httpx.AsyncClient, session_id: int, headers=DIRECTOR) -> dict:
    response = await client.post(f"/api/sessions/{session_id}/rotations", headers=headers)
    assert response.status_code == 201
    rotation = response.json()
    response = await client.post(f"/api/rotations/{rotation['id']}/teams", json={"call_sign": "Alpha"}, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(client) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_director_builds_a_team(client, dive_day) -> None:
    team = await _team(client, dive_day.session_id)
    assert team["number"] == 1
    assert team["members"] == []

    response = await client.post(
        f"/api/teams/{team['id']}/members",
        json={"participant_id": dive_day.supervisors[0], "role": "supervisor"},
        headers=DIRECTOR,
    )
    assert response.status_code == 201
    member = response.json()
    assert member["gas_type"] == "standard"
    assert member["participant"]["last_name"] == "Martin"

    response = await client.patch(
        f"/api/teams/{team['id']}",
        json={"planned_departure_time": "10:30", "planned_depth": 18},
        headers=DIRECTOR,
    )
    assert response.status_code == 200
    assert response.json()["planned_departure_time"] == "10:30"
    assert response.json()["planned_depth"] == 18

    response = await client.get(f"/api/sessions/{dive_day.session_id}/teams", headers=DIRECTOR)
    assert response.status_code == 200
    body = response.json()
    assert body["can_edit"] is True
    assert body["rotations"][0]["dive_teams"][0]["members"][0]["id"] == member["id"]
    assert body["gas_supply"]["total"] == 2

    response = await client.delete(f"/api/members/{member['id']}", headers=DIRECTOR)
    assert response.status_code == 204
    response = await client.delete(f"/api/members/{member['id']}", headers=DIRECTOR)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_constraint_violation_maps_to_conflict(client, dive_day) -> None:
    team = await _team(client, dive_day.session_id)
    for participant_id in dive_day.supervisors[:2]:
        response = await client.post(
            f"/api/teams/{team['id']}/members",
            json={"participant_id": participant_id, "role": "supervisor"},
            headers=DIRECTOR,
        )
        assert response.status_code == 201

    response = await client.post(
        f"/api/teams/{team['id']}/members",
        json={"participant_id": dive_day.instructor, "role": "instructor"},
        headers=DIRECTOR,
    )
    assert response.status_code == 409
    assert response.json()["error"] == "constraint_violation"
    assert response.json()["kind"] == "supervisor_capacity_exceeded"


@pytest.mark.asyncio
async def test_read_only_caller(client, dive_day) -> None:
    team = await _team(client, dive_day.session_id)

    response = await client.get(f"/api/sessions/{dive_day.session_id}/teams", headers=DIVER)
    assert response.status_code == 200
    assert response.json()["can_edit"] is False

    response = await client.delete(f"/api/teams/{team['id']}", headers=DIVER)
    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"

    response = await client.get(f"/api/sessions/{dive_day.session_id}/teams", headers=STRANGER)
    assert response.status_code == 403
    assert response.json()["error"] == "unavailable"


@pytest.mark.asyncio
async def test_impersonating_admin_cannot_edit(client, dive_day) -> None:
    headers = {**ADMIN, "X-Impersonating": "true"}
    response = await client.post(f"/api/sessions/{dive_day.session_id}/rotations", headers=headers)
    assert response.status_code == 403

    response = await client.post(f"/api/sessions/{dive_day.session_id}/rotations", headers=ADMIN)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_missing_entities_are_not_found(client, dive_day) -> None:
    response = await client.post("/api/rotations/4242/teams", headers=DIRECTOR)
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = await client.delete("/api/members/4242", headers=DIRECTOR)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_unknown_team_parameter_is_rejected(client, dive_day) -> None:
    team = await _team(client, dive_day.session_id)
    response = await client.patch(f"/api/teams/{team['id']}", json={"number": 3}, headers=DIRECTOR)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_gas_supply_endpoints(client, dive_day) -> None:
    response = await client.post(
        "/api/gas-supply",
        json={
            "supervisor_count": 3,
            "supervisor_enriched_count": 1,
            "student_count": 9,
            "student_enriched_training_count": 2,
            "optimization_mode": True,
        },
    )
    assert response.status_code == 200
    assert response.json()["required_standard"] == 6
    assert response.json()["required_enriched"] == 2
    assert response.json()["total"] == 8

    response = await client.post("/api/gas-supply", json={"student_count": 1, "student_enriched_training_count": 2})
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"

    response = await client.get(
        f"/api/sessions/{dive_day.session_id}/gas-supply", params={"source": "registrations"}, headers=DIVER
    )
    assert response.status_code == 200
    assert response.json()["student_count"] == 6


@pytest.mark.asyncio
async def test_safety_sheet_is_html(client, dive_day) -> None:
    await _team(client, dive_day.session_id)
    response = await client.get(
        f"/api/sessions/{dive_day.session_id}/safety-sheet",
        params={"surface_safety": "Boat Neptune"},
        headers=DIVER,
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Boat Neptune" in response.text
    assert "Alpha" in response.text


@pytest.mark.asyncio
async def test_audit_log_is_admin_only(client, dive_day) -> None:
    await _team(client, dive_day.session_id)

    response = await client.get("/api/audit", headers=DIRECTOR)
    assert response.status_code == 403

    response = await client.get("/api/audit", headers=ADMIN)
    assert response.status_code == 200
    assert [entry["action"] for entry in response.json()] == ["dive_team_created", "rotation_created"]


@pytest.mark.asyncio
async def test_reads_retry_transient_errors(client, dive_day, monkeypatch) -> None:
    list_participants = services.list_participants
    calls = []

    async def flaky_list_participants(db, session_id):
        calls.append(session_id)
        if len(calls) == 1:
            raise OperationalError("SELECT participants", {}, Exception("database is locked"))
        return await list_participants(db, session_id)

    monkeypatch.setattr(services, "list_participants", flaky_list_participants)

    response = await client.get(f"/api/sessions/{dive_day.session_id}/teams", headers=DIVER)
    assert response.status_code == 200
    assert len(calls) == 2
    assert response.json()["can_edit"] is False


@pytest.mark.asyncio
async def test_caller_lookup_retries_transient_errors(client, dive_day, monkeypatch) -> None:
    directed_session_ids = services.directed_session_ids
    calls = []

    async def flaky_directed_session_ids(db, participant_id):
        calls.append(participant_id)
        if len(calls) == 1:
            raise OperationalError("SELECT dive_directors", {}, Exception("database is locked"))
        return await directed_session_ids(db, participant_id)

    monkeypatch.setattr(services, "directed_session_ids", flaky_directed_session_ids)

    response = await client.get(f"/api/sessions/{dive_day.session_id}/teams", headers=DIRECTOR)
    assert response.status_code == 200
    assert len(calls) == 2
    assert response.json()["can_edit"] is True
