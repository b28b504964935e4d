"""
HTTP tests for the room endpoints, using FastAPI's TestClient with an
in-memory registry swapped in through the dependency.
"""
import random

import pytest
from fastapi.testclient import TestClient

from main import app
from services.game_service import GameService, get_game_service
from services.session_registry import InMemorySessionRegistry


@pytest.fixture
def client():
    service = GameService(InMemorySessionRegistry(ttl_seconds=600), rng=random.Random(2024))
    app.dependency_overrides[get_game_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _post(client, path, **body):
    return client.post(f"/api{path}", json=body)


@pytest.fixture
def room(client):
    """A started 4-player room, moved on to murder selection."""
    created = _post(client, "/rooms", host_name="Alice", device_id="dev-0").json()
    code = created["game"]["room_code"]
    ids = [created["player_id"]]
    for i, name in enumerate(["Bruno", "Carmen", "Dmitri"], start=1):
        ids.append(_post(client, f"/rooms/{code}/join", player_name=name, device_id=f"dev-{i}").json()["player_id"])

    assert _post(client, f"/rooms/{code}/start", player_id=ids[0]).status_code == 200
    assert _post(client, f"/rooms/{code}/proceed", player_id=ids[0]).status_code == 200

    # Each player only ever sees their own role
    roles = {}
    for pid in ids:
        view = client.get(f"/api/rooms/{code}", params={"player_id": pid}).json()["game"]
        me = next(p for p in view["participants"] if p["id"] == pid)
        roles[me["role"]] = roles.get(me["role"], []) + [me]
    return {"code": code, "host": ids[0], "ids": ids, "roles": roles}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_create_room(client):
    response = _post(client, "/rooms", host_name="Alice")
    assert response.status_code == 201
    body = response.json()
    assert len(body["game"]["room_code"]) == 6
    assert body["game"]["phase"] == "lobby"
    assert body["game"]["lobby_summary"]["player_count_warning"]
    assert body["player_id"] == body["game"]["viewer_id"]


def test_create_room_rejects_short_name(client):
    response = _post(client, "/rooms", host_name="A")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_name"


def test_unknown_room_is_404(client):
    response = client.get("/api/rooms/NOPE22")
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "room_not_found"


def test_join_reconnects_by_device(client):
    created = _post(client, "/rooms", host_name="Alice", device_id="dev-0").json()
    code = created["game"]["room_code"]
    response = _post(client, f"/rooms/{code}/join", device_id="dev-0")
    assert response.status_code == 200
    assert response.json()["reconnected"] is True
    assert response.json()["player_id"] == created["player_id"]


def test_non_host_cannot_start(client):
    created = _post(client, "/rooms", host_name="Alice").json()
    code = created["game"]["room_code"]
    guest = _post(client, f"/rooms/{code}/join", player_name="Bruno").json()["player_id"]
    response = _post(client, f"/rooms/{code}/start", player_id=guest)
    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "not_host"


def test_start_with_too_few_players(client):
    created = _post(client, "/rooms", host_name="Alice").json()
    code = created["game"]["room_code"]
    response = _post(client, f"/rooms/{code}/start", player_id=created["player_id"])
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "At least 4 players are needed"


def test_full_game_over_http(client, room):
    code, roles = room["code"], room["roles"]
    murderer = roles["murderer"][0]
    scientist = roles["forensic_scientist"][0]
    investigator = roles["investigator"][0]
    evidence_id = murderer["evidence_cards"][2]["id"]
    method_id = murderer["method_cards"][0]["id"]

    response = _post(
        client, f"/rooms/{code}/solution",
        player_id=murderer["id"], evidence_id=evidence_id, method_id=method_id,
    )
    assert response.status_code == 200
    game = response.json()["game"]
    assert game["phase"] == "clue_giving"
    assert game["solution"]["evidence_id"] == evidence_id

    tile_id = game["scene_tiles"][0]["id"]
    response = _post(client, f"/rooms/{code}/tiles/{tile_id}/option", player_id=scientist["id"], option_index=2)
    assert response.status_code == 200
    assert response.json()["game"]["scene_tiles"][0]["selected_option"] == 2
    assert len(response.json()["game"]["tile_pool"]) == 20

    response = _post(client, f"/rooms/{code}/tiles/confirm", player_id=scientist["id"])
    assert response.json()["game"]["phase"] == "discussion"

    view = client.get(f"/api/rooms/{code}", params={"player_id": investigator["id"]}).json()["game"]
    assert view["solution"] is None
    assert view["tile_pool"] == []
    assert all(p["role"] is None for p in view["participants"] if p["id"] != investigator["id"])

    response = _post(
        client, f"/rooms/{code}/accusations",
        player_id=investigator["id"], target_id=murderer["id"], evidence_id=evidence_id, method_id=method_id,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["is_correct"] is True
    assert body["game"]["phase"] == "finished"
    assert body["game"]["winner"] == "investigators"
    assert all(p["role"] for p in body["game"]["participants"])

    response = _post(client, f"/rooms/{code}/reset", player_id=room["host"])
    assert response.json()["game"]["phase"] == "lobby"
    assert all(p["role"] is None for p in response.json()["game"]["participants"])


def test_replace_tile_over_http(client, room):
    code, roles = room["code"], room["roles"]
    murderer = roles["murderer"][0]
    scientist = roles["forensic_scientist"][0]
    _post(
        client, f"/rooms/{code}/solution", player_id=murderer["id"],
        evidence_id=murderer["evidence_cards"][0]["id"], method_id=murderer["method_cards"][0]["id"],
    )
    game = _post(client, f"/rooms/{code}/tiles/confirm", player_id=scientist["id"]).json()["game"]
    old_id, new_id = game["scene_tiles"][0]["id"], game["tile_pool"][0]["id"]

    early = _post(client, f"/rooms/{code}/tiles/replace", player_id=scientist["id"], old_tile_id=old_id, new_tile_id=new_id)
    assert early.status_code == 400
    assert early.json()["detail"]["error"] == "wrong_phase"

    game = _post(client, f"/rooms/{code}/rounds/next", player_id=scientist["id"]).json()["game"]
    assert game["current_round"] == 2

    response = _post(client, f"/rooms/{code}/tiles/replace", player_id=scientist["id"], old_tile_id=old_id, new_tile_id=new_id)
    assert response.status_code == 200
    game = response.json()["game"]
    assert game["scene_tiles"][0]["id"] == new_id
    assert game["rounds"][-1]["replaced_tile_id"] == new_id
    assert game["rounds"][-1]["displaced_tile_id"] == old_id


def test_accusation_errors_over_http(client, room):
    code, roles = room["code"], room["roles"]
    murderer = roles["murderer"][0]
    scientist = roles["forensic_scientist"][0]
    evidence_id = murderer["evidence_cards"][0]["id"]
    method_id = murderer["method_cards"][0]["id"]

    response = _post(
        client, f"/rooms/{code}/accusations",
        player_id=scientist["id"], target_id=murderer["id"], evidence_id=evidence_id, method_id=method_id,
    )
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "wrong_phase"

    _post(client, f"/rooms/{code}/solution", player_id=murderer["id"], evidence_id=evidence_id, method_id=method_id)
    _post(client, f"/rooms/{code}/tiles/confirm", player_id=scientist["id"])

    response = _post(
        client, f"/rooms/{code}/accusations",
        player_id=scientist["id"], target_id=murderer["id"], evidence_id=evidence_id, method_id=method_id,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == {
        "error": "scientist_cannot_accuse",
        "message": "The Forensic Scientist cannot accuse",
    }


def test_request_validation(client):
    created = _post(client, "/rooms", host_name="Alice").json()
    code = created["game"]["room_code"]
    response = client.post(f"/api/rooms/{code}/start", json={})
    assert response.status_code == 422


def test_rejoin_by_name(client, room):
    response = _post(client, f"/rooms/{room['code'].lower()}/rejoin", player_name="carmen")
    assert response.status_code == 200
    assert response.json()["player_id"] == room["ids"][2]

    response = _post(client, f"/rooms/{room['code']}/rejoin", player_name="Stranger")
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "rejoin_in_progress"
