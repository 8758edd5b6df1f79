import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

import perfect_date.main as m
from perfect_date import config, repo
from perfect_date.auth import security
from perfect_date.routes import admin as admin_routes
from perfect_date.errors import InsufficientParticipantsError, MatchingAlreadyRunError, NotFoundError

ADMIN = {"X-Admin-Token": "test-admin-token"}
MATCH_ID = "6f1c2a7e-3b4d-4e5f-8a9b-0c1d2e3f4a5b"


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(m, "wait_for_db", lambda *args, **kwargs: None)
    monkeypatch.setattr(m, "run_migrations", lambda *args, **kwargs: None)
    monkeypatch.setattr(config, "ADMIN_TOKEN", "test-admin-token")
    monkeypatch.setattr(security, "JWT_SECRET", "test-secret")
    with TestClient(m.app) as c:
        yield c


def test_admin_routes_require_credentials(client):
    assert client.get("/admin/participants").status_code == 401
    assert client.get("/admin/participants", headers={"X-Admin-Token": "wrong"}).status_code == 401
    assert client.post("/admin/matches/run", json={}).status_code == 401


def test_admin_bearer_token_accepted(client, monkeypatch):
    monkeypatch.setattr(repo, "list_participants_admin", lambda: [{"id": "p1", "name": "Asha"}])
    token = security.create_admin_access_token(admin_id="admin-1", email="ops@example.com")
    res = client.get("/admin/participants", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json() == {"participants": [{"id": "p1", "name": "Asha"}], "count": 1}


def test_participant_token_rejected_on_admin_routes(client):
    token = security.create_access_token("user-1", email="u@example.com")
    res = client.get("/admin/participants", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_run_matching_passes_force_and_actor(client, monkeypatch):
    seen = {}

    def fake_run(force=False, actor=None):
        seen.update({"force": force, "actor": actor})
        return {"success": True, "matches_created": 4, "forced": force}

    monkeypatch.setattr(m, "repo_run_matching", fake_run)
    res = client.post("/admin/matches/run", json={"force": True}, headers=ADMIN)
    assert res.status_code == 200
    assert res.json()["matches_created"] == 4
    assert seen == {"force": True, "actor": "admin-token"}


def test_run_matching_without_body_defaults_to_not_forced(client, monkeypatch):
    seen = {}

    def fake_run(force=False, actor=None):
        seen["force"] = force
        return {"success": True}

    monkeypatch.setattr(m, "repo_run_matching", fake_run)
    assert client.post("/admin/matches/run", headers=ADMIN).status_code == 200
    assert seen["force"] is False


def test_run_matching_already_run_maps_to_conflict(client, monkeypatch):
    def fake_run(force=False, actor=None):
        raise MatchingAlreadyRunError("Matching has already been run. Use force option to re-run.")

    monkeypatch.setattr(m, "repo_run_matching", fake_run)
    res = client.post("/admin/matches/run", json={"force": False}, headers=ADMIN)
    assert res.status_code == 409
    detail = res.json()["detail"]
    assert detail["success"] is False
    assert detail["reason"] == "already_run"
    assert detail["trace_id"]


def test_run_matching_insufficient_participants(client, monkeypatch):
    def fake_run(force=False, actor=None):
        raise InsufficientParticipantsError("Not enough participants to run matching")

    monkeypatch.setattr(m, "repo_run_matching", fake_run)
    res = client.post("/admin/matches/run", json={}, headers=ADMIN)
    assert res.status_code == 400
    assert res.json()["detail"]["reason"] == "insufficient_participants"


@pytest.mark.parametrize(
    "body,reason",
    [
        ({"field": "match_4_score", "value": 50}, "invalid_field"),
        ({"field": "match_1_id", "value": 50}, "invalid_field"),
        ({"field": "match_1_score", "value": 101}, "invalid_score"),
        ({"field": "match_1_score", "value": -1}, "invalid_score"),
        ({"field": "match_1_score", "value": "high"}, "invalid_score"),
        ({"field": "match_1_score", "value": True}, "invalid_score"),
    ],
)
def test_score_override_rejects_invalid_input(client, monkeypatch, body, reason):
    called = []
    monkeypatch.setattr(repo, "update_match_score", lambda *args, **kwargs: called.append(args))
    res = client.post(f"/admin/matches/{MATCH_ID}/score", json=body, headers=ADMIN)
    assert res.status_code == 400
    assert res.json()["detail"]["reason"] == reason
    assert called == []


def test_score_override_updates_record(client, monkeypatch):
    seen = {}

    def fake_update(match_id, field, value, actor=None):
        seen.update({"match_id": match_id, "field": field, "value": value, "actor": actor})
        return {"success": True, "match_id": match_id, "field": field, "value": value}

    monkeypatch.setattr(repo, "update_match_score", fake_update)
    res = client.post(f"/admin/matches/{MATCH_ID}/score", json={"field": "match_2_score", "value": 88}, headers=ADMIN)
    assert res.status_code == 200
    assert seen == {"match_id": MATCH_ID, "field": "match_2_score", "value": 88.0, "actor": "admin-token"}


def test_score_override_unknown_match(client, monkeypatch):
    def fake_update(match_id, field, value, actor=None):
        raise NotFoundError("Match record not found")

    monkeypatch.setattr(repo, "update_match_score", fake_update)
    res = client.post("/admin/matches/00000000-0000-0000-0000-000000000000/score", json={"field": "match_1_score", "value": 10}, headers=ADMIN)
    assert res.status_code == 404


def test_results_visibility_toggle(client, monkeypatch):
    seen = {}

    def fake_set(visible, actor=None):
        seen["visible"] = visible
        return {"success": True, "results_visible": visible}

    monkeypatch.setattr(repo, "set_results_visibility", fake_set)
    res = client.post("/admin/settings/results-visible", json={"visible": True}, headers=ADMIN)
    assert res.status_code == 200
    assert res.json() == {"success": True, "results_visible": True}
    assert seen["visible"] is True

    bad = client.post("/admin/settings/results-visible", json={"visible": "yes"}, headers=ADMIN)
    assert bad.status_code == 400


def test_admin_listings(client, monkeypatch):
    monkeypatch.setattr(repo, "list_matches_admin", lambda: [{"id": "m1", "participant_id": "p1"}])
    monkeypatch.setattr(repo, "list_settings", lambda: [{"key": "results_visible", "value": False}])
    monkeypatch.setattr(repo, "get_results_visible", lambda: False)

    matches = client.get("/admin/matches", headers=ADMIN).json()
    assert matches["count"] == 1
    settings = client.get("/admin/settings", headers=ADMIN).json()
    assert settings["results_visible"] is False
    assert settings["settings"][0]["key"] == "results_visible"


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


@pytest.mark.parametrize("match_id", ["abc", "123", "6f1c2a7e-3b4d-4e5f-8a9b"])
def test_score_override_rejects_malformed_match_id(client, monkeypatch, match_id):
    called = []
    monkeypatch.setattr(repo, "update_match_score", lambda *args, **kwargs: called.append(args))
    res = client.post(f"/admin/matches/{match_id}/score", json={"field": "match_1_score", "value": 50}, headers=ADMIN)
    assert res.status_code == 400
    assert res.json()["detail"]["reason"] == "invalid_match_id"
    assert called == []


@pytest.mark.parametrize("force", ["true", 1, "1"])
def test_run_matching_force_must_be_a_real_boolean(client, monkeypatch, force):
    called = []
    monkeypatch.setattr(m, "repo_run_matching", lambda **kwargs: called.append(kwargs))
    res = client.post("/admin/matches/run", json={"force": force}, headers=ADMIN)
    assert res.status_code == 422
    assert called == []


class _BrokenSession:
    def __enter__(self):
        raise SQLAlchemyError("store unavailable")

    def __exit__(self, exc_type, exc, tb):
        return False


@pytest.mark.parametrize("path", ["/admin/calibration", "/admin/audit"])
def test_admin_reads_map_store_failures_to_structured_errors(client, monkeypatch, path):
    monkeypatch.setattr(admin_routes, "SessionLocal", lambda: _BrokenSession())
    res = client.get(path, headers=ADMIN)
    assert res.status_code == 500
    detail = res.json()["detail"]
    assert detail["reason"] == "persistence_failure"
    assert detail["trace_id"]
