import json

from perfect_date.services.events import list_admin_events, log_admin_event


class FakeDB:
    def __init__(self, rows=None):
        self.calls = []
        self.rows = rows or []

    def execute(self, stmt, params=None):
        self.calls.append((str(stmt), params))
        rows = self.rows

        class R:
            def mappings(self_inner):
                return self_inner

            def all(self_inner):
                return rows

        return R()


def test_log_admin_event_inserts_expected_payload_shape():
    db = FakeDB()
    log_admin_event(db, action="score_override", actor="ops-1", payload={"match_id": "m1", "value": 70.0})
    assert len(db.calls) == 1
    sql, params = db.calls[0]
    assert "INSERT INTO admin_audit_event" in sql
    assert params["action"] == "score_override"
    assert params["actor"] == "ops-1"
    assert json.loads(params["payload"]) == {"match_id": "m1", "value": 70.0}


def test_log_admin_event_defaults_to_empty_payload():
    db = FakeDB()
    log_admin_event(db, action="results_visibility")
    _, params = db.calls[0]
    assert params["actor"] is None
    assert params["payload"] == "{}"


def test_list_admin_events_clamps_limit():
    db = FakeDB(rows=[{"id": "e1", "action": "force_rerun_matching"}])
    rows = list_admin_events(db, limit=10_000)
    assert rows == [{"id": "e1", "action": "force_rerun_matching"}]
    assert db.calls[0][1]["limit"] == 500
