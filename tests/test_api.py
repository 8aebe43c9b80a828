from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


def _reset_runtime_caches():
    from core.config import get_settings
    from core.db import reset_engine

    get_settings.cache_clear()
    reset_engine()


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("APP_ENV", "test")
    _reset_runtime_caches()

    from api.main import create_app
    from core.db import Base, get_engine

    Base.metadata.create_all(get_engine())
    with TestClient(create_app()) as c:
        yield c
    _reset_runtime_caches()


def _workout(client, coach_id=9, **overrides):
    body = {"description": "Back squat 5x5", "name": "Squat"}
    body.update(overrides)
    resp = client.post(f"/api/v1/coaches/{coach_id}/workouts", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _program_with_athletes(client, workout_id, athletes=(1, 2)):
    program = client.post(
        "/api/v1/programs",
        json={"coach_id": 9, "name": "March Block", "start_date": "2026-03-01", "end_date": "2026-03-31"},
    ).json()
    resp = client.post(f"/api/v1/programs/{program['id']}/workouts", json={"workout_id": workout_id, "date": "2026-03-03"})
    assert resp.status_code == 201, resp.text
    resp = client.post(f"/api/v1/programs/{program['id']}/assignments", json={"athlete_ids": list(athletes)})
    assert resp.status_code == 201, resp.text
    return program


def _schedule_dates(client, athlete_id, start="2026-03-01", end="2026-03-31"):
    resp = client.get(f"/api/v1/athletes/{athlete_id}/schedule", params={"start": start, "end": end})
    assert resp.status_code == 200, resp.text
    return [(e["date"], e["provenance"]) for day in resp.json()["days"] for e in day["entries"]]


def test_health_endpoint(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] in {"OK", "WARN"}


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert client.get("/api/v1/health").headers["X-Request-ID"]


def test_assign_and_read_schedule(client):
    workout = _workout(client)

    resp = client.post("/api/v1/athletes/1/assignments", json={"workout_id": workout["id"], "date": "2026-03-10"})
    assert resp.status_code == 201
    assert resp.json()["workout_id"] == workout["id"]

    resp = client.get("/api/v1/athletes/1/schedule", params={"start": "2026-03-09", "end": "2026-03-15"})
    body = resp.json()
    assert len(body["days"]) == 7
    entries = [e for day in body["days"] for e in day["entries"]]
    assert len(entries) == 1
    assert entries[0]["provenance"] == "direct"
    assert entries[0]["display_name"] == "Squat"
    assert entries[0]["color"] == "#6366f1"
    assert entries[0]["activity"] is None


def test_duplicate_assignment_returns_409(client):
    workout = _workout(client)
    body = {"workout_id": workout["id"], "date": "2026-03-10"}
    assert client.post("/api/v1/athletes/1/assignments", json=body).status_code == 201

    resp = client.post("/api/v1/athletes/1/assignments", json=body)

    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "DUPLICATE_ASSIGNMENT"
    assert _schedule_dates(client, 1) == [("2026-03-10", "direct")]


def test_assign_unknown_workout_returns_404(client):
    resp = client.post("/api/v1/athletes/1/assignments", json={"workout_id": 999, "date": "2026-03-10"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "WORKOUT_NOT_FOUND"


def test_program_move_changes_every_athletes_calendar(client):
    workout = _workout(client)
    program = _program_with_athletes(client, workout["id"])

    resp = client.post(
        "/api/v1/athletes/1/schedule/move",
        json={
            "workout_id": workout["id"],
            "provenance": "program",
            "program_id": program["id"],
            "from_date": "2026-03-03",
            "to_date": "2026-03-05",
        },
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["program_wide"] is True
    assert resp.json()["affected_athletes"] == [1, 2]
    assert _schedule_dates(client, 1) == [("2026-03-05", "program")]
    assert _schedule_dates(client, 2) == [("2026-03-05", "program")]


def test_program_move_outside_window_returns_422(client):
    workout = _workout(client)
    program = _program_with_athletes(client, workout["id"])

    resp = client.post(
        "/api/v1/athletes/1/schedule/move",
        json={
            "workout_id": workout["id"],
            "provenance": "program",
            "program_id": program["id"],
            "from_date": "2026-03-03",
            "to_date": "2026-04-03",
        },
    )

    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "INVALID_TARGET_DATE"


def test_direct_delete_leaves_activity_and_reports_it(client):
    workout = _workout(client)
    client.post("/api/v1/athletes/1/assignments", json={"workout_id": workout["id"], "date": "2026-03-10"})
    resp = client.put(
        "/api/v1/athletes/1/activity",
        json={"workout_id": workout["id"], "scheduled_on": "2026-03-10", "is_completed": True, "notes": "PR"},
    )
    assert resp.status_code == 200
    assert resp.json()["completed_at"] is not None

    resp = client.post(
        "/api/v1/athletes/1/schedule/delete",
        json={"workout_id": workout["id"], "provenance": "direct", "date": "2026-03-10"},
    )

    assert resp.status_code == 200
    assert resp.json()["orphaned_activity"]["notes"] == "PR"
    assert _schedule_dates(client, 1) == []
    activity = client.get("/api/v1/athletes/1/activity", params={"workout_id": workout["id"], "date": "2026-03-10"})
    assert activity.json()["is_completed"] is True


def test_stale_delete_returns_404(client):
    workout = _workout(client)
    resp = client.post(
        "/api/v1/athletes/1/schedule/delete",
        json={"workout_id": workout["id"], "provenance": "direct", "date": "2026-03-10"},
    )
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "ASSIGNMENT_NOT_FOUND"


def test_schedule_overlays_activity(client):
    workout = _workout(client)
    _program_with_athletes(client, workout["id"])
    client.put("/api/v1/athletes/2/activity", json={"workout_id": workout["id"], "scheduled_on": "2026-03-03", "is_completed": True})

    resp = client.get("/api/v1/athletes/2/schedule", params={"start": "2026-03-03", "end": "2026-03-03"})
    entry = resp.json()["days"][0]["entries"][0]
    assert entry["activity"]["is_completed"] is True
    assert entry["program_name"] == "March Block"
    assert entry["color"] == "#3b82f6"

    other = client.get("/api/v1/athletes/1/schedule", params={"start": "2026-03-03", "end": "2026-03-03"})
    assert other.json()["days"][0]["entries"][0]["activity"] is None


def test_month_view_returns_42_days(client):
    resp = client.get("/api/v1/athletes/1/schedule", params={"view": "month", "anchor": "2026-03-17"})
    body = resp.json()
    assert body["start"] == "2026-02-23"
    assert len(body["days"]) == 42


def test_schedule_validation_errors(client):
    resp = client.get("/api/v1/athletes/1/schedule", params={"start": "2026-03-10", "end": "2026-03-01"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    resp = client.get("/api/v1/athletes/1/schedule", params={"view": "year"})
    assert resp.status_code == 422


def test_move_program_entry_requires_program_id(client):
    resp = client.post(
        "/api/v1/athletes/1/schedule/move",
        json={"workout_id": 1, "provenance": "program", "from_date": "2026-03-03", "to_date": "2026-03-05"},
    )
    assert resp.status_code == 422


def test_library_search_and_inline_assign(client):
    _workout(client, name="Fran", description="21-15-9 thrusters")
    _workout(client, name="Squat", description="Back squat 5x5")

    resp = client.get("/api/v1/coaches/9/workouts", params={"q": "thruster"})
    assert [w["name"] for w in resp.json()] == ["Fran"]

    resp = client.post(
        "/api/v1/athletes/3/assignments/inline",
        json={"coach_id": 9, "description": "Cindy AMRAP 20", "date": "2026-03-12", "color": "#ef4444"},
    )
    assert resp.status_code == 201
    entries = client.get("/api/v1/athletes/3/schedule", params={"start": "2026-03-12", "end": "2026-03-12"}).json()
    assert entries["days"][0]["entries"][0]["color"] == "#ef4444"


def test_unassign_program_removes_entries(client):
    workout = _workout(client)
    program = _program_with_athletes(client, workout["id"])

    assert client.get(f"/api/v1/programs/{program['id']}/athletes").json() == [1, 2]
    assert client.delete(f"/api/v1/programs/{program['id']}/assignments/2").status_code == 204
    assert _schedule_dates(client, 2) == []
    assert client.delete(f"/api/v1/programs/{program['id']}/assignments/2").status_code == 404


def test_deleting_a_program_entry_twice_succeeds(client):
    workout = _workout(client)
    program = _program_with_athletes(client, workout["id"])
    body = {"workout_id": workout["id"], "provenance": "program", "program_id": program["id"], "date": "2026-03-03"}

    first = client.post("/api/v1/athletes/1/schedule/delete", json=body)
    second = client.post("/api/v1/athletes/1/schedule/delete", json=body)

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["affected_athletes"] == [1, 2]
    assert _schedule_dates(client, 2) == []


def test_edit_workout_template(client):
    workout = _workout(client)
    client.post("/api/v1/athletes/1/assignments", json={"workout_id": workout["id"], "date": "2026-03-10"})

    resp = client.put(
        f"/api/v1/coaches/9/workouts/{workout['id']}",
        json={"description": "Front squat 5x3", "name": "Front Squat", "color": "#ef4444"},
    )

    assert resp.status_code == 200, resp.text
    assert resp.json()["name"] == "Front Squat"
    entry = client.get("/api/v1/athletes/1/schedule", params={"start": "2026-03-10", "end": "2026-03-10"}).json()
    assert entry["days"][0]["entries"][0]["display_name"] == "Front Squat"
    assert entry["days"][0]["entries"][0]["color"] == "#ef4444"
    assert client.put(f"/api/v1/coaches/8/workouts/{workout['id']}", json={"description": "x"}).status_code == 404


def test_delete_workout_template(client):
    unused = _workout(client, name="Unused")
    scheduled = _workout(client, name="Scheduled")
    client.post("/api/v1/athletes/1/assignments", json={"workout_id": scheduled["id"], "date": "2026-03-10"})

    assert client.delete(f"/api/v1/coaches/9/workouts/{unused['id']}").status_code == 204
    assert client.delete(f"/api/v1/coaches/9/workouts/{unused['id']}").status_code == 404

    resp = client.delete(f"/api/v1/coaches/9/workouts/{scheduled['id']}")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "WORKOUT_IN_USE"
    assert [w["name"] for w in client.get("/api/v1/coaches/9/workouts").json()] == ["Scheduled"]
