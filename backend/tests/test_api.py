"""API tests using FastAPI TestClient."""
import sqlite3
import uuid
from datetime import datetime, timezone

import bcrypt
import pytest

from lessonplanner.persistence.db import get_connection
from lessonplanner.persistence.repositories.sqlite import sqlite_dataset_repository

PLAN = {
    "id": "plan-1",
    "date": "2025-01-08",
    "week": 99,
    "className": "LKG",
    "activities": [{"name": "Hello Song", "time": 5}, {"name": "Bear Hunt", "time": 10}],
    "notes": "",
    "status": "planned",
}


# ------------------------------------------------------------------
# Health + auth
# ------------------------------------------------------------------
def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_login_success(client):
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin"})
    assert resp.status_code == 200
    data = resp.json()
    assert "token" in data
    assert data["user"]["role"] == "admin"


def test_login_bad_password(client):
    resp = client.post("/auth/login", json={"username": "admin", "password": "wrongpassword"})
    assert resp.status_code == 401


def test_get_profile(client, auth_headers):
    resp = client.get("/auth/profile", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["username"] == "admin"


def test_writes_require_token(client):
    resp = client.put("/api/activities", json=[{"name": "Hello Song"}])
    assert resp.status_code == 401


def test_import_requires_admin(client):
    conn = get_connection()
    conn.execute(
        "INSERT OR IGNORE INTO users (id, username, password_hash, role, created_at) VALUES (?, ?, ?, ?, ?)",
        (
            str(uuid.uuid4()),
            "teacher",
            bcrypt.hashpw(b"teacher", bcrypt.gensalt()).decode("utf-8"),
            "teacher",
            datetime.now(timezone.utc).isoformat(),
        ),
    )
    conn.commit()
    conn.close()
    token = client.post("/auth/login", json={"username": "teacher", "password": "teacher"}).json()["token"]

    resp = client.post("/api/import", json={"activities": []}, headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


# ------------------------------------------------------------------
# Activities
# ------------------------------------------------------------------
def test_activity_library_crud(client, auth_headers):
    resp = client.put(
        "/api/activities",
        json=[{"name": "Hello Song", "time": 5}, {"name": "Bear Hunt", "time": 10}],
        headers=auth_headers,
    )
    assert resp.status_code == 200

    resp = client.post("/api/activities", json={"name": "Shake It", "time": 3}, headers=auth_headers)
    assert resp.status_code == 200
    assert [a["name"] for a in client.get("/api/activities").json()] == ["Hello Song", "Bear Hunt", "Shake It"]

    assert client.delete("/api/activities/Bear Hunt", headers=auth_headers).status_code == 204
    assert client.delete("/api/activities/Bear Hunt", headers=auth_headers).status_code == 404
    assert [a["name"] for a in client.get("/api/activities").json()] == ["Hello Song", "Shake It"]


@pytest.mark.parametrize("body", [
    [{"name": ""}],
    [{"name": "Hello Song", "time": -1}],
    [{"name": "Hello Song"}, {"name": "Hello Song"}],
    [{"name": "Hello Song", "time": "five"}],
])
def test_invalid_activities_rejected(client, auth_headers, body):
    resp = client.put("/api/activities", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert client.get("/api/activities").json() == []


# ------------------------------------------------------------------
# Lesson data + EYFS
# ------------------------------------------------------------------
def test_lessons_default_to_empty(client):
    resp = client.get("/api/lessons/LKG")
    assert resp.status_code == 200
    assert resp.json() == {"lessonNumbers": [], "allLessonsData": {}, "teachingUnits": []}


def test_lessons_round_trip(client, auth_headers):
    body = {
        "lessonNumbers": ["1"],
        "allLessonsData": {"1": {
            "title": "Welcome",
            "grouped": {"Welcome": [{"name": "Hello Song", "time": 5}]},
            "categoryOrder": ["Welcome"],
            "totalTime": 5,
            "eyfsStatements": [],
        }},
        "teachingUnits": [],
    }
    assert client.put("/api/lessons/LKG", json=body, headers=auth_headers).status_code == 200

    stored = client.get("/api/lessons/LKG").json()
    assert stored["lessonNumbers"] == ["1"]
    assert stored["allLessonsData"]["1"]["lessonNumber"] == "1"
    assert stored["allLessonsData"]["1"]["grouped"]["Welcome"][0]["name"] == "Hello Song"
    assert client.get("/api/lessons/UKG").json()["lessonNumbers"] == []


def test_unknown_class_rejected(client, auth_headers):
    assert client.get("/api/lessons/Year 9").status_code == 400
    assert client.put("/api/eyfs/Year 9", json={}, headers=auth_headers).status_code == 400


def test_eyfs_round_trip(client, auth_headers):
    body = {"1": ["Communication: Listens attentively", "Free play is important"]}
    assert client.put("/api/eyfs/UKG", json=body, headers=auth_headers).status_code == 200
    assert client.get("/api/eyfs/UKG").json() == body
    assert client.get("/api/eyfs/LKG").json() == {}


def test_eyfs_requires_string_lists(client, auth_headers):
    resp = client.put("/api/eyfs/UKG", json={"1": "not a list"}, headers=auth_headers)
    assert resp.status_code == 400


# ------------------------------------------------------------------
# Lesson plans
# ------------------------------------------------------------------
def test_lesson_plan_week_and_duration_are_derived(client, auth_headers):
    resp = client.post("/api/lesson-plans", json=PLAN, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["week"] == 2
    assert resp.json()["duration"] == 15


def test_lesson_plans_filter_by_class(client, auth_headers):
    plans = [PLAN, dict(PLAN, id="plan-2", className="UKG", date="2025-01-01")]
    assert client.put("/api/lesson-plans", json=plans, headers=auth_headers).status_code == 200

    assert [p["id"] for p in client.get("/api/lesson-plans").json()] == ["plan-1", "plan-2"]
    assert [p["id"] for p in client.get("/api/lesson-plans", params={"class_name": "UKG"}).json()] == ["plan-2"]

    assert client.delete("/api/lesson-plans/plan-1", headers=auth_headers).status_code == 204
    assert client.delete("/api/lesson-plans/plan-1", headers=auth_headers).status_code == 404


@pytest.mark.parametrize("change", [
    {"status": "someday"},
    {"date": "not-a-date"},
    {"id": ""},
    {"className": ""},
])
def test_invalid_lesson_plan_rejected(client, auth_headers, change):
    resp = client.post("/api/lesson-plans", json=dict(PLAN, **change), headers=auth_headers)
    assert resp.status_code == 400


# ------------------------------------------------------------------
# Units
# ------------------------------------------------------------------
def test_units_crud(client, auth_headers):
    units = [{"id": "u1", "name": "Animals", "lessonNumbers": ["1", "2"]}, {"id": "u2", "name": "Weather"}]
    assert client.put("/api/units/Reception", json=units, headers=auth_headers).status_code == 200

    stored = client.get("/api/units/Reception").json()
    assert [u["name"] for u in stored] == ["Animals", "Weather"]
    assert stored[0]["color"] == "#6366F1"
    assert client.get("/api/units/LKG").json() == []

    assert client.delete("/api/units/Reception/u1", headers=auth_headers).status_code == 204
    assert client.delete("/api/units/LKG/u2", headers=auth_headers).status_code == 404


# ------------------------------------------------------------------
# Export / import
# ------------------------------------------------------------------
def test_import_then_export(client, auth_headers):
    dataset = {
        "activities": [{"name": "Hello Song", "time": 5}],
        "lessonPlans": [PLAN],
        "eyfs": {"LKG": {"1": ["Communication: Listens attentively"]}},
        "units": {"UKG": [{"id": "u1", "name": "Animals"}]},
    }
    resp = client.post("/api/import", json=dataset, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["imported"] == {"activities": 1, "lessonPlans": 1, "eyfs": 1, "units": 1}

    exported = client.get("/api/export").json()
    assert [a["name"] for a in exported["activities"]] == ["Hello Song"]
    assert exported["lessonPlans"][0]["week"] == 2
    assert exported["eyfs"] == {"LKG": {"1": ["Communication: Listens attentively"]}}
    assert exported["units"]["UKG"][0]["name"] == "Animals"
    assert exported["lessons"] == {}


def test_import_leaves_absent_groups_alone(client, auth_headers):
    client.put("/api/activities", json=[{"name": "Hello Song"}], headers=auth_headers)
    client.post("/api/import", json={"units": {"LKG": []}}, headers=auth_headers)
    assert [a["name"] for a in client.get("/api/activities").json()] == ["Hello Song"]


def test_invalid_import_writes_nothing(client, auth_headers):
    dataset = {
        "activities": [{"name": "Hello Song"}],
        "units": {"Year 9": [{"id": "u1", "name": "Animals"}]},
    }
    resp = client.post("/api/import", json=dataset, headers=auth_headers)
    assert resp.status_code == 400
    assert client.get("/api/activities").json() == []


def test_import_failing_midway_leaves_existing_data(client, auth_headers, monkeypatch):
    client.put("/api/activities", json=[{"name": "Hello Song"}], headers=auth_headers)
    client.put("/api/units/LKG", json=[{"id": "u0", "name": "Colours"}], headers=auth_headers)

    def fail(conn, class_name, units):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(sqlite_dataset_repository, "_write_units", fail)
    dataset = {
        "activities": [{"name": "Goodbye Song"}],
        "eyfs": {"LKG": {"1": ["Communication: Listens attentively"]}},
        "units": {"LKG": [{"id": "u1", "name": "Animals"}]},
    }
    with pytest.raises(sqlite3.OperationalError):
        client.post("/api/import", json=dataset, headers=auth_headers)
    monkeypatch.undo()

    assert [a["name"] for a in client.get("/api/activities").json()] == ["Hello Song"]
    assert client.get("/api/eyfs/LKG").json() == {}
    assert [u["name"] for u in client.get("/api/units/LKG").json()] == ["Colours"]
