"""Data service fixtures: one throwaway SQLite database per run, emptied between tests."""
import pytest
from fastapi.testclient import TestClient

from lessonplanner.core import config
from lessonplanner.persistence.db import get_connection, init_db


@pytest.fixture(scope="session", autouse=True)
def database(tmp_path_factory):
    path = str(tmp_path_factory.mktemp("data") / "planner.db")
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(config, "DATABASE_PATH", path)
        init_db()
        yield path


@pytest.fixture(autouse=True)
def empty_tables(database):
    yield
    conn = get_connection()
    for table in ("activities", "lesson_plans", "units", "class_documents"):
        conn.execute(f"DELETE FROM {table}")
    conn.commit()
    conn.close()


@pytest.fixture(scope="session")
def client(database):
    from lessonplanner.main import app
    return TestClient(app)


@pytest.fixture(scope="session")
def auth_headers(client):
    login = client.post("/auth/login", json={"username": config.ADMIN_USERNAME, "password": config.ADMIN_PASSWORD})
    token = login.json()["token"]
    return {"Authorization": f"Bearer {token}"}
