"""The sync engine talking to the real data service through TestClient."""
from datetime import date

import pytest

from lessonplanner.core.errors import NetworkError
from lessonplanner.domain.planning.models import Activity
from lessonplanner.sync.local_cache import DataGroup, LocalCacheStore
from lessonplanner.sync.manager import DataSyncManager
from lessonplanner.sync.remote_client import RemoteDataClient
from lessonplanner.sync.session import SessionContext
from lessonplanner.sync.status import ConnectionState
from lessonplanner.sync.storage import InMemoryStorage


@pytest.fixture
def remote(client):
    remote = RemoteDataClient(base_url="", token="", session=client)
    remote.login("admin", "admin")
    return remote


def test_unauthenticated_write_is_a_network_error(client):
    remote = RemoteDataClient(base_url="", token="", session=client)
    with pytest.raises(NetworkError) as excinfo:
        remote.save_activities([{"name": "Hello Song"}])
    assert excinfo.value.status_code == 401


def test_manager_round_trip_through_server(remote):
    storage = InMemoryStorage()
    manager = DataSyncManager(SessionContext("LKG", storage), remote)
    assert manager.check_status() is ConnectionState.ONLINE

    manager.save_activity(Activity(name="Hello Song", category="Welcome", time=5))
    plan = manager.create_lesson_plan(date(2025, 1, 8), [Activity(name="Hello Song", time=5)])
    unit = manager.create_unit("Animals", lesson_numbers=["1"])
    manager.set_eyfs_statements("1", ["Communication: Listens attentively"])

    assert [a["name"] for a in remote.get_activities()] == ["Hello Song"]
    assert remote.get_lesson_plans()[0]["id"] == plan.id
    assert remote.get_units("LKG")[0]["id"] == unit.id
    assert manager.get_eyfs_groups("1") == {"Communication": ["Listens attentively"]}


def test_migrate_local_session_to_server(remote):
    storage = InMemoryStorage()
    offline = RemoteDataClient(base_url="http://127.0.0.1:9", timeout=0.5)
    first = DataSyncManager(SessionContext("UKG", storage), offline)
    assert first.check_status() is ConnectionState.OFFLINE
    first.save_activity(Activity(name="Bear Hunt", time=10))
    first.create_unit("Weather", lesson_numbers=["1", "2"])
    first.close()

    second = DataSyncManager(SessionContext("UKG", storage), remote)
    second.check_status()
    result = second.migrate_to_server()

    assert result.succeeded
    exported = remote.export_all()
    assert [a["name"] for a in exported["activities"]] == ["Bear Hunt"]
    assert exported["units"]["UKG"][0]["name"] == "Weather"
    assert LocalCacheStore(storage).pending() == []
    assert second.read(DataGroup.UNITS)[0]["name"] == "Weather"


def test_build_sync_manager_checks_status(remote):
    from lessonplanner.container import build_sync_manager

    manager = build_sync_manager("Reception", storage=InMemoryStorage(), remote=remote)
    assert manager.class_name == "Reception"
    assert manager.state is ConnectionState.ONLINE
