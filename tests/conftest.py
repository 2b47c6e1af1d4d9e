"""Shared fixtures for the sync engine: an in-memory data service and a manual clock."""
import copy

import pytest

from lessonplanner.core.errors import NetworkError
from lessonplanner.sync.local_cache import LocalCacheStore
from lessonplanner.sync.manager import DataSyncManager
from lessonplanner.sync.session import SessionContext
from lessonplanner.sync.storage import InMemoryStorage

CLASSES = ("LKG", "UKG", "Reception")


class FakeRemote:
    """Stands in for RemoteDataClient. Flip `reachable` to simulate the server going away."""

    def __init__(self, dataset=None):
        self.reachable = True
        self.dataset = dataset or {"activities": [], "lessons": {}, "lessonPlans": [], "eyfs": {}, "units": {}}
        self.calls = []
        self.imported = []

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if not self.reachable:
            raise NetworkError(f"{name} failed: connection refused")

    def export_all(self):
        self._call("export_all")
        return copy.deepcopy(self.dataset)

    def import_all(self, dataset):
        self._call("import_all")
        self.imported.append(copy.deepcopy(dataset))
        for group, value in dataset.items():
            self.dataset[group] = copy.deepcopy(value)
        return {"imported": {group: len(value) for group, value in dataset.items()}}

    def get_activities(self):
        self._call("get_activities")
        return copy.deepcopy(self.dataset["activities"])

    def save_activities(self, activities):
        self._call("save_activities")
        self.dataset["activities"] = copy.deepcopy(activities)

    def get_lesson_plans(self):
        self._call("get_lesson_plans")
        return copy.deepcopy(self.dataset["lessonPlans"])

    def save_lesson_plans(self, plans):
        self._call("save_lesson_plans")
        self.dataset["lessonPlans"] = copy.deepcopy(plans)

    def _get_class(self, group, class_name, empty):
        self._call(f"get_{group}", class_name)
        return copy.deepcopy(self.dataset[group].get(class_name, empty))

    def _save_class(self, group, class_name, value):
        self._call(f"save_{group}", class_name)
        self.dataset[group][class_name] = copy.deepcopy(value)

    def get_lessons(self, class_name):
        return self._get_class("lessons", class_name, {"lessonNumbers": [], "allLessonsData": {}, "teachingUnits": []})

    def save_lessons(self, class_name, lesson_data):
        self._save_class("lessons", class_name, lesson_data)

    def get_eyfs(self, class_name):
        return self._get_class("eyfs", class_name, {})

    def save_eyfs(self, class_name, standards):
        self._save_class("eyfs", class_name, standards)

    def get_units(self, class_name):
        return self._get_class("units", class_name, [])

    def save_units(self, class_name, units):
        self._save_class("units", class_name, units)


class ManualClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def cache(storage):
    return LocalCacheStore(storage, CLASSES)


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def make_manager(storage, remote, clock):
    """Build a manager for a class and run the initial status check, as app start-up does."""
    def _make(class_name="LKG", check=True, **kwargs):
        context = SessionContext(class_name, storage, CLASSES)
        manager = DataSyncManager(context, kwargs.pop("remote", remote), clock=clock, **kwargs)
        if check:
            manager.check_status()
        return manager
    return _make


@pytest.fixture
def manager(make_manager):
    return make_manager()
