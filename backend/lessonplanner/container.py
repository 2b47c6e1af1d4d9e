"""Dependency injection container: wires implementations to interfaces."""
from __future__ import annotations
from functools import lru_cache
from typing import Optional

from lessonplanner.application.planner_app_service import PlannerAppService
from lessonplanner.core.config import API_BASE_URL, API_TOKEN, DEFAULT_CLASS, LOCAL_CACHE_PATH
from lessonplanner.persistence.repositories.sqlite.sqlite_dataset_repository import SqliteDatasetRepository
from lessonplanner.sync.manager import DataSyncManager
from lessonplanner.sync.remote_client import RemoteDataClient
from lessonplanner.sync.session import SessionContext
from lessonplanner.sync.storage import SqliteStorage, StoragePort


@lru_cache(maxsize=1)
def get_dataset_repo() -> SqliteDatasetRepository:
    return SqliteDatasetRepository()


@lru_cache(maxsize=1)
def get_planner_app_service() -> PlannerAppService:
    return PlannerAppService(repo=get_dataset_repo())


def build_sync_manager(
    class_name: str = DEFAULT_CLASS,
    storage: Optional[StoragePort] = None,
    remote: Optional[RemoteDataClient] = None,
    check: bool = True,
) -> DataSyncManager:
    """One manager per signed-in session; never shared between sessions."""
    context = SessionContext(class_name, storage or SqliteStorage(LOCAL_CACHE_PATH))
    manager = DataSyncManager(context, remote or RemoteDataClient(API_BASE_URL, API_TOKEN))
    if check:
        manager.check_status()
    return manager
