"""Data synchronization manager: the single data-access surface the UI talks to.

Reads and writes go to the remote data service while it is reachable and to
the local cache otherwise. Every write lands in the local cache as well, and a
write the server did not accept is recorded as pending so no edit is lost.
A remote failure during a read or write never reaches the caller: the manager
drops to `offline` and answers from the cache.
"""
from __future__ import annotations
import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, TypeVar

from lessonplanner.core.config import STATUS_RESET_SECONDS
from lessonplanner.core.errors import (
    NetworkError,
    ParseError,
    PlannerError,
    SessionClosedError,
    ValidationError,
)
from lessonplanner.domain.planning.models import Activity, LessonData, LessonPlan, Unit
from lessonplanner.domain.planning.rules import group_eyfs_statements, validate_activity
from lessonplanner.domain.planning.service import PlannerDomainService
from lessonplanner.sync.local_cache import DataGroup, LocalCacheStore
from lessonplanner.sync.merge import merge_snapshots
from lessonplanner.sync.remote_client import RemoteDataClient
from lessonplanner.sync.session import SessionContext
from lessonplanner.sync.status import (
    ConnectionState,
    ConnectionStateMachine,
    OperationStatusTracker,
    StatusSnapshot,
)
from lessonplanner.sync.uploads import SpreadsheetParser, Source

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode_records(items: Optional[List[Any]], decode: Callable[[Any], T], kind: str) -> List[T]:
    """Decode stored records, skipping any that no longer fit the model."""
    records = []
    for item in items or []:
        try:
            records.append(decode(item))
        except ParseError as e:
            logger.warning("Skipping unreadable %s record: %s", kind, e)
    return records


class DataSyncManager:

    def __init__(
        self,
        context: SessionContext,
        remote: RemoteDataClient,
        cache: Optional[LocalCacheStore] = None,
        parser: Optional[SpreadsheetParser] = None,
        clock: Callable[[], float] = time.monotonic,
        reset_after: float = STATUS_RESET_SECONDS,
    ):
        self._context = context
        self._remote = remote
        self._cache = cache or LocalCacheStore(context.storage, context.class_names)
        self._parser = parser or SpreadsheetParser()
        self._domain = PlannerDomainService()
        self.connection = ConnectionStateMachine()

        def generation() -> int:
            return self._context.generation

        self.upload_status = OperationStatusTracker("upload", reset_after, clock, generation)
        self.refresh_status = OperationStatusTracker("refresh", reset_after, clock, generation)
        self.migrate_status = OperationStatusTracker("migrate", reset_after, clock, generation)

    # ------------------------------------------------------------------
    # Connection state
    # ------------------------------------------------------------------
    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    @property
    def is_online(self) -> bool:
        return self.connection.state is ConnectionState.ONLINE

    @property
    def primary_source(self) -> str:
        return "server" if self.is_online else "local"

    @property
    def class_name(self) -> str:
        return self._context.class_name

    def check_status(self) -> ConnectionState:
        """Probe the server with export_all. Never touches cached data."""
        self._ensure_open()
        self.connection.transition_to(ConnectionState.CHECKING)
        try:
            self._remote.export_all()
        except NetworkError as e:
            logger.warning("Server status check failed: %s", e)
            return self.connection.transition_to(ConnectionState.OFFLINE)
        return self.connection.transition_to(ConnectionState.ONLINE)

    def _mark_offline(self, error: NetworkError) -> None:
        logger.warning("Remote data service unavailable, using local data: %s", error)
        if self.connection.state is not ConnectionState.OFFLINE:
            self.connection.transition_to(ConnectionState.OFFLINE)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def switch_class(self, class_name: str) -> None:
        self._ensure_open()
        self._context.switch_class(class_name)

    def close(self) -> None:
        self._context.close()

    def _ensure_open(self) -> None:
        if self._context.closed:
            raise SessionClosedError("This planner session has been closed.")

    # ------------------------------------------------------------------
    # Remote dispatch
    # ------------------------------------------------------------------
    def _fetch_remote(self, group: DataGroup, class_name: str) -> Any:
        if group is DataGroup.ACTIVITIES:
            return self._remote.get_activities()
        if group is DataGroup.LESSONS:
            return self._remote.get_lessons(class_name)
        if group is DataGroup.LESSON_PLANS:
            return self._remote.get_lesson_plans()
        if group is DataGroup.EYFS:
            return self._remote.get_eyfs(class_name)
        return self._remote.get_units(class_name)

    def _push_remote(self, group: DataGroup, class_name: Optional[str], value: Any) -> None:
        if group is DataGroup.ACTIVITIES:
            self._remote.save_activities(value)
        elif group is DataGroup.LESSONS:
            self._remote.save_lessons(class_name, value)
        elif group is DataGroup.LESSON_PLANS:
            self._remote.save_lesson_plans(value)
        elif group is DataGroup.EYFS:
            self._remote.save_eyfs(class_name, value)
        else:
            self._remote.save_units(class_name, value)

    # ------------------------------------------------------------------
    # Read / write policy
    # ------------------------------------------------------------------
    def read(self, group: DataGroup) -> Optional[Any]:
        """Current value of a group for the active class, or None if nothing is stored."""
        self._ensure_open()
        class_name = self._context.class_name if group.per_class else None
        generation = self._context.generation

        # Unsynced local edits are newer than anything the server holds.
        if self.is_online and not self._cache.is_pending(group, class_name):
            try:
                value = self._fetch_remote(group, self._context.class_name)
            except NetworkError as e:
                self._mark_offline(e)
            else:
                if value is not None and not group.accepts(value):
                    logger.warning(
                        "Ignoring %s from server: expected %s, got %s",
                        group.value, group.container.__name__, type(value).__name__,
                    )
                elif value is not None:
                    if generation == self._context.generation:
                        self._cache.write_group(group, value, class_name)
                    return value
        return self._cache.read_group(group, class_name)

    def write(self, group: DataGroup, value: Any) -> bool:
        """Store a group for the active class. Returns True if the server accepted it."""
        self._ensure_open()
        class_name = self._context.class_name if group.per_class else None
        synced = False
        if self.is_online:
            try:
                self._push_remote(group, class_name, value)
                synced = True
            except NetworkError as e:
                self._mark_offline(e)

        self._cache.write_group(group, value, class_name)
        if synced:
            self._cache.clear_pending(group, class_name)
        else:
            self._cache.mark_pending(group, class_name)
        return synced

    def flush_pending(self) -> int:
        """Push locally pending groups to the server. Returns how many were accepted."""
        self._ensure_open()
        pushed = 0
        if not self.is_online:
            return pushed
        for group, class_name in self._cache.pending():
            value = self._cache.read_group(group, class_name)
            if value is None:
                self._cache.clear_pending(group, class_name)
                continue
            try:
                self._push_remote(group, class_name, value)
            except NetworkError as e:
                self._mark_offline(e)
                break
            self._cache.clear_pending(group, class_name)
            pushed += 1
        if pushed:
            logger.info("Synced %d pending local change(s) to the server", pushed)
        return pushed

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def get_activities(self) -> List[Activity]:
        return _decode_records(self.read(DataGroup.ACTIVITIES), Activity.from_dict, "activity")

    def save_activity(self, activity: Activity, original_name: Optional[str] = None) -> Activity:
        """Insert or update an activity. Pass original_name when the edit renames it."""
        validate_activity(activity).unwrap()
        activities = self.get_activities()
        target = original_name or activity.name
        if activity.name != target and any(a.name == activity.name for a in activities):
            raise ValidationError(f"An activity named '{activity.name}' already exists.")

        updated, replaced = [], False
        for existing in activities:
            if existing.name == target and not replaced:
                updated.append(activity)
                replaced = True
            else:
                updated.append(existing)
        if not replaced:
            updated.append(activity)
        self.write(DataGroup.ACTIVITIES, [a.to_dict() for a in updated])
        return activity

    def delete_activity(self, name: str) -> bool:
        activities = self.get_activities()
        remaining = [a for a in activities if a.name != name]
        if len(remaining) == len(activities):
            return False
        self.write(DataGroup.ACTIVITIES, [a.to_dict() for a in remaining])
        return True

    def duplicate_activity(self, name: str) -> Activity:
        activities = self.get_activities()
        source = next((a for a in activities if a.name == name), None)
        if source is None:
            raise ValidationError(f"Activity '{name}' not found.")
        copy = self._domain.duplicate_activity(source, [a.name for a in activities]).unwrap()
        self.write(DataGroup.ACTIVITIES, [a.to_dict() for a in activities + [copy]])
        return copy

    # ------------------------------------------------------------------
    # Lesson data
    # ------------------------------------------------------------------
    def get_lesson_data(self) -> LessonData:
        data = self.read(DataGroup.LESSONS)
        if not data:
            return LessonData()
        try:
            return LessonData.from_dict(data)
        except ParseError as e:
            logger.warning("Ignoring unreadable lesson data for %s: %s", self._context.class_name, e)
            return LessonData()

    def save_lesson_data(self, lesson_data: LessonData) -> bool:
        return self.write(DataGroup.LESSONS, lesson_data.to_dict())

    # ------------------------------------------------------------------
    # Lesson plans
    # ------------------------------------------------------------------
    def _all_lesson_plans(self) -> List[LessonPlan]:
        return _decode_records(self.read(DataGroup.LESSON_PLANS), LessonPlan.from_dict, "lesson plan")

    def get_lesson_plans(self, all_classes: bool = False) -> List[LessonPlan]:
        plans = self._all_lesson_plans()
        if all_classes:
            return plans
        return [p for p in plans if p.class_name == self._context.class_name]

    def _upsert_lesson_plans(self, changed: List[LessonPlan]) -> None:
        by_id = {p.id: p for p in changed}
        plans = []
        for existing in self._all_lesson_plans():
            plans.append(by_id.pop(existing.id, existing))
        plans.extend(p for p in changed if p.id in by_id)
        self.write(DataGroup.LESSON_PLANS, [p.to_dict() for p in plans])

    def create_lesson_plan(self, plan_date: date, activities: Optional[List[Activity]] = None, notes: str = "") -> LessonPlan:
        plan = self._domain.create_lesson_plan(
            plan_date, self._context.class_name, activities=activities, notes=notes
        ).unwrap()
        self._upsert_lesson_plans([plan])
        return plan

    def save_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        """Persist an edited plan; week and duration are re-derived first."""
        updated = self._domain.update_lesson_plan(plan).unwrap()
        self._upsert_lesson_plans([updated])
        return updated

    def delete_lesson_plan(self, plan_id: str) -> bool:
        plans = self._all_lesson_plans()
        remaining = [p for p in plans if p.id != plan_id]
        if len(remaining) == len(plans):
            return False
        self.write(DataGroup.LESSON_PLANS, [p.to_dict() for p in remaining])
        return True

    def add_unit_to_calendar(self, unit_id: str, start_date: date) -> List[LessonPlan]:
        unit = next((u for u in self.get_units() if u.id == unit_id), None)
        if unit is None:
            raise ValidationError(f"Unit '{unit_id}' not found.")
        plans = self._domain.schedule_unit(unit, start_date, self._context.class_name).unwrap()
        self._upsert_lesson_plans(plans)
        return plans

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------
    def get_units(self) -> List[Unit]:
        return _decode_records(self.read(DataGroup.UNITS), Unit.from_dict, "unit")

    def create_unit(self, name: str, description: str = "", lesson_numbers: Optional[List[str]] = None,
                    color: Optional[str] = None, term: Optional[str] = None) -> Unit:
        unit = self._domain.create_unit({
            "name": name,
            "description": description,
            "lesson_numbers": lesson_numbers,
            "color": color,
            "term": term,
        }).unwrap()
        self.write(DataGroup.UNITS, [u.to_dict() for u in self.get_units() + [unit]])
        return unit

    def save_unit(self, unit: Unit) -> Unit:
        updated = self._domain.update_unit(unit).unwrap()
        units, replaced = [], False
        for existing in self.get_units():
            if existing.id == updated.id:
                units.append(updated)
                replaced = True
            else:
                units.append(existing)
        if not replaced:
            units.append(updated)
        self.write(DataGroup.UNITS, [u.to_dict() for u in units])
        return updated

    def delete_unit(self, unit_id: str) -> bool:
        """Remove the unit only; its lessons and scheduled plans stay."""
        units = self.get_units()
        remaining = [u for u in units if u.id != unit_id]
        if len(remaining) == len(units):
            return False
        self.write(DataGroup.UNITS, [u.to_dict() for u in remaining])
        return True

    # ------------------------------------------------------------------
    # EYFS standards
    # ------------------------------------------------------------------
    def get_eyfs_standards(self) -> Dict[str, List[str]]:
        standards = {}
        for lesson_number, statements in (self.read(DataGroup.EYFS) or {}).items():
            if isinstance(statements, list) and all(isinstance(s, str) for s in statements):
                standards[lesson_number] = statements
            else:
                logger.warning("Skipping unreadable EYFS statements for lesson %s", lesson_number)
        return standards

    def set_eyfs_statements(self, lesson_number: str, statements: List[str]) -> bool:
        standards = dict(self.get_eyfs_standards())
        standards[lesson_number] = [s for s in statements if s.strip()]
        return self.write(DataGroup.EYFS, standards)

    def get_eyfs_groups(self, lesson_number: str) -> Dict[str, List[str]]:
        statements = self.get_eyfs_standards().get(lesson_number)
        if not statements:
            lesson = self.get_lesson_data().lessons.get(lesson_number)
            statements = lesson.eyfs_statements if lesson else []
        return group_eyfs_statements(statements)

    # ------------------------------------------------------------------
    # User-initiated operations
    # ------------------------------------------------------------------
    def refresh(self) -> StatusSnapshot:
        """Re-check the server and pull its dataset into the local cache."""
        self._ensure_open()
        ticket = self.refresh_status.begin("Refreshing data...")
        generation = self._context.generation
        if self.check_status() is not ConnectionState.ONLINE:
            return self.refresh_status.fail(ticket, "Server is offline. Showing locally stored data.")

        self.flush_pending()
        try:
            if not self.is_online:
                raise NetworkError("Server went offline while sending local changes")
            snapshot = self._remote.export_all()
        except NetworkError as e:
            self._mark_offline(e)
            return self.refresh_status.fail(ticket, "Refresh failed. Showing locally stored data.")

        if generation == self._context.generation:
            self._store_snapshot(snapshot or {})
        return self.refresh_status.succeed(ticket, "Data refreshed from server.")

    def _store_snapshot(self, snapshot: Dict[str, Any]) -> None:
        for group in (DataGroup.ACTIVITIES, DataGroup.LESSON_PLANS):
            if group.value in snapshot and not self._cache.is_pending(group):
                self._cache.write_group(group, snapshot[group.value])
        for group in (DataGroup.LESSONS, DataGroup.EYFS, DataGroup.UNITS):
            for class_name, value in (snapshot.get(group.value) or {}).items():
                if class_name in self._cache.class_names and not self._cache.is_pending(group, class_name):
                    self._cache.write_group(group, value, class_name)

    def upload(self, source: Source, filename: Optional[str] = None) -> StatusSnapshot:
        """Import a .xlsx/.xls/.csv lesson sheet into the active class."""
        self._ensure_open()
        ticket = self.upload_status.begin("Uploading and processing...")
        try:
            bundle = self._parser.parse(source, filename)
            for activity in bundle.activities:
                validate_activity(activity).unwrap()
        except (ParseError, ValidationError) as e:
            logger.warning("Upload rejected: %s", e)
            return self.upload_status.fail(ticket, f"Update failed: {e}")

        if not self.upload_status.owns(ticket):
            return self.upload_status.current

        library = {a.name: a for a in self.get_activities()}
        library.update((a.name, a) for a in bundle.activities)
        synced = self.write(DataGroup.ACTIVITIES, [a.to_dict() for a in library.values()])
        synced = self.save_lesson_data(bundle.lesson_data) and synced

        standards = dict(self.get_eyfs_standards())
        standards.update(bundle.eyfs)
        synced = self.write(DataGroup.EYFS, standards) and synced

        if synced:
            return self.upload_status.succeed(ticket, "Data updated successfully!")
        return self.upload_status.succeed(
            ticket, "Data saved locally. It will be sent to the server when it is available."
        )

    def migrate_to_server(self) -> StatusSnapshot:
        """Send every locally cached partition to the server. Local data is never removed."""
        self._ensure_open()
        ticket = self.migrate_status.begin("Migrating local data to server...")
        if not self.is_online:
            return self.migrate_status.fail(ticket, "Server is offline. Local data was left unchanged.")

        local = self._cache.snapshot()
        try:
            merged = merge_snapshots(local, self._remote.export_all())
            self._remote.import_all(merged)
        except PlannerError as e:
            logger.error("Migration failed: %s", e)
            return self.migrate_status.fail(ticket, "Failed to migrate data to server.")

        self._cache.clear_all_pending()
        return self.migrate_status.succeed(ticket, "Data successfully migrated to server.")
