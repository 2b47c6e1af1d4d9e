"""Local cache store: JSON documents over a StoragePort, keyed by data group and class."""
from __future__ import annotations
import json
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lessonplanner.core.config import CLASS_NAMES
from lessonplanner.sync.storage import StoragePort

logger = logging.getLogger(__name__)

ACTIVITIES_KEY = "library-activities"
LESSON_PLANS_KEY = "lesson-plans"
PENDING_SYNC_KEY = "pending-sync"


def lesson_data_key(class_name: str) -> str:
    return f"lesson-data-{class_name}"


def eyfs_key(class_name: str) -> str:
    return f"eyfs-standards-{class_name}"


def units_key(class_name: str) -> str:
    return f"units-{class_name}"


class DataGroup(str, Enum):
    """Entity groups; the value doubles as the group's name in a dataset snapshot."""
    ACTIVITIES = "activities"
    LESSONS = "lessons"
    LESSON_PLANS = "lessonPlans"
    EYFS = "eyfs"
    UNITS = "units"

    @property
    def per_class(self) -> bool:
        return self in (DataGroup.LESSONS, DataGroup.EYFS, DataGroup.UNITS)

    @property
    def container(self) -> type:
        """JSON container every value of this group is stored as."""
        return list if self in (DataGroup.ACTIVITIES, DataGroup.LESSON_PLANS, DataGroup.UNITS) else dict

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.container)


_PER_CLASS_KEYS = {
    DataGroup.LESSONS: lesson_data_key,
    DataGroup.EYFS: eyfs_key,
    DataGroup.UNITS: units_key,
}


class LocalCacheStore:

    def __init__(self, storage: StoragePort, class_names: Iterable[str] = CLASS_NAMES):
        self._storage = storage
        self.class_names = tuple(class_names)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------
    def key_for(self, group: DataGroup, class_name: Optional[str] = None) -> str:
        if group is DataGroup.ACTIVITIES:
            return ACTIVITIES_KEY
        if group is DataGroup.LESSON_PLANS:
            return LESSON_PLANS_KEY
        if class_name not in self.class_names:
            raise KeyError(f"No cache partition for class '{class_name}'")
        return _PER_CLASS_KEYS[group](class_name)

    def recognized_keys(self) -> List[str]:
        keys = [ACTIVITIES_KEY, LESSON_PLANS_KEY, PENDING_SYNC_KEY]
        for class_name in self.class_names:
            keys.extend(make_key(class_name) for make_key in _PER_CLASS_KEYS.values())
        return keys

    def _check_key(self, key: str) -> None:
        if key not in self.recognized_keys():
            raise KeyError(f"'{key}' is not a recognized cache key")

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------
    def get(self, key: str) -> Optional[Any]:
        """Parsed value for key, or None when absent or unreadable."""
        self._check_key(key)
        raw = self._storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning("Ignoring malformed cached value for '%s': %s", key, e)
            return None

    def set(self, key: str, value: Any) -> None:
        self._check_key(key)
        self._storage.set(key, json.dumps(value, ensure_ascii=False))

    def remove(self, key: str) -> None:
        self._check_key(key)
        self._storage.remove(key)

    def read_group(self, group: DataGroup, class_name: Optional[str] = None) -> Optional[Any]:
        """Cached value of a group, or None when absent, unreadable or not the group's container."""
        key = self.key_for(group, class_name)
        value = self.get(key)
        if value is not None and not group.accepts(value):
            logger.warning(
                "Ignoring cached value for '%s': expected %s, got %s",
                key, group.container.__name__, type(value).__name__,
            )
            return None
        return value

    def write_group(self, group: DataGroup, value: Any, class_name: Optional[str] = None) -> None:
        self.set(self.key_for(group, class_name), value)

    # ------------------------------------------------------------------
    # Snapshot of every cached partition
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"activities": [], "lessons": {}, "lessonPlans": [], "eyfs": {}, "units": {}}
        stored = set(self._storage.keys())

        for group in (DataGroup.ACTIVITIES, DataGroup.LESSON_PLANS):
            if self.key_for(group) in stored:
                value = self.read_group(group)
                if value is not None:
                    data[group.value] = value

        for group in (DataGroup.LESSONS, DataGroup.EYFS, DataGroup.UNITS):
            for class_name in self.class_names:
                if self.key_for(group, class_name) not in stored:
                    continue
                value = self.read_group(group, class_name)
                if value is not None:
                    data[group.value][class_name] = value
        return data

    # ------------------------------------------------------------------
    # Pending-write ledger: groups whose local copy the server has not accepted yet
    # ------------------------------------------------------------------
    def pending(self) -> List[Tuple[DataGroup, Optional[str]]]:
        entries = self.get(PENDING_SYNC_KEY) or []
        if not isinstance(entries, list):
            logger.warning("Ignoring pending-sync ledger that is not a list: %r", entries)
            entries = []
        result = []
        for entry in entries:
            try:
                group = DataGroup(entry["group"])
            except (TypeError, KeyError, ValueError):
                logger.warning("Dropping unreadable pending-sync entry: %r", entry)
                continue
            result.append((group, entry.get("className") if group.per_class else None))
        return result

    def is_pending(self, group: DataGroup, class_name: Optional[str] = None) -> bool:
        return (group, class_name if group.per_class else None) in self.pending()

    def mark_pending(self, group: DataGroup, class_name: Optional[str] = None) -> None:
        entry = (group, class_name if group.per_class else None)
        entries = self.pending()
        if entry not in entries:
            entries.append(entry)
            self._save_pending(entries)

    def clear_pending(self, group: DataGroup, class_name: Optional[str] = None) -> None:
        entry = (group, class_name if group.per_class else None)
        entries = self.pending()
        if entry in entries:
            entries.remove(entry)
            self._save_pending(entries)

    def clear_all_pending(self) -> None:
        self._save_pending([])

    def _save_pending(self, entries: List[Tuple[DataGroup, Optional[str]]]) -> None:
        self.set(PENDING_SYNC_KEY, [{"group": g.value, "className": c} for g, c in entries])
