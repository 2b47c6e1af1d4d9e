"""Reconcile a locally cached dataset with the server's before migrating it.

Policy is last-write-wins:
  - lesson plans and units are matched by id and the later updatedAt wins;
    equal, missing or unreadable timestamps keep the local record.
  - activities carry no timestamps, so the local record wins on a name clash.
  - lesson data and EYFS standards merge per lesson number, local first.
Records that exist on only one side are always kept.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _local_is_newer_or_equal(local: dict, remote: dict) -> bool:
    local_ts = _parse_timestamp(local.get("updatedAt"))
    remote_ts = _parse_timestamp(remote.get("updatedAt"))
    if local_ts is None or remote_ts is None:
        return True
    return local_ts >= remote_ts


def _merge_records(
    local: List[dict],
    remote: List[dict],
    key: Callable[[dict], Any],
    prefer_local: Callable[[dict, dict], bool],
) -> List[dict]:
    remote_by_key = {key(r): r for r in remote}
    merged = []
    seen = set()
    for record in local:
        k = key(record)
        seen.add(k)
        other = remote_by_key.get(k)
        merged.append(record if other is None or prefer_local(record, other) else other)
    merged.extend(r for r in remote if key(r) not in seen)
    return merged


def _merge_lesson_data(local: dict, remote: dict) -> dict:
    local_lessons = local.get("allLessonsData") or {}
    remote_lessons = remote.get("allLessonsData") or {}
    numbers = list(local.get("lessonNumbers") or local_lessons.keys())
    numbers += [n for n in (remote.get("lessonNumbers") or remote_lessons.keys()) if n not in numbers]
    units = list(local.get("teachingUnits") or [])
    units += [u for u in remote.get("teachingUnits") or [] if u not in units]
    return {
        "lessonNumbers": numbers,
        "allLessonsData": {**remote_lessons, **local_lessons},
        "teachingUnits": units,
    }


def _merge_per_class(local: Dict[str, Any], remote: Dict[str, Any], merge_one: Callable[[Any, Any], Any]) -> Dict[str, Any]:
    merged = dict(remote)
    for class_name, value in local.items():
        merged[class_name] = merge_one(value, remote[class_name]) if class_name in remote else value
    return merged


def merge_snapshots(local: Dict[str, Any], remote: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    remote = remote or {}
    by_id = lambda r: r.get("id")
    return {
        "activities": _merge_records(
            local.get("activities") or [],
            remote.get("activities") or [],
            key=lambda a: a.get("name", a.get("activity")),
            prefer_local=lambda _local, _remote: True,
        ),
        "lessons": _merge_per_class(
            local.get("lessons") or {}, remote.get("lessons") or {}, _merge_lesson_data
        ),
        "lessonPlans": _merge_records(
            local.get("lessonPlans") or [],
            remote.get("lessonPlans") or [],
            key=by_id,
            prefer_local=_local_is_newer_or_equal,
        ),
        "eyfs": _merge_per_class(
            local.get("eyfs") or {}, remote.get("eyfs") or {}, lambda l, r: {**r, **l}
        ),
        "units": _merge_per_class(
            local.get("units") or {},
            remote.get("units") or {},
            lambda l, r: _merge_records(l, r, key=by_id, prefer_local=_local_is_newer_or_equal),
        ),
    }
