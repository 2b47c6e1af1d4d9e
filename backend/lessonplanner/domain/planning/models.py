"""Planning domain models: pure Python, no DB or HTTP dependencies.

Every model converts to and from the camelCase dictionaries the browser app
persisted, so cached data and server payloads share one shape.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from lessonplanner.core.errors import ParseError

# Wire key -> attribute name for the resource links an activity can carry
ACTIVITY_LINK_FIELDS: Dict[str, str] = {
    "videoLink": "video_link",
    "musicLink": "music_link",
    "backingLink": "backing_link",
    "resourceLink": "resource_link",
    "link": "link",
    "vocalsLink": "vocals_link",
    "imageLink": "image_link",
}


def _require_mapping(data: Any, kind: str) -> dict:
    if not isinstance(data, dict):
        raise ParseError(f"Expected an object for {kind}, got {type(data).__name__}")
    return data


def _as_int(value: Any, kind: str, field_name: str) -> int:
    if value in (None, ""):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ParseError(f"{kind} '{field_name}' must be a whole number, got {value!r}")


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        raise ParseError(f"Lesson plan 'date' must be an ISO date, got {value!r}")
    try:
        # Accepts both "2025-01-08" and full timestamps like "2025-01-08T00:00:00.000Z"
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ParseError(f"Lesson plan 'date' must be an ISO date, got {value!r}")


@dataclass
class Activity:
    name: str
    category: str = ""
    time: int = 0
    level: str = ""
    description: str = ""
    video_link: str = ""
    music_link: str = ""
    backing_link: str = ""
    resource_link: str = ""
    link: str = ""
    vocals_link: str = ""
    image_link: str = ""
    unit_name: str = ""

    def links(self) -> Dict[str, str]:
        """Non-empty resource links keyed by their wire name."""
        return {
            wire: getattr(self, attr)
            for wire, attr in ACTIVITY_LINK_FIELDS.items()
            if getattr(self, attr)
        }

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "category": self.category,
            "time": self.time,
            "level": self.level,
            "description": self.description,
            "unitName": self.unit_name,
        }
        for wire, attr in ACTIVITY_LINK_FIELDS.items():
            data[wire] = getattr(self, attr)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Activity":
        data = _require_mapping(data, "activity")
        name = data.get("name", data.get("activity"))
        activity = cls(
            name=_as_str(name),
            category=_as_str(data.get("category")),
            time=_as_int(data.get("time"), "Activity", "time"),
            level=_as_str(data.get("level")),
            description=_as_str(data.get("description")),
            unit_name=_as_str(data.get("unitName")),
        )
        for wire, attr in ACTIVITY_LINK_FIELDS.items():
            setattr(activity, attr, _as_str(data.get(wire)))
        return activity


@dataclass
class Lesson:
    number: str
    title: str = ""
    grouped: Dict[str, List[Activity]] = field(default_factory=dict)
    category_order: List[str] = field(default_factory=list)
    total_time: int = 0
    eyfs_statements: List[str] = field(default_factory=list)

    def add_activity(self, activity: Activity) -> None:
        category = activity.category or "Uncategorised"
        if category not in self.grouped:
            self.grouped[category] = []
            self.category_order.append(category)
        self.grouped[category].append(activity)
        self.total_time += activity.time

    def to_dict(self) -> dict:
        return {
            "lessonNumber": self.number,
            "title": self.title,
            "grouped": {
                category: [a.to_dict() for a in activities]
                for category, activities in self.grouped.items()
            },
            "categoryOrder": list(self.category_order),
            "totalTime": self.total_time,
            "eyfsStatements": list(self.eyfs_statements),
        }

    @classmethod
    def from_dict(cls, data: Any, number: Optional[str] = None) -> "Lesson":
        data = _require_mapping(data, "lesson")
        grouped_raw = _require_mapping(data.get("grouped") or {}, "lesson activities")
        grouped = {
            str(category): [Activity.from_dict(a) for a in (activities or [])]
            for category, activities in grouped_raw.items()
        }
        return cls(
            number=_as_str(data.get("lessonNumber", number)),
            title=_as_str(data.get("title")),
            grouped=grouped,
            category_order=[str(c) for c in data.get("categoryOrder") or grouped.keys()],
            total_time=_as_int(data.get("totalTime"), "Lesson", "totalTime"),
            eyfs_statements=[str(s) for s in data.get("eyfsStatements") or []],
        )


@dataclass
class LessonData:
    """All lessons of one class partition."""
    lesson_numbers: List[str] = field(default_factory=list)
    lessons: Dict[str, Lesson] = field(default_factory=dict)
    teaching_units: List[str] = field(default_factory=list)

    def add_lesson(self, lesson: Lesson) -> None:
        if lesson.number not in self.lessons:
            self.lesson_numbers.append(lesson.number)
        self.lessons[lesson.number] = lesson

    def to_dict(self) -> dict:
        return {
            "lessonNumbers": list(self.lesson_numbers),
            "allLessonsData": {number: lesson.to_dict() for number, lesson in self.lessons.items()},
            "teachingUnits": list(self.teaching_units),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "LessonData":
        data = _require_mapping(data, "lesson data")
        raw_lessons = _require_mapping(data.get("allLessonsData") or {}, "lessons")
        lessons = {str(n): Lesson.from_dict(l, number=str(n)) for n, l in raw_lessons.items()}
        return cls(
            lesson_numbers=[str(n) for n in data.get("lessonNumbers") or lessons.keys()],
            lessons=lessons,
            teaching_units=[str(u) for u in data.get("teachingUnits") or []],
        )


@dataclass
class Unit:
    id: str
    name: str
    description: str = ""
    lesson_numbers: List[str] = field(default_factory=list)
    color: str = "#6366F1"
    term: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "lessonNumbers": list(self.lesson_numbers),
            "color": self.color,
            "term": self.term,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Unit":
        data = _require_mapping(data, "unit")
        return cls(
            id=_as_str(data.get("id")),
            name=_as_str(data.get("name")),
            description=_as_str(data.get("description")),
            lesson_numbers=[str(n) for n in data.get("lessonNumbers") or []],
            color=_as_str(data.get("color")) or "#6366F1",
            term=data.get("term") or None,
            created_at=_as_str(data.get("createdAt")),
            updated_at=_as_str(data.get("updatedAt")),
        )


@dataclass
class LessonPlan:
    id: str
    date: date
    week: int
    class_name: str
    activities: List[Activity] = field(default_factory=list)
    duration: int = 0
    notes: str = ""
    status: str = "planned"  # draft | planned | completed | cancelled
    unit_id: Optional[str] = None
    unit_name: Optional[str] = None
    lesson_number: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "week": self.week,
            "className": self.class_name,
            "activities": [a.to_dict() for a in self.activities],
            "duration": self.duration,
            "notes": self.notes,
            "status": self.status,
            "unitId": self.unit_id,
            "unitName": self.unit_name,
            "lessonNumber": self.lesson_number,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "LessonPlan":
        data = _require_mapping(data, "lesson plan")
        return cls(
            id=_as_str(data.get("id")),
            date=_parse_date(data.get("date")),
            week=_as_int(data.get("week"), "Lesson plan", "week"),
            class_name=_as_str(data.get("className")),
            activities=[Activity.from_dict(a) for a in data.get("activities") or []],
            duration=_as_int(data.get("duration"), "Lesson plan", "duration"),
            notes=_as_str(data.get("notes")),
            status=_as_str(data.get("status")) or "planned",
            unit_id=data.get("unitId") or None,
            unit_name=data.get("unitName") or None,
            lesson_number=None if data.get("lessonNumber") is None else str(data.get("lessonNumber")),
            created_at=_as_str(data.get("createdAt")),
            updated_at=_as_str(data.get("updatedAt")),
        )
