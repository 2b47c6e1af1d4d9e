"""Turn an uploaded lesson sheet into activities, lesson data and EYFS standards.

Sheets have one row per activity in a lesson, e.g.

    Lesson Number,Category,Activity,Time,Description,Video,EYFS
    1,Welcome,Hello Song,5,Sing and wave,https://...,Communication: Listens attentively

Only CSV is read out of the box. Excel readers are plugged in by the host
application through the `readers` mapping, keyed by extension.
"""
from __future__ import annotations
import csv
import io
import logging
import os
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Dict, List, Optional, TextIO, Union

from lessonplanner.core.config import UPLOAD_EXTENSIONS
from lessonplanner.core.errors import ParseError
from lessonplanner.domain.planning.models import ACTIVITY_LINK_FIELDS, Activity, Lesson, LessonData

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO, TextIO]
RowReader = Callable[[Source], List[Dict[str, str]]]

# Accepted header spellings (lower-cased) -> canonical column
COLUMN_ALIASES: Dict[str, str] = {
    "lesson number": "lesson",
    "lesson": "lesson",
    "lesson no": "lesson",
    "category": "category",
    "activity": "activity",
    "activity name": "activity",
    "name": "activity",
    "description": "description",
    "level": "level",
    "time": "time",
    "duration": "time",
    "video": "videoLink",
    "music": "musicLink",
    "backing": "backingLink",
    "resource": "resourceLink",
    "link": "link",
    "vocals": "vocalsLink",
    "image": "imageLink",
    "eyfs": "eyfs",
    "eyfs statement": "eyfs",
    "unit": "unitName",
    "teaching unit": "unitName",
}


@dataclass
class UploadBundle:
    activities: List[Activity] = field(default_factory=list)
    lesson_data: LessonData = field(default_factory=LessonData)
    eyfs: Dict[str, List[str]] = field(default_factory=dict)


def _read_text(source: Source) -> str:
    if isinstance(source, (str, os.PathLike)):
        try:
            with open(source, "rb") as f:
                raw: Any = f.read()
        except OSError as e:
            raise ParseError(f"Could not read upload: {e}") from e
    else:
        raw = source.read()
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError("Upload is not UTF-8 encoded text") from e
    return raw


def read_csv_rows(source: Source) -> List[Dict[str, str]]:
    """Rows keyed by canonical column name; unknown columns are dropped."""
    reader = csv.reader(io.StringIO(_read_text(source)))
    try:
        header = next(reader)
    except StopIteration:
        raise ParseError("Upload is empty")
    except csv.Error as e:
        raise ParseError(f"Malformed CSV: {e}") from e

    columns = [COLUMN_ALIASES.get(h.strip().lower()) for h in header]
    if "activity" not in columns:
        raise ParseError("Upload has no 'Activity' column")

    rows = []
    try:
        for values in reader:
            if not any(v.strip() for v in values):
                continue
            row = {}
            for column, value in zip(columns, values):
                if column and column not in row:
                    row[column] = value.strip()
            rows.append(row)
    except csv.Error as e:
        raise ParseError(f"Malformed CSV at line {reader.line_num}: {e}") from e
    return rows


def _lesson_sort_key(number: str):
    return (0, int(number), "") if number.isdigit() else (1, 0, number)


def build_bundle(rows: List[Dict[str, str]]) -> UploadBundle:
    bundle = UploadBundle()
    library: Dict[str, Activity] = {}
    lessons: Dict[str, Lesson] = {}
    units: List[str] = []

    for line, row in enumerate(rows, start=2):
        lesson_number = row.get("lesson", "")
        name = row.get("activity", "")
        statement = row.get("eyfs", "")

        if name:
            time_text = row.get("time", "")
            try:
                minutes = int(float(time_text)) if time_text else 0
            except ValueError:
                raise ParseError(f"Row {line}: time '{time_text}' is not a number")
            activity = Activity(
                name=name,
                category=row.get("category", ""),
                time=minutes,
                level=row.get("level", ""),
                description=row.get("description", ""),
                unit_name=row.get("unitName", ""),
            )
            for wire, attr in ACTIVITY_LINK_FIELDS.items():
                setattr(activity, attr, row.get(wire, ""))
            library.setdefault(name, activity)
            if activity.unit_name and activity.unit_name not in units:
                units.append(activity.unit_name)
            if lesson_number:
                lessons.setdefault(lesson_number, Lesson(number=lesson_number)).add_activity(activity)

        if statement and lesson_number:
            lesson = lessons.setdefault(lesson_number, Lesson(number=lesson_number))
            if statement not in lesson.eyfs_statements:
                lesson.eyfs_statements.append(statement)
                bundle.eyfs.setdefault(lesson_number, []).append(statement)

    bundle.activities = list(library.values())
    for number in sorted(lessons, key=_lesson_sort_key):
        bundle.lesson_data.add_lesson(lessons[number])
    bundle.lesson_data.teaching_units = units
    return bundle


class SpreadsheetParser:

    def __init__(self, readers: Optional[Dict[str, RowReader]] = None):
        self._readers: Dict[str, RowReader] = {".csv": read_csv_rows}
        self._readers.update(readers or {})

    def parse(self, source: Source, filename: Optional[str] = None) -> UploadBundle:
        name = filename or getattr(source, "name", None) or (source if isinstance(source, (str, os.PathLike)) else "")
        extension = os.path.splitext(str(name))[1].lower()
        if extension not in UPLOAD_EXTENSIONS:
            raise ParseError(
                f"Unsupported file type '{extension or name}'. Upload one of: {', '.join(UPLOAD_EXTENSIONS)}"
            )
        reader = self._readers.get(extension)
        if reader is None:
            raise ParseError(f"No reader is configured for '{extension}' files")

        rows = reader(source)
        bundle = build_bundle(rows)
        logger.info(
            "Parsed %s: %d activities across %d lessons",
            name, len(bundle.activities), len(bundle.lesson_data.lesson_numbers),
        )
        return bundle
