"""Business rules for planning entities: invariants, week derivation and EYFS grouping."""
from __future__ import annotations
import math
from datetime import date
from typing import Dict, Iterable, List, Tuple

from lessonplanner.domain.common.result import Result
from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit

LESSON_PLAN_STATUSES = {"draft", "planned", "completed", "cancelled"}

DEFAULT_EYFS_AREA = "General"


def week_number(plan_date: date) -> int:
    """Week of the year as ceil(day_of_year / 7): Jan 1-7 is week 1, Jan 8 starts week 2."""
    return math.ceil(plan_date.timetuple().tm_yday / 7)


def split_eyfs_statement(statement: str) -> Tuple[str, str]:
    """Split "<Area>: <Detail>" on the first colon. A leading colon does not count."""
    colon = statement.find(":")
    if colon > 0:
        return statement[:colon].strip(), statement[colon + 1:].strip()
    return DEFAULT_EYFS_AREA, statement


def group_eyfs_statements(statements: Iterable[str]) -> Dict[str, List[str]]:
    """Group statements by area, keeping first-seen area order and statement order."""
    grouped: Dict[str, List[str]] = {}
    for statement in statements:
        area, detail = split_eyfs_statement(statement)
        grouped.setdefault(area, []).append(detail)
    return grouped


def validate_class_name(class_name: str, known: Iterable[str]) -> Result[str]:
    known = tuple(known)
    if class_name not in known:
        return Result.fail(f"Unknown class '{class_name}'. Must be one of {list(known)}.")
    return Result.ok(class_name)


def validate_activity(activity: Activity) -> Result[Activity]:
    if not activity.name.strip():
        return Result.fail("Activity 'name' is required and cannot be empty.")
    if activity.time < 0:
        return Result.fail(f"Activity '{activity.name}' has a negative duration ({activity.time}).")
    return Result.ok(activity)


def validate_unit(unit: Unit) -> Result[Unit]:
    if not unit.id:
        return Result.fail("Unit 'id' is required.")
    if not unit.name.strip():
        return Result.fail("Unit 'name' is required and cannot be empty.")
    return Result.ok(unit)


def validate_lesson_plan(plan: LessonPlan) -> Result[LessonPlan]:
    if not plan.id:
        return Result.fail("Lesson plan 'id' is required.")
    if not plan.class_name:
        return Result.fail("Lesson plan 'className' is required.")
    if plan.status not in LESSON_PLAN_STATUSES:
        return Result.fail(
            f"'{plan.status}' is not a valid lesson plan status. Must be one of {sorted(LESSON_PLAN_STATUSES)}."
        )
    if plan.week != week_number(plan.date):
        return Result.fail(
            f"Lesson plan week {plan.week} does not match its date {plan.date.isoformat()} "
            f"(expected {week_number(plan.date)})."
        )
    if plan.duration < 0:
        return Result.fail("Lesson plan 'duration' cannot be negative.")
    for activity in plan.activities:
        check = validate_activity(activity)
        if not check.is_success:
            return Result.fail(check.error)
    return Result.ok(plan)
