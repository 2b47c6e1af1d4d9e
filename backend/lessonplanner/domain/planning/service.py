"""Domain service: pure planning operations. No I/O; callers persist the results."""
from __future__ import annotations
import uuid
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from lessonplanner.domain.common.result import Result
from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit
from lessonplanner.domain.planning.rules import (
    validate_activity,
    validate_lesson_plan,
    validate_unit,
    week_number,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


class PlannerDomainService:
    """
    Pure domain operations for lesson plans, units and activities.
    All methods that can reject input return Result[T].
    """

    # ------------------------------------------------------------------
    # Lesson plans
    # ------------------------------------------------------------------
    def create_lesson_plan(
        self,
        plan_date: date,
        class_name: str,
        activities: Optional[List[Activity]] = None,
        notes: str = "",
    ) -> Result[LessonPlan]:
        """Create a new 'planned' lesson plan with its week derived from the date."""
        now = _now_iso()
        activities = list(activities or [])
        plan = LessonPlan(
            id=_new_id(),
            date=plan_date,
            week=week_number(plan_date),
            class_name=class_name,
            activities=activities,
            duration=sum(a.time for a in activities),
            notes=notes,
            status="planned",
            created_at=now,
            updated_at=now,
        )
        return validate_lesson_plan(plan)

    def normalize_lesson_plan(self, plan: LessonPlan) -> LessonPlan:
        """Recompute derived fields (week, duration) without touching timestamps."""
        return replace(
            plan,
            week=week_number(plan.date),
            duration=sum(a.time for a in plan.activities),
        )

    def update_lesson_plan(self, plan: LessonPlan) -> Result[LessonPlan]:
        """Re-derive week and duration after an edit and stamp updatedAt."""
        updated = self.normalize_lesson_plan(plan)
        updated.updated_at = _now_iso()
        if not updated.created_at:
            updated.created_at = updated.updated_at
        return validate_lesson_plan(updated)

    def schedule_unit(self, unit: Unit, start_date: date, class_name: str) -> Result[List[LessonPlan]]:
        """One plan per lesson of the unit, on consecutive days from start_date."""
        if not unit.lesson_numbers:
            return Result.fail(f"Unit '{unit.name}' has no lessons to schedule.")

        now = _now_iso()
        plans = []
        for index, lesson_number in enumerate(unit.lesson_numbers):
            lesson_date = start_date + timedelta(days=index)
            plan = LessonPlan(
                id=_new_id(),
                date=lesson_date,
                week=week_number(lesson_date),
                class_name=class_name,
                notes=f"Part of unit: {unit.name}",
                status="planned",
                unit_id=unit.id,
                unit_name=unit.name,
                lesson_number=lesson_number,
                created_at=now,
                updated_at=now,
            )
            check = validate_lesson_plan(plan)
            if not check.is_success:
                return Result.fail(check.error)
            plans.append(plan)
        return Result.ok(plans)

    # ------------------------------------------------------------------
    # Units
    # ------------------------------------------------------------------
    def create_unit(self, data: dict) -> Result[Unit]:
        now = _now_iso()
        unit = Unit(
            id=_new_id(),
            name=(data.get("name") or "").strip(),
            description=data.get("description") or "",
            lesson_numbers=[str(n) for n in data.get("lesson_numbers") or []],
            color=data.get("color") or "#6366F1",
            term=data.get("term") or None,
            created_at=now,
            updated_at=now,
        )
        return validate_unit(unit)

    def update_unit(self, unit: Unit) -> Result[Unit]:
        check = validate_unit(unit)
        if not check.is_success:
            return check
        updated = replace(unit, updated_at=_now_iso())
        if not updated.created_at:
            updated.created_at = updated.updated_at
        return Result.ok(updated)

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def duplicate_activity(self, activity: Activity, existing_names: Iterable[str]) -> Result[Activity]:
        """Copy an activity under the first free "<name> (Copy)" / "<name> (Copy N)" name."""
        taken = set(existing_names)
        candidate = f"{activity.name} (Copy)"
        counter = 2
        while candidate in taken:
            candidate = f"{activity.name} (Copy {counter})"
            counter += 1
        return validate_activity(replace(activity, name=candidate))
