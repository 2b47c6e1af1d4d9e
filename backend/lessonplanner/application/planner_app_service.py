"""Application service: orchestrates decode → validate → persist for the data service."""
from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, TypeVar

from lessonplanner.core.config import CLASS_NAMES
from lessonplanner.core.errors import ParseError
from lessonplanner.domain.common.result import Result
from lessonplanner.domain.planning.models import Activity, LessonData, LessonPlan, Unit
from lessonplanner.domain.planning.rules import (
    validate_activity,
    validate_class_name,
    validate_lesson_plan,
    validate_unit,
)
from lessonplanner.domain.planning.service import PlannerDomainService
from lessonplanner.persistence.interfaces.dataset_repository import DatasetRepository

T = TypeVar("T")


def _decode_all(items: Any, decode: Callable[[Any], T], validate: Callable[[T], Result[T]], kind: str) -> Result[List[T]]:
    if not isinstance(items, list):
        return Result.fail(f"Expected a list of {kind}s.")
    decoded = []
    for index, item in enumerate(items):
        try:
            value = decode(item)
        except ParseError as e:
            return Result.fail(f"{kind} #{index + 1}: {e}")
        check = validate(value)
        if not check.is_success:
            return Result.fail(f"{kind} #{index + 1}: {check.error}")
        decoded.append(value)
    return Result.ok(decoded)


def _unique(values: List[T], key: Callable[[T], str], kind: str) -> Result[List[T]]:
    seen = set()
    for value in values:
        k = key(value)
        if k in seen:
            return Result.fail(f"Duplicate {kind} '{k}'.")
        seen.add(k)
    return Result.ok(values)


def _check_eyfs(standards: Any) -> Result[Dict[str, List[str]]]:
    if not isinstance(standards, dict):
        return Result.fail("EYFS standards must map lesson numbers to lists of statements.")
    for lesson_number, statements in standards.items():
        if not isinstance(statements, list) or not all(isinstance(s, str) for s in statements):
            return Result.fail(f"EYFS statements for lesson '{lesson_number}' must be a list of strings.")
    return Result.ok({str(k): list(v) for k, v in standards.items()})


def _check_lesson_data(data: Any) -> Result[dict]:
    try:
        return Result.ok(LessonData.from_dict(data).to_dict())
    except ParseError as e:
        return Result.fail(str(e))


class PlannerAppService:
    def __init__(self, repo: DatasetRepository, class_names: tuple = CLASS_NAMES):
        self._repo = repo
        self._domain = PlannerDomainService()
        self.class_names = tuple(class_names)

    def check_class(self, class_name: str) -> Result[str]:
        return validate_class_name(class_name, self.class_names)

    # ------------------------------------------------------------------
    # EXPORT / IMPORT
    # ------------------------------------------------------------------
    def export_all(self) -> dict:
        units = self._repo.list_units()
        return {
            "activities": [a.to_dict() for a in self._repo.list_activities()],
            "lessons": {c: self._repo.get_lesson_data(c) for c in self._repo.list_document_classes("lessons")},
            "lessonPlans": [p.to_dict() for p in self._repo.list_lesson_plans()],
            "eyfs": {c: self._repo.get_eyfs(c) for c in self._repo.list_document_classes("eyfs")},
            "units": {c: [u.to_dict() for u in class_units] for c, class_units in units.items()},
        }

    def import_all(self, dataset: dict) -> Result[Dict[str, int]]:
        """Replace every group present in the dataset. Nothing is written unless all of it is valid."""
        groups: Dict[str, Any] = {}
        counts: Dict[str, int] = {}

        if dataset.get("activities") is not None:
            result = self._check_activities(dataset["activities"])
            if not result.is_success:
                return Result.fail(result.error)
            groups["activities"] = result.value
            counts["activities"] = len(result.value)

        if dataset.get("lessonPlans") is not None:
            result = self._check_lesson_plans(dataset["lessonPlans"])
            if not result.is_success:
                return Result.fail(result.error)
            groups["lesson_plans"] = result.value
            counts["lessonPlans"] = len(result.value)

        for group, check in (
            ("lessons", _check_lesson_data),
            ("eyfs", _check_eyfs),
            ("units", self._check_units),
        ):
            per_class = dataset.get(group)
            if per_class is None:
                continue
            if not isinstance(per_class, dict):
                return Result.fail(f"'{group}' must map class names to data.")
            checked = {}
            for class_name, value in per_class.items():
                known = self.check_class(class_name)
                if not known.is_success:
                    return Result.fail(known.error)
                result = check(value)
                if not result.is_success:
                    return Result.fail(f"{group} for {class_name}: {result.error}")
                checked[class_name] = result.value
            groups[group] = checked
            counts[group] = len(per_class)

        self._repo.replace_dataset(**groups)
        return Result.ok(counts)

    # ------------------------------------------------------------------
    # ACTIVITIES
    # ------------------------------------------------------------------
    def _check_activities(self, items: Any) -> Result[List[Activity]]:
        result = _decode_all(items, Activity.from_dict, validate_activity, "activity")
        if not result.is_success:
            return result
        return _unique(result.value, lambda a: a.name, "activity name")

    def list_activities(self) -> List[Activity]:
        return self._repo.list_activities()

    def replace_activities(self, items: Any) -> Result[List[Activity]]:
        result = self._check_activities(items)
        if result.is_success:
            self._repo.replace_activities(result.value)
        return result

    def save_activity(self, data: dict) -> Result[Activity]:
        try:
            activity = Activity.from_dict(data)
        except ParseError as e:
            return Result.fail(str(e))
        result = validate_activity(activity)
        if result.is_success:
            self._repo.save_activity(activity)
        return result

    def delete_activity(self, name: str) -> Result[bool]:
        if not self._repo.delete_activity(name):
            return Result.fail(f"Activity '{name}' not found.")
        return Result.ok(True)

    # ------------------------------------------------------------------
    # LESSON DATA / EYFS
    # ------------------------------------------------------------------
    def get_lessons(self, class_name: str) -> dict:
        return self._repo.get_lesson_data(class_name) or LessonData().to_dict()

    def save_lessons(self, class_name: str, data: Any) -> Result[dict]:
        result = _check_lesson_data(data)
        if result.is_success:
            self._repo.save_lesson_data(class_name, result.value)
        return result

    def get_eyfs(self, class_name: str) -> Dict[str, List[str]]:
        return self._repo.get_eyfs(class_name) or {}

    def save_eyfs(self, class_name: str, standards: Any) -> Result[Dict[str, List[str]]]:
        result = _check_eyfs(standards)
        if result.is_success:
            self._repo.save_eyfs(class_name, result.value)
        return result

    # ------------------------------------------------------------------
    # LESSON PLANS
    # ------------------------------------------------------------------
    def _decode_plan(self, data: Any) -> LessonPlan:
        # Week and duration are derived; trust the date, not the stored numbers.
        return self._domain.normalize_lesson_plan(LessonPlan.from_dict(data))

    def _check_lesson_plans(self, items: Any) -> Result[List[LessonPlan]]:
        result = _decode_all(items, self._decode_plan, validate_lesson_plan, "lesson plan")
        if not result.is_success:
            return result
        return _unique(result.value, lambda p: p.id, "lesson plan id")

    def list_lesson_plans(self, class_name: Optional[str] = None) -> List[LessonPlan]:
        return self._repo.list_lesson_plans(class_name)

    def replace_lesson_plans(self, items: Any) -> Result[List[LessonPlan]]:
        result = self._check_lesson_plans(items)
        if result.is_success:
            self._repo.replace_lesson_plans(result.value)
        return result

    def save_lesson_plan(self, data: dict) -> Result[LessonPlan]:
        try:
            plan = self._decode_plan(data)
        except ParseError as e:
            return Result.fail(str(e))
        result = validate_lesson_plan(plan)
        if result.is_success:
            self._repo.save_lesson_plan(plan)
        return result

    def delete_lesson_plan(self, plan_id: str) -> Result[bool]:
        if not self._repo.delete_lesson_plan(plan_id):
            return Result.fail(f"Lesson plan '{plan_id}' not found.")
        return Result.ok(True)

    # ------------------------------------------------------------------
    # UNITS
    # ------------------------------------------------------------------
    def _check_units(self, items: Any) -> Result[List[Unit]]:
        result = _decode_all(items, Unit.from_dict, validate_unit, "unit")
        if not result.is_success:
            return result
        return _unique(result.value, lambda u: u.id, "unit id")

    def list_units(self, class_name: str) -> List[Unit]:
        return self._repo.list_units(class_name).get(class_name, [])

    def replace_units(self, class_name: str, items: Any) -> Result[List[Unit]]:
        result = self._check_units(items)
        if result.is_success:
            self._repo.replace_units(class_name, result.value)
        return result

    def delete_unit(self, class_name: str, unit_id: str) -> Result[bool]:
        if not self._repo.delete_unit(class_name, unit_id):
            return Result.fail(f"Unit '{unit_id}' not found in {class_name}.")
        return Result.ok(True)
