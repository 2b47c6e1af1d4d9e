"""Abstract repository interface for the planner dataset held by the data service."""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit


class DatasetRepository(ABC):

    # Activity library (shared by all classes, ordered)
    @abstractmethod
    def list_activities(self) -> List[Activity]:
        ...

    @abstractmethod
    def replace_activities(self, activities: List[Activity]) -> None:
        """Make the library exactly this list, in this order."""
        ...

    @abstractmethod
    def save_activity(self, activity: Activity) -> None:
        """Insert or update by name; new activities go to the end."""
        ...

    @abstractmethod
    def delete_activity(self, name: str) -> bool:
        ...

    # Per-class documents
    @abstractmethod
    def get_lesson_data(self, class_name: str) -> Optional[dict]:
        ...

    @abstractmethod
    def save_lesson_data(self, class_name: str, lesson_data: dict) -> None:
        ...

    @abstractmethod
    def get_eyfs(self, class_name: str) -> Optional[Dict[str, List[str]]]:
        ...

    @abstractmethod
    def save_eyfs(self, class_name: str, standards: Dict[str, List[str]]) -> None:
        ...

    @abstractmethod
    def list_document_classes(self, kind: str) -> List[str]:
        """Classes that have a stored 'lessons' or 'eyfs' document."""
        ...

    # Lesson plans
    @abstractmethod
    def list_lesson_plans(self, class_name: Optional[str] = None) -> List[LessonPlan]:
        ...

    @abstractmethod
    def replace_lesson_plans(self, plans: List[LessonPlan]) -> None:
        ...

    @abstractmethod
    def save_lesson_plan(self, plan: LessonPlan) -> None:
        ...

    @abstractmethod
    def delete_lesson_plan(self, plan_id: str) -> bool:
        ...

    # Units
    @abstractmethod
    def list_units(self, class_name: Optional[str] = None) -> Dict[str, List[Unit]]:
        """Units grouped by class, each list in stored order."""
        ...

    @abstractmethod
    def replace_units(self, class_name: str, units: List[Unit]) -> None:
        ...

    @abstractmethod
    def delete_unit(self, class_name: str, unit_id: str) -> bool:
        ...

    # Whole dataset
    @abstractmethod
    def replace_dataset(
        self,
        activities: Optional[List[Activity]] = None,
        lesson_plans: Optional[List[LessonPlan]] = None,
        lessons: Optional[Dict[str, dict]] = None,
        eyfs: Optional[Dict[str, Dict[str, List[str]]]] = None,
        units: Optional[Dict[str, List[Unit]]] = None,
    ) -> None:
        """Replace every given group in one transaction; a failure leaves all of them unchanged."""
        ...
