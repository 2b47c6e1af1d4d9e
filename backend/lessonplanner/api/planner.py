"""Planner dataset API: the data service the sync engine talks to."""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from lessonplanner.api.auth import get_current_user, require_admin
from lessonplanner.application.planner_app_service import PlannerAppService
from lessonplanner.container import get_planner_app_service

router = APIRouter(prefix="/api", tags=["planner"])


# ------------------------------------------------------------------
# Pydantic schemas
# ------------------------------------------------------------------
class DatasetBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    activities: Optional[List[Dict[str, Any]]] = None
    lessons: Optional[Dict[str, Dict[str, Any]]] = None
    lesson_plans: Optional[List[Dict[str, Any]]] = Field(default=None, alias="lessonPlans")
    eyfs: Optional[Dict[str, Dict[str, List[str]]]] = None
    units: Optional[Dict[str, List[Dict[str, Any]]]] = None


def _require_class(svc: PlannerAppService, class_name: str) -> None:
    result = svc.check_class(class_name)
    if not result.is_success:
        raise HTTPException(status_code=400, detail=result.error)


def _unwrap(result, code: int = 400):
    if not result.is_success:
        raise HTTPException(status_code=code, detail=result.error)
    return result.value


# ------------------------------------------------------------------
# Whole dataset
# ------------------------------------------------------------------
@router.get("/export")
def export_all(svc: PlannerAppService = Depends(get_planner_app_service)):
    return svc.export_all()


@router.post("/import")
def import_all(
    body: DatasetBody,
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(require_admin),
):
    counts = _unwrap(svc.import_all(body.model_dump(exclude_unset=True, by_alias=True)))
    return {"imported": counts}


# ------------------------------------------------------------------
# Activity library
# ------------------------------------------------------------------
@router.get("/activities")
def list_activities(svc: PlannerAppService = Depends(get_planner_app_service)):
    return [a.to_dict() for a in svc.list_activities()]


@router.put("/activities")
def replace_activities(
    body: List[Dict[str, Any]] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    return [a.to_dict() for a in _unwrap(svc.replace_activities(body))]


@router.post("/activities")
def save_activity(
    body: Dict[str, Any] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    return _unwrap(svc.save_activity(body)).to_dict()


@router.delete("/activities/{name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    name: str,
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _unwrap(svc.delete_activity(name), code=404)


# ------------------------------------------------------------------
# Lesson data
# ------------------------------------------------------------------
@router.get("/lessons/{class_name}")
def get_lessons(class_name: str, svc: PlannerAppService = Depends(get_planner_app_service)):
    _require_class(svc, class_name)
    return svc.get_lessons(class_name)


@router.put("/lessons/{class_name}")
def save_lessons(
    class_name: str,
    body: Dict[str, Any] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _require_class(svc, class_name)
    return _unwrap(svc.save_lessons(class_name, body))


# ------------------------------------------------------------------
# Lesson plans
# ------------------------------------------------------------------
@router.get("/lesson-plans")
def list_lesson_plans(
    class_name: Optional[str] = None,
    svc: PlannerAppService = Depends(get_planner_app_service),
):
    if class_name is not None:
        _require_class(svc, class_name)
    return [p.to_dict() for p in svc.list_lesson_plans(class_name)]


@router.put("/lesson-plans")
def replace_lesson_plans(
    body: List[Dict[str, Any]] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    return [p.to_dict() for p in _unwrap(svc.replace_lesson_plans(body))]


@router.post("/lesson-plans")
def save_lesson_plan(
    body: Dict[str, Any] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    return _unwrap(svc.save_lesson_plan(body)).to_dict()


@router.delete("/lesson-plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_lesson_plan(
    plan_id: str,
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _unwrap(svc.delete_lesson_plan(plan_id), code=404)


# ------------------------------------------------------------------
# EYFS standards
# ------------------------------------------------------------------
@router.get("/eyfs/{class_name}")
def get_eyfs(class_name: str, svc: PlannerAppService = Depends(get_planner_app_service)):
    _require_class(svc, class_name)
    return svc.get_eyfs(class_name)


@router.put("/eyfs/{class_name}")
def save_eyfs(
    class_name: str,
    body: Dict[str, Any] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _require_class(svc, class_name)
    return _unwrap(svc.save_eyfs(class_name, body))


# ------------------------------------------------------------------
# Units
# ------------------------------------------------------------------
@router.get("/units/{class_name}")
def list_units(class_name: str, svc: PlannerAppService = Depends(get_planner_app_service)):
    _require_class(svc, class_name)
    return [u.to_dict() for u in svc.list_units(class_name)]


@router.put("/units/{class_name}")
def replace_units(
    class_name: str,
    body: List[Dict[str, Any]] = Body(...),
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _require_class(svc, class_name)
    return [u.to_dict() for u in _unwrap(svc.replace_units(class_name, body))]


@router.delete("/units/{class_name}/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unit(
    class_name: str,
    unit_id: str,
    svc: PlannerAppService = Depends(get_planner_app_service),
    current_user: dict = Depends(get_current_user),
):
    _require_class(svc, class_name)
    _unwrap(svc.delete_unit(class_name, unit_id), code=404)
