from datetime import date

from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit
from lessonplanner.domain.planning.service import PlannerDomainService


svc = PlannerDomainService()


def test_create_lesson_plan():
    result = svc.create_lesson_plan(date(2025, 1, 8), "LKG", [Activity(name="Hello Song", time=5)], notes="Bring drum")
    assert result.is_success
    plan = result.value
    assert plan.week == 2
    assert plan.duration == 5
    assert plan.status == "planned"
    assert plan.created_at == plan.updated_at != ""


def test_create_lesson_plan_requires_class():
    assert not svc.create_lesson_plan(date(2025, 1, 8), "").is_success


def test_update_lesson_plan_stamps_updated_at():
    plan = LessonPlan(id="p1", date=date(2025, 2, 3), week=0, class_name="LKG", updated_at="2000-01-01T00:00:00+00:00")
    updated = svc.update_lesson_plan(plan).value
    assert updated.week == 5
    assert updated.updated_at > "2000-01-01T00:00:00+00:00"
    assert updated.created_at == updated.updated_at


def test_normalize_keeps_timestamps():
    plan = LessonPlan(id="p1", date=date(2025, 1, 1), week=7, class_name="LKG",
                      activities=[Activity(name="a", time=2)], updated_at="x")
    normalized = svc.normalize_lesson_plan(plan)
    assert (normalized.week, normalized.duration, normalized.updated_at) == (1, 2, "x")


def test_schedule_unit_on_consecutive_days():
    unit = Unit(id="u1", name="Animals", lesson_numbers=["3", "4", "5"])
    plans = svc.schedule_unit(unit, date(2025, 1, 6), "UKG").value

    assert [p.date for p in plans] == [date(2025, 1, 6), date(2025, 1, 7), date(2025, 1, 8)]
    assert [p.week for p in plans] == [1, 1, 2]
    assert [p.lesson_number for p in plans] == ["3", "4", "5"]
    assert len({p.id for p in plans}) == 3
    assert all(p.class_name == "UKG" and p.unit_name == "Animals" for p in plans)


def test_schedule_empty_unit_fails():
    assert not svc.schedule_unit(Unit(id="u1", name="Empty"), date(2025, 1, 6), "UKG").is_success


def test_create_unit_defaults():
    unit = svc.create_unit({"name": "  Weather ", "lesson_numbers": [1, 2]}).value
    assert unit.name == "Weather"
    assert unit.lesson_numbers == ["1", "2"]
    assert unit.color == "#6366F1"
    assert unit.id


def test_duplicate_activity_picks_free_name():
    source = Activity(name="Hello Song", time=5)
    copy = svc.duplicate_activity(source, ["Hello Song", "Hello Song (Copy)", "Hello Song (Copy 2)"]).value
    assert copy.name == "Hello Song (Copy 3)"
    assert copy.time == 5
    assert source.name == "Hello Song"
