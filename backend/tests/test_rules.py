from datetime import date

import pytest

from lessonplanner.core.errors import ParseError, ValidationError
from lessonplanner.domain.planning.models import Activity, LessonPlan, Unit
from lessonplanner.domain.planning.rules import (
    group_eyfs_statements,
    split_eyfs_statement,
    validate_activity,
    validate_class_name,
    validate_lesson_plan,
    validate_unit,
    week_number,
)


@pytest.mark.parametrize("year", [2023, 2024, 2025])
def test_week_number_first_two_weeks(year):
    assert week_number(date(year, 1, 1)) == 1
    assert week_number(date(year, 1, 7)) == 1
    assert week_number(date(year, 1, 8)) == 2


def test_week_number_end_of_year():
    assert week_number(date(2025, 12, 31)) == 53
    assert week_number(date(2024, 12, 31)) == 53


def test_split_eyfs_statement():
    assert split_eyfs_statement("Communication: Listens attentively") == ("Communication", "Listens attentively")
    assert split_eyfs_statement("Free play is important") == ("General", "Free play is important")
    assert split_eyfs_statement(": leading colon") == ("General", ": leading colon")
    assert split_eyfs_statement("Maths: Counts: to ten") == ("Maths", "Counts: to ten")


def test_group_eyfs_statements_keeps_order():
    grouped = group_eyfs_statements([
        "Physical: Moves safely",
        "Communication: Listens attentively",
        "Physical: Uses scissors",
        "Free play is important",
    ])
    assert list(grouped) == ["Physical", "Communication", "General"]
    assert grouped["Physical"] == ["Moves safely", "Uses scissors"]


def test_validate_class_name():
    assert validate_class_name("LKG", ("LKG", "UKG")).is_success
    result = validate_class_name("Year 9", ("LKG", "UKG"))
    assert not result.is_success
    with pytest.raises(ValidationError):
        result.unwrap()


def test_validate_activity():
    assert validate_activity(Activity(name="Hello Song", time=5)).is_success
    assert not validate_activity(Activity(name=" ")).is_success
    assert not validate_activity(Activity(name="Hello Song", time=-5)).is_success


def test_validate_unit():
    assert validate_unit(Unit(id="u1", name="Animals")).is_success
    assert not validate_unit(Unit(id="", name="Animals")).is_success
    assert not validate_unit(Unit(id="u1", name="")).is_success


def test_lesson_plan_week_must_match_date():
    plan = LessonPlan(id="p1", date=date(2025, 1, 8), week=1, class_name="LKG")
    assert not validate_lesson_plan(plan).is_success
    plan.week = 2
    assert validate_lesson_plan(plan).is_success


def test_lesson_plan_accepts_full_timestamp_date():
    plan = LessonPlan.from_dict({"id": "p1", "date": "2025-01-08T00:00:00.000Z", "className": "LKG"})
    assert plan.date == date(2025, 1, 8)


def test_activity_accepts_legacy_activity_key():
    assert Activity.from_dict({"activity": "Hello Song", "time": "5"}).name == "Hello Song"


@pytest.mark.parametrize("data", [None, [], "Hello Song", {"name": "x", "time": "soon"}])
def test_activity_rejects_bad_shapes(data):
    with pytest.raises(ParseError):
        Activity.from_dict(data)
