import pytest

from mealmate.core import meal_plan
from mealmate.core.schemas import DAYS, Meal, MealSuggestion


def make_plan():
    return [
        Meal(id=str(i), name=chr(ord("A") + i), time=10 * (i + 1), tags=[f"t{i}"],
             is_pantry_friendly=bool(i % 2), day=day)
        for i, day in enumerate(DAYS)
    ]


def test_apply_swap_keeps_day():
    plan = make_plan()
    meal = meal_plan.apply_swap(plan, 2, MealSuggestion(name="Dal", time=25, is_pantry_friendly=True))
    assert meal.day == "Wednesday"
    assert (meal.name, meal.time, meal.is_pantry_friendly) == ("Dal", 25, True)
    assert meal.tags == ["t2"]


def test_apply_swap_ignores_day_in_partial():
    plan = make_plan()
    meal_plan.apply_swap(plan, 0, {"name": "Soup", "day": "Sunday", "isPantryFriendly": False})
    assert plan[0].day == "Monday"
    assert plan[0].name == "Soup"
    assert plan[0].time == 10


def test_apply_swap_bad_index():
    with pytest.raises(IndexError):
        meal_plan.apply_swap(make_plan(), 7, {"name": "X"})
    with pytest.raises(IndexError):
        meal_plan.apply_swap(make_plan(), -1, {"name": "X"})


def test_move_meal_swaps_content_not_days():
    plan = make_plan()
    assert meal_plan.move_meal(plan, 0, "Tuesday")
    assert plan[0].day == "Monday"
    assert plan[0].name == "B"
    assert plan[0].id == "1"
    assert plan[1].day == "Tuesday"
    assert plan[1].name == "A"
    assert plan[1].tags == ["t0"]


def test_move_meal_missing_day_is_noop():
    plan = make_plan()
    before = [m.model_copy() for m in plan]
    assert meal_plan.move_meal(plan, 0, "Someday") is False
    assert plan == before


def test_clear_meal():
    plan = make_plan()
    meal = meal_plan.clear_meal(plan, 4)
    assert meal.day == "Friday"
    assert meal.name == "Dining Out"
    assert meal.time == 0
    assert meal.is_pantry_friendly is False
