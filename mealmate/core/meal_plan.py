"""In-place edits of a week plan.

A plan is a list of seven Meals, Monday first. Slots are addressed by
position; each slot keeps its own day label whatever content it holds.
"""
from pydantic import BaseModel

from mealmate.core.schemas import MealPatch

DINING_OUT = "Dining Out"


def _check_index(plan, index):
    if not 0 <= index < len(plan):
        raise IndexError(f"No meal at position {index}")


def apply_swap(plan, index, suggestion):
    """Merges the suggestion's fields into plan[index]. The slot's day never changes."""
    _check_index(plan, index)
    if isinstance(suggestion, BaseModel):
        suggestion = suggestion.model_dump(exclude_unset=True)
    patch = MealPatch.model_validate(suggestion)
    update = patch.model_dump(exclude_unset=True, exclude_none=True, exclude={"day"})
    plan[index] = plan[index].model_copy(update=update)
    return plan[index]


def find_day(plan, day):
    return next((i for i, meal in enumerate(plan) if meal.day == day), None)


def move_meal(plan, source_index, target_day):
    """Exchanges everything but the day between plan[source_index] and the slot for target_day.

    Returns False (and leaves the plan alone) when no slot has that day.
    """
    _check_index(plan, source_index)
    target_index = find_day(plan, target_day)
    if target_index is None:
        return False
    source, target = plan[source_index], plan[target_index]
    plan[source_index] = target.model_copy(update={"day": source.day})
    plan[target_index] = source.model_copy(update={"day": target.day})
    return True


def clear_meal(plan, index):
    _check_index(plan, index)
    plan[index] = plan[index].model_copy(update={
        "name": DINING_OUT,
        "time": 0,
        "tags": [DINING_OUT],
        "is_pantry_friendly": False,
    })
    return plan[index]
