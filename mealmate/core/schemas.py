from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def canonical_day(day):
    """Returns the canonical weekday name for `day` (case-insensitive) or raises ValueError."""
    if isinstance(day, str):
        for name in DAYS:
            if name.lower() == day.strip().lower():
                return name
    raise ValueError(f"Unknown weekday: {day!r}")


class Diet(str, Enum):
    VEGETARIAN = "Vegetarian"
    NON_VEG = "Non-veg"
    EGG_ONLY = "Egg-only"
    VEGAN = "Vegan"


class Screen(str, Enum):
    SPLASH = "SPLASH"
    LOGIN = "LOGIN"
    SIGNUP = "SIGNUP"
    WELCOME = "WELCOME"
    DIET = "DIET"
    TIME_SETUP = "TIME_SETUP"
    DASHBOARD = "DASHBOARD"
    PANTRY = "PANTRY"
    SCAN_CAMERA = "SCAN_CAMERA"
    SCAN_REVIEW = "SCAN_REVIEW"
    GENERATE_LOADING = "GENERATE_LOADING"
    WEEKLY_PLAN = "WEEKLY_PLAN"
    PROFILE = "PROFILE"


class IngredientOrigin(str, Enum):
    MANUAL = "Manual"
    SCANNED = "Scanned"
    SUGGESTED = "Suggested"


# Stored JSON and model payloads use camelCase keys (baseTime, isPantryFriendly, ...)
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserPreferences(CamelModel):
    name: str = "Guest"
    diet: Diet = Diet.VEGETARIAN
    base_time: int = 30
    busy_days: dict[str, int] = {}
    is_logged_in: bool = False

    def time_for(self, day):
        return self.busy_days.get(day, self.base_time)

    def day_budgets(self):
        return {day: self.time_for(day) for day in DAYS}


class Ingredient(CamelModel):
    id: str
    name: str
    category: str | None = None


# Pydantic Schemas for Structured Output
class PlannedMeal(CamelModel):
    name: str
    time: int
    tags: list[str]
    is_pantry_friendly: bool
    day: str


class Meal(PlannedMeal):
    id: str | None = None


class MealSuggestion(CamelModel):
    name: str
    time: int
    is_pantry_friendly: bool


class MealPatch(CamelModel):
    """Any subset of Meal fields; used to merge a suggestion into a plan slot."""
    id: str | None = None
    name: str | None = None
    time: int | None = None
    tags: list[str] | None = None
    is_pantry_friendly: bool | None = None
    day: str | None = None


class WeekMenu(CamelModel):
    meals: list[PlannedMeal]


class SwapOptions(CamelModel):
    options: list[MealSuggestion]
