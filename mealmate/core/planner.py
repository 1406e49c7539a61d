import uuid
import logging

from pydantic import ValidationError

from mealmate.core.errors import (
    AIServiceError, EmptyInput, MalformedResponse,
    PlanGenerationError, ScanError, SwapFetchError,
)
from mealmate.core.schemas import DAYS, Meal, SwapOptions, WeekMenu

logger = logging.getLogger(__name__)

MIN_SWAPS = 3
MAX_SWAPS = 5

SCAN_PROMPT = (
    "List the food items and raw ingredients you see in this fridge/pantry image. "
    "Return only a comma-separated list of names."
)


def _pantry_list(pantry):
    names = [i if isinstance(i, str) else i.name for i in pantry]
    return ", ".join(names) or "None"


def build_plan_prompt(prefs, pantry):
    budgets = "\n".join(f"- {day}: at most {minutes} minutes" for day, minutes in prefs.day_budgets().items())
    return f"""
    Create a dinner meal plan for one week ({', '.join(DAYS)}).

    User diet: {prefs.diet.value}.
    Cooking time available per day:
    {budgets}
    Pantry items available: {_pantry_list(pantry)}.

    Rules:
    1. Prioritize using pantry items and set `isPantryFriendly` when a dish relies on them.
    2. Respect the diet strictly and keep each dish within that day's time.
    3. Add short tags such as "Quick", "Healthy" or "Pantry-first".
    4. Return exactly 7 meals, one per day, in the order {', '.join(DAYS)}, with `day` set to the weekday name.
    """


def build_swap_prompt(meal_name, prefs, pantry, max_time):
    return f"""
    Suggest {MIN_SWAPS}-{MAX_SWAPS} alternative dinner meals for someone who doesn't want "{meal_name}".
    Diet: {prefs.diet.value}. Max time: {max_time} mins.
    Pantry: {_pantry_list(pantry)}.
    Return the alternatives with their name, time in minutes and isPantryFriendly.
    """


def parse_ingredient_list(text):
    """Splits a comma-separated answer into trimmed, non-empty names."""
    if not text:
        return []
    return [s.strip() for s in text.split(",") if s.strip()]


def _decode(text, schema):
    if not text:
        raise MalformedResponse("Model returned an empty response")
    try:
        return schema.model_validate_json(text)
    except ValidationError as e:
        raise MalformedResponse(f"Response does not match {schema.__name__}: {e}") from e


class MealPlanner:
    """Issues the three AI requests and decodes their answers strictly."""

    def __init__(self, model_manager):
        self.model_manager = model_manager

    def _fetch_plan(self, prefs, pantry):
        text = self.model_manager.generate(build_plan_prompt(prefs, pantry), WeekMenu)
        menu = _decode(text, WeekMenu)

        if len(menu.meals) != len(DAYS):
            raise MalformedResponse(f"Expected {len(DAYS)} meals, got {len(menu.meals)}")

        meals = []
        for day, planned in zip(DAYS, menu.meals):
            if planned.day.strip().lower() != day.lower():
                raise MalformedResponse(f"Expected {day}, got {planned.day!r}")
            if planned.time < 0:
                raise MalformedResponse(f"Negative cooking time for {day}")
            meals.append(Meal(id=str(uuid.uuid4()), **planned.model_dump(exclude={"day"}), day=day))
        return meals

    def generate_plan(self, prefs, pantry):
        """Returns seven meals, Monday first, or raises PlanGenerationError. Never a partial week."""
        try:
            return self._fetch_plan(prefs, pantry)
        except AIServiceError as e:
            logger.error("Generation error: %s", e)
            raise PlanGenerationError(str(e)) from e

    def fetch_swaps(self, meal_name, prefs, pantry, day=None):
        max_time = prefs.time_for(day) if day else prefs.base_time
        try:
            text = self.model_manager.generate(build_swap_prompt(meal_name, prefs, pantry, max_time), SwapOptions)
            options = _decode(text, SwapOptions).options
            if not MIN_SWAPS <= len(options) <= MAX_SWAPS:
                raise MalformedResponse(f"Expected {MIN_SWAPS}-{MAX_SWAPS} suggestions, got {len(options)}")
        except AIServiceError as e:
            raise SwapFetchError(str(e)) from e
        return options

    def request_swaps(self, meal_name, prefs, pantry, day=None):
        """Like fetch_swaps, but any failure yields an empty list."""
        try:
            return self.fetch_swaps(meal_name, prefs, pantry, day=day)
        except SwapFetchError as e:
            logger.warning("Swap error: %s", e)
            return []

    def scan_image(self, image_bytes, mime_type="image/jpeg"):
        if not image_bytes:
            raise EmptyInput("No image to scan")
        try:
            text = self.model_manager.describe_image(SCAN_PROMPT, image_bytes, mime_type=mime_type)
        except AIServiceError as e:
            logger.error("Scan error: %s", e)
            raise ScanError(str(e)) from e
        return parse_ingredient_list(text)
