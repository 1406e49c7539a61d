import logging
import threading
from contextlib import contextmanager
from datetime import datetime

from mealmate.core import meal_plan
from mealmate.core.errors import EmptyInput, PlanGenerationError, ScanError
from mealmate.core.inventory_manager import InventoryManager
from mealmate.core.model_manager import ModelManager
from mealmate.core.planner import MealPlanner
from mealmate.core.preferences_manager import PreferencesManager
from mealmate.core.schemas import IngredientOrigin, Screen, canonical_day
from mealmate.core.state_store import HISTORY_KEY, StateStore

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


class MealMateAgent:
    """Session state for one user: preferences, pantry, the current week plan and the screen.

    The plan lives in memory only. Every screen change bumps an epoch; an AI
    result that arrives after the epoch moved on is dropped instead of applied.
    """

    def __init__(self, state_dir, model_manager=None, planner=None):
        self.state_dir = state_dir
        self.store = StateStore(state_dir)
        self.preferences_manager = PreferencesManager(self.store)
        self.inventory_manager = InventoryManager(self.store)
        self.model_manager = model_manager or ModelManager(state_dir=state_dir)
        self.planner = planner or MealPlanner(self.model_manager)

        self.screen = Screen.SPLASH
        self.meal_plan = []
        self.swap_options = []
        self.detected_ingredients = []
        self.notice = None
        self.last_request_discarded = False
        self._epoch = 0
        self._lock = threading.RLock()

    # --- Screen & notices ---

    def navigate(self, screen):
        with self._lock:
            self.screen = Screen(screen)
            self._epoch += 1
        return self.screen

    def show_notice(self, message):
        self.notice = message

    def pop_notice(self):
        with self._lock:
            notice, self.notice = self.notice, None
        return notice

    def _begin_request(self, screen=Screen.GENERATE_LOADING):
        with self._lock:
            previous = self.screen
            self.screen = screen
            self.last_request_discarded = False
            return previous, self._epoch

    def _is_stale(self, epoch):
        if epoch != self._epoch:
            logger.info("Discarding result of a request made before the screen changed")
            self.last_request_discarded = True
            return True
        return False

    # --- Pantry ---

    def toggle_pantry_item(self, item, origin=IngredientOrigin.MANUAL):
        change = self.inventory_manager.toggle_item(item, origin=origin)
        self.show_notice(change.message)
        return change

    def add_custom_item(self, raw_name):
        change = self.inventory_manager.add_custom_item(raw_name)
        if change:
            self.show_notice(change.message)
        return change

    @contextmanager
    def scanning(self):
        """Scoped scan session: whatever happens inside, the screen leaves the camera afterwards."""
        self.navigate(Screen.SCAN_CAMERA)
        try:
            yield
        finally:
            with self._lock:
                if self.screen in (Screen.SCAN_CAMERA, Screen.GENERATE_LOADING):
                    self.screen = Screen.PANTRY

    def capture_and_scan(self, image_bytes, mime_type="image/jpeg"):
        """Returns the detected names, or None when the scan failed or was abandoned."""
        with self.scanning():
            _, epoch = self._begin_request()
            try:
                items = self.planner.scan_image(image_bytes, mime_type=mime_type)
            except (ScanError, EmptyInput) as e:
                logger.warning("Scan failed: %s", e)
                with self._lock:
                    if not self._is_stale(epoch):
                        self.show_notice("Scan unsuccessful. Please add manually.")
                return None

            with self._lock:
                if self._is_stale(epoch):
                    return None
                self.detected_ingredients = items
                self.screen = Screen.SCAN_REVIEW
            return items

    def confirm_scan(self, names=None):
        names = self.detected_ingredients if names is None else names
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ValueError("Scan confirmation expects a list of ingredient names")
        added = self.inventory_manager.add_scanned(names)
        self.detected_ingredients = []
        self.navigate(Screen.PANTRY)
        self.show_notice(f"Added {len(added)} items to your pantry.")
        return added

    # --- Plan ---

    def generate_week(self):
        prefs = self.preferences_manager.load_preferences()
        pantry = self.inventory_manager.load_pantry()
        previous, epoch = self._begin_request()
        if previous == Screen.GENERATE_LOADING:
            previous = Screen.DASHBOARD

        try:
            plan = self.planner.generate_plan(prefs, pantry)
        except PlanGenerationError:
            with self._lock:
                if not self._is_stale(epoch):
                    self.show_notice("AI Strategist is busy. Let's try again.")
                    self.screen = previous
            return None

        with self._lock:
            if self._is_stale(epoch):
                return None
            self.meal_plan = plan
            self.screen = Screen.WEEKLY_PLAN
        return plan

    def fetch_swaps(self, index):
        meal = self.meal_plan[index] if 0 <= index < len(self.meal_plan) else None
        if meal is None:
            raise IndexError(f"No meal at position {index}")
        epoch = self._epoch
        options = self.planner.request_swaps(
            meal.name,
            self.preferences_manager.load_preferences(),
            self.inventory_manager.load_pantry(),
            day=meal.day,
        )
        with self._lock:
            if self._is_stale(epoch):
                return []
            self.swap_options = options
        return options

    def swap_meal(self, index, suggestion):
        with self._lock:
            meal = meal_plan.apply_swap(self.meal_plan, index, suggestion)
            self.swap_options = []
        self.show_notice(f"Swapped to {meal.name}")
        return meal

    def move_meal(self, index, target_day):
        target_day = canonical_day(target_day)
        with self._lock:
            moved = meal_plan.move_meal(self.meal_plan, index, target_day)
        if moved:
            self.show_notice(f"Moved to {target_day}")
        return moved

    def dine_out(self, index):
        with self._lock:
            meal = meal_plan.clear_meal(self.meal_plan, index)
        self.show_notice("Strategic pivot: Dining out.")
        return meal

    # --- History ---

    def load_history(self):
        return self.store.load(HISTORY_KEY, default=[])

    def finalize_week(self):
        if not self.meal_plan:
            self.show_notice("Nothing to save yet.")
            return None

        entry = {
            "date": datetime.now().strftime("%Y-%m-%d %H:%M"),
            "meals": [{"day": m.day, "name": m.name, "time": m.time} for m in self.meal_plan],
        }
        history = self.load_history()
        history.append(entry)
        # Keep history manageable
        if len(history) > HISTORY_LIMIT:
            history = history[-HISTORY_LIMIT:]
        self.store.save(HISTORY_KEY, history)
        self.show_notice("Menu saved to your archives.")
        return entry

    # --- Profile ---

    def profile_summary(self):
        prefs = self.preferences_manager.load_preferences()
        return {
            "name": prefs.name,
            "diet": prefs.diet.value,
            "baseTime": prefs.base_time,
            "schedule": "Custom" if prefs.busy_days else "Standard",
            "pantryCount": len(self.inventory_manager.load_pantry()),
            "pantry": self.inventory_manager.get_summary(),
        }

    def reset_all(self):
        """Clears preferences, pantry and history on disk and in memory. Irreversible."""
        self.store.clear()
        with self._lock:
            self.meal_plan = []
            self.swap_options = []
            self.detected_ingredients = []
            self.notice = None
        self.navigate(Screen.SPLASH)
        logger.info("All session data cleared")
