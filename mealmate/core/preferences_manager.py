import logging

from pydantic import ValidationError

from mealmate.core.schemas import Diet, UserPreferences, canonical_day
from mealmate.core.state_store import PREFS_KEY

logger = logging.getLogger(__name__)


def _check_minutes(minutes):
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes <= 0:
        raise ValueError(f"Minutes must be a positive integer, got {minutes!r}")
    return minutes


class PreferencesManager:
    def __init__(self, store):
        self.store = store

    def load_preferences(self):
        """Returns the stored preferences, or the defaults when nothing usable is stored."""
        data = self.store.load(PREFS_KEY)
        if data is None:
            return UserPreferences()
        try:
            return UserPreferences.model_validate(data)
        except ValidationError as e:
            logger.warning("Stored preferences are unreadable, falling back to defaults: %s", e)
            return UserPreferences()

    def save_preferences(self, prefs):
        self.store.save(PREFS_KEY, prefs.model_dump(mode="json", by_alias=True))

    def _update(self, **changes):
        prefs = self.load_preferences().model_copy(update=changes)
        self.save_preferences(prefs)
        return prefs

    def set_diet(self, diet):
        return self._update(diet=Diet(diet))

    def set_base_time(self, minutes):
        return self._update(base_time=_check_minutes(minutes))

    def set_busy_day_override(self, day, minutes):
        day = canonical_day(day)
        busy_days = dict(self.load_preferences().busy_days)
        busy_days[day] = _check_minutes(minutes)
        return self._update(busy_days=busy_days)

    def clear_busy_day_override(self, day):
        day = canonical_day(day)
        busy_days = dict(self.load_preferences().busy_days)
        busy_days.pop(day, None)
        return self._update(busy_days=busy_days)

    def sign_in(self, name=None):
        name = (name or "").strip()
        if name:
            return self._update(name=name, is_logged_in=True)
        return self._update(is_logged_in=True)

    def sign_out(self):
        return self._update(is_logged_in=False)

    def reset(self):
        self.store.delete(PREFS_KEY)
