import os
import json
import logging

logger = logging.getLogger(__name__)

PREFS_KEY = "mealmate_prefs_v2"
PANTRY_KEY = "mealmate_pantry_v2"
HISTORY_KEY = "mealmate_history_v2"

STATE_KEYS = [PREFS_KEY, PANTRY_KEY, HISTORY_KEY]


class StateStore:
    """Flat key-value storage: one JSON file per key inside `state_dir`."""

    def __init__(self, state_dir):
        self.state_dir = state_dir
        os.makedirs(self.state_dir, exist_ok=True)

    def _path(self, key):
        return os.path.join(self.state_dir, f"{key}.json")

    def load(self, key, default=None):
        path = self._path(key)
        if os.path.exists(path):
            try:
                with open(path, 'r') as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Could not read %s, using default: %s", path, e)
        return default

    def save(self, key, value):
        with open(self._path(key), 'w') as f:
            json.dump(value, f, indent=4)
        logger.debug("Saved %s", key)

    def delete(self, key):
        path = self._path(key)
        if os.path.exists(path):
            os.remove(path)
            return True
        return False

    def clear(self):
        for key in STATE_KEYS:
            self.delete(key)
