import os
import json
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../')))

from mealmate.core.schemas import UserPreferences
from mealmate.core.state_store import HISTORY_KEY, PANTRY_KEY, PREFS_KEY


def init_state(state_dir="state"):
    if not os.path.exists(state_dir):
        os.makedirs(state_dir)
        print(f"Created {state_dir}/")

    files = {
        f"{PREFS_KEY}.json": UserPreferences().model_dump(mode="json", by_alias=True),
        f"{PANTRY_KEY}.json": [],
        f"{HISTORY_KEY}.json": [],
        "model_config.json": {},
    }

    created = []
    for filename, default_content in files.items():
        filepath = os.path.join(state_dir, filename)
        if not os.path.exists(filepath):
            with open(filepath, 'w') as f:
                json.dump(default_content, f, indent=4)
            print(f"Created default {filename}")
            created.append(filename)
        else:
            print(f"Skipped {filename} (already exists)")
    return created


if __name__ == "__main__":
    init_state(os.environ.get("MEALMATE_STATE_DIR", "state"))
