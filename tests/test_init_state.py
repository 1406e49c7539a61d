from mealmate.core.preferences_manager import PreferencesManager
from mealmate.core.state_store import StateStore
from mealmate.scripts.init_state import init_state


def test_init_state_creates_defaults_once(tmp_path):
    state_dir = str(tmp_path / "state")
    created = init_state(state_dir)
    assert "mealmate_prefs_v2.json" in created
    assert init_state(state_dir) == []

    store = StateStore(state_dir)
    assert PreferencesManager(store).load_preferences().name == "Guest"
    assert store.load("mealmate_pantry_v2") == []


def test_init_state_leaves_model_choice_to_environment(tmp_path):
    from mealmate.core.model_manager import ModelManager

    state_dir = str(tmp_path / "state")
    init_state(state_dir)
    assert ModelManager(state_dir=state_dir, model_id="gpt-4o-mini").get_model_id() == "gpt-4o-mini"
