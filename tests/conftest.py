import json

import pytest

from mealmate.core.agent import MealMateAgent
from mealmate.core.schemas import DAYS
from mealmate.core.state_store import StateStore


class FakeModelManager:
    """Stands in for ModelManager: hands out queued answers (or raises queued errors)."""

    def __init__(self):
        self.responses = []
        self.image_responses = []
        self.calls = []

    def _next(self, queue):
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if callable(item):
            item = item()
        return item

    def generate(self, prompt, schema, system_instruction=None, model_id=None):
        self.calls.append(("generate", prompt, schema))
        return self._next(self.responses)

    def describe_image(self, prompt, image_bytes, mime_type="image/jpeg", model_id=None):
        self.calls.append(("describe_image", prompt, image_bytes))
        return self._next(self.image_responses)


def week_json(days=DAYS, names=None):
    names = names or [f"Dish {i}" for i in range(len(days))]
    return json.dumps({"meals": [
        {"name": name, "time": 20 + i, "tags": ["Quick"], "isPantryFriendly": i % 2 == 0, "day": day}
        for i, (name, day) in enumerate(zip(names, days))
    ]})


def swaps_json(count=3):
    return json.dumps({"options": [
        {"name": f"Option {i}", "time": 15, "isPantryFriendly": True} for i in range(count)
    ]})


@pytest.fixture
def state_dir(tmp_path):
    return str(tmp_path / "state")


@pytest.fixture
def store(state_dir):
    return StateStore(state_dir)


@pytest.fixture
def fake_models():
    return FakeModelManager()


@pytest.fixture
def agent(state_dir, fake_models):
    return MealMateAgent(state_dir, model_manager=fake_models)
