import uuid
import logging
from typing import NamedTuple

from pydantic import ValidationError

from mealmate.core.schemas import Ingredient, IngredientOrigin
from mealmate.core.state_store import PANTRY_KEY

logger = logging.getLogger(__name__)

SUGGESTED_INGREDIENTS = [
    {"name": "Onion", "category": "Vegetables"},
    {"name": "Tomato", "category": "Vegetables"},
    {"name": "Rice", "category": "Grains"},
    {"name": "Paneer", "category": "Protein"},
    {"name": "Eggs", "category": "Protein"},
    {"name": "Garlic", "category": "Vegetables"},
    {"name": "Pasta", "category": "Grains"},
    {"name": "Chicken", "category": "Protein"},
]


class PantryChange(NamedTuple):
    name: str
    added: bool
    message: str


def _new_id():
    return uuid.uuid4().hex[:9]


def _name_of(item):
    if isinstance(item, str):
        return item
    if isinstance(item, dict):
        return item.get('name', '')
    return item.name


class InventoryManager:
    def __init__(self, store):
        self.store = store

    def load_pantry(self):
        data = self.store.load(PANTRY_KEY, default=[])
        try:
            return [Ingredient.model_validate(i) for i in data]
        except (ValidationError, TypeError) as e:
            logger.warning("Stored pantry is unreadable, starting empty: %s", e)
            return []

    def save_pantry(self, items):
        self.store.save(PANTRY_KEY, [i.model_dump(mode="json", by_alias=True) for i in items])

    def find_item(self, name, pantry=None):
        pantry = self.load_pantry() if pantry is None else pantry
        key = name.lower()
        return next((i for i in pantry if i.name.lower() == key), None)

    def get_names(self):
        return [i.name for i in self.load_pantry()]

    def toggle_item(self, item, origin=IngredientOrigin.MANUAL):
        """Removes the item if its name is already present (any case), adds it otherwise."""
        name = _name_of(item)
        pantry = self.load_pantry()
        existing = self.find_item(name, pantry)
        if existing:
            pantry = [i for i in pantry if i.name.lower() != name.lower()]
            self.save_pantry(pantry)
            return PantryChange(existing.name, False, f"Removed {name}")

        pantry.append(Ingredient(id=_new_id(), name=name, category=IngredientOrigin(origin).value))
        self.save_pantry(pantry)
        return PantryChange(name, True, f"Added {name}")

    def add_custom_item(self, raw_name):
        """Toggles a manually typed name. Returns None for blank input."""
        name = (raw_name or "").strip()
        if not name:
            return None
        if self.find_item(name):
            logger.info("'%s' is already in the pantry, toggling it off", name)
        return self.toggle_item(name, origin=IngredientOrigin.MANUAL)

    def add_scanned(self, names):
        """Adds confirmed scan results, skipping blanks and names already present."""
        pantry = self.load_pantry()
        added = []
        for raw in names:
            name = (raw or "").strip()
            if not name or self.find_item(name, pantry):
                continue
            pantry.append(Ingredient(id=_new_id(), name=name, category=IngredientOrigin.SCANNED.value))
            added.append(name)
        if added:
            self.save_pantry(pantry)
        return added

    def get_suggested(self):
        pantry = self.load_pantry()
        return [
            {**s, "selected": self.find_item(s["name"], pantry) is not None}
            for s in SUGGESTED_INGREDIENTS
        ]

    def search(self, query):
        pantry = self.load_pantry()
        query = (query or "").strip().lower()
        if not query:
            return pantry
        return [i for i in pantry if query in i.name.lower()]

    def get_summary(self):
        names = self.get_names()
        if not names:
            return "None"
        return ", ".join(names)

    def reset(self):
        self.store.delete(PANTRY_KEY)
