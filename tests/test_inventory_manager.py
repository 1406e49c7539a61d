import pytest

from mealmate.core.inventory_manager import InventoryManager
from mealmate.core.schemas import IngredientOrigin


@pytest.fixture
def inventory(store):
    return InventoryManager(store)


def test_toggle_twice_restores_pantry(inventory):
    inventory.toggle_item("Onion")
    before = inventory.get_names()

    inventory.toggle_item("Garlic")
    inventory.toggle_item("Garlic")
    assert inventory.get_names() == before


def test_membership_is_case_insensitive(inventory):
    inventory.toggle_item("Rice")
    change = inventory.toggle_item("rice")
    assert change.added is False
    assert inventory.get_names() == []


def test_toggle_removes_only_matching_name(inventory):
    inventory.toggle_item("Onion")
    inventory.toggle_item("Tomato")
    inventory.toggle_item("onion")
    assert inventory.get_names() == ["Tomato"]


def test_new_items_get_fresh_ids_and_origin(inventory):
    inventory.toggle_item("Onion")
    inventory.toggle_item({"name": "Paneer", "id": "4"}, origin=IngredientOrigin.SUGGESTED)
    onion, paneer = inventory.load_pantry()
    assert onion.category == "Manual"
    assert paneer.category == "Suggested"
    assert paneer.id != "4"
    assert onion.id != paneer.id


def test_add_custom_item(inventory):
    assert inventory.add_custom_item("   ") is None
    assert inventory.add_custom_item(None) is None
    assert inventory.get_names() == []

    change = inventory.add_custom_item("  Lentils ")
    assert change.added
    assert inventory.get_names() == ["Lentils"]

    change = inventory.add_custom_item("LENTILS")
    assert change.added is False
    assert inventory.get_names() == []


def test_add_scanned_skips_existing_and_blank(inventory):
    inventory.toggle_item("Eggs")
    added = inventory.add_scanned(["eggs", "Milk", " ", "Spinach", "milk"])
    assert added == ["Milk", "Spinach"]
    assert [i.category for i in inventory.load_pantry()] == ["Manual", "Scanned", "Scanned"]


def test_suggested_marks_selected(inventory):
    inventory.toggle_item("garlic")
    suggested = {s["name"]: s["selected"] for s in inventory.get_suggested()}
    assert suggested["Garlic"] is True
    assert suggested["Onion"] is False
    assert len(suggested) == 8


def test_search(inventory):
    for name in ["Red Onion", "Tomato", "Spring onion"]:
        inventory.toggle_item(name)
    assert [i.name for i in inventory.search("ONION")] == ["Red Onion", "Spring onion"]
    assert len(inventory.search("")) == 3


def test_summary(inventory):
    assert inventory.get_summary() == "None"
    inventory.toggle_item("Onion")
    inventory.toggle_item("Rice")
    assert inventory.get_summary() == "Onion, Rice"
