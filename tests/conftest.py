"""Shared test fixtures for Green Pantry."""

import json
from datetime import date, datetime

import pytest

from green_pantry.data_store import DataStore
from green_pantry.models import (
    IngredientStatus,
    InventoryItem,
    Recipe,
    RecipeIngredient,
    StorageLocation,
)

# Wednesday, ISO week 43 of 2026
NOW = datetime(2026, 10, 21, 12, 0)


@pytest.fixture
def now():
    """Fixed reference time."""
    return NOW


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def make_item():
    """Factory for inventory items."""

    def _make(name="Milk", **kwargs):
        kwargs.setdefault("acquired_date", date(2026, 10, 15))
        return InventoryItem(name=name, **kwargs)

    return _make


@pytest.fixture
def fresh_milk(make_item):
    """Milk worth ₱100 with 10 days of fridge life, expiring on the 22nd."""
    return make_item(
        "Milk",
        estimated_cost=100.0,
        location=StorageLocation.REFRIGERATOR,
        shelf_life_by_storage={StorageLocation.REFRIGERATOR: 10},
        acquired_date=date(2026, 10, 12),
        unit="l",
    )


@pytest.fixture
def sample_recipe():
    """Adobo recipe using owned chicken and garlic."""
    return Recipe(
        name="Chicken Adobo",
        ingredients=[
            RecipeIngredient(name="chicken", quantity=500, unit="g", status=IngredientStatus.HAVE),
            RecipeIngredient(name="garlic", quantity=3, unit="cloves", status=IngredientStatus.HAVE),
            RecipeIngredient(name="soy sauce", quantity=2, unit="tbsp", status=IngredientStatus.BASIC),
            RecipeIngredient(
                name="bay leaves",
                quantity=1,
                unit="pack",
                status=IngredientStatus.NEED,
                estimated_cost=20.0,
            ),
        ],
    )


@pytest.fixture
def sample_recipe_json(sample_recipe):
    """Sample recipe as JSON string."""
    return json.dumps(sample_recipe.model_dump(mode="json"))
