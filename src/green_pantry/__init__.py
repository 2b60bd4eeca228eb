"""Green Pantry - Household food waste tracking, savings attribution and Green Score."""

from .analytics import Analytics, aggregate
from .config import ConfigManager
from .data_store import (
    BackendType,
    create_data_store,
    DataStore,
    DuplicateClaimError,
    ItemNotFoundError,
)
from .green_score import score as compute_green_score
from .inventory_manager import deduct, InventoryManager, LifecycleError
from .sqlite_store import SQLiteStore
from .models import (
    AnalyticsSnapshot,
    Badge,
    DeductionResult,
    FoodCategory,
    GreenPointsEvent,
    GreenPointsType,
    GreenScoreSnapshot,
    IngredientStatus,
    InventoryItem,
    LifecycleState,
    Recipe,
    RecipeIngredient,
    SavingsEvent,
    SavingsType,
    StorageLocation,
    WastedFood,
    WasteEvent,
)
from .output_formatter import OutputFormatter
from .points import award_points, zero_waste_week_points
from .savings import avoided_expiry_savings, recipe_followed_savings, weekly_reduction_bonus
from .savings_manager import SavingsManager
from .units import convert, from_base, to_base, UnsupportedConversion

__version__ = "0.1.0"

__all__ = [
    "aggregate",
    "Analytics",
    "AnalyticsSnapshot",
    "avoided_expiry_savings",
    "award_points",
    "Badge",
    "BackendType",
    "ConfigManager",
    "convert",
    "create_data_store",
    "DataStore",
    "deduct",
    "DeductionResult",
    "DuplicateClaimError",
    "FoodCategory",
    "from_base",
    "compute_green_score",
    "GreenPointsEvent",
    "GreenPointsType",
    "GreenScoreSnapshot",
    "IngredientStatus",
    "InventoryItem",
    "InventoryManager",
    "ItemNotFoundError",
    "LifecycleError",
    "LifecycleState",
    "OutputFormatter",
    "Recipe",
    "RecipeIngredient",
    "recipe_followed_savings",
    "SavingsEvent",
    "SavingsManager",
    "SavingsType",
    "SQLiteStore",
    "StorageLocation",
    "to_base",
    "UnsupportedConversion",
    "WastedFood",
    "WasteEvent",
    "weekly_reduction_bonus",
    "zero_waste_week_points",
]
