"""Core data models for Green Pantry."""

import math
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .categories import categorize


class StorageLocation(str, Enum):
    """Storage locations for inventory items."""

    COUNTER = "counter"
    PANTRY = "pantry"
    REFRIGERATOR = "refrigerator"
    FREEZER = "freezer"


class LifecycleState(str, Enum):
    """Lifecycle of an inventory item."""

    LIVE = "live"
    USED = "used"
    WASTED = "wasted"


class FoodCategory(str, Enum):
    """Food categories used for waste and consumption breakdowns."""

    VEGETABLES = "Vegetables"
    FRUITS = "Fruits"
    DAIRY = "Dairy"
    GRAINS = "Grains"
    MEAT_FISH = "Meat & Fish"
    OTHER = "Other"


class IngredientStatus(str, Enum):
    """Whether a recipe ingredient is owned, a staple, or must be bought."""

    HAVE = "have"
    BASIC = "basic"
    NEED = "need"


class SavingsType(str, Enum):
    """Mechanism that produced a savings event."""

    AVOIDED_EXPIRY = "avoided_expiry"
    RECIPE_FOLLOWED = "recipe_followed"
    WASTE_REDUCTION_BONUS = "waste_reduction_bonus"
    SMART_SHOPPING = "smart_shopping"  # reserved


class GreenPointsType(str, Enum):
    """Action that earned Green Points."""

    LOG_PANTRY_ITEM = "log_pantry_item"
    USE_PANTRY_ITEM = "use_pantry_item"
    COOK_RECIPE = "cook_recipe"
    ZERO_WASTE_WEEK = "zero_waste_week"


class Badge(str, Enum):
    """Green Score badges."""

    ECO_STARTER = "Eco-Starter"
    ECO_NOVICE = "Eco-Novice"
    ECO_CHAMPION = "Eco-Champion"
    ECO_LEGEND = "Eco-Legend"
    PANTRY_PRO = "Pantry Pro"
    STREAK_KEEPER = "Streak Keeper"


class InventoryItem(BaseModel):
    """A household inventory item."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    quantity: float = 1.0
    unit: str = "pc"
    acquired_date: date = Field(default_factory=date.today)
    shelf_life_by_storage: dict[StorageLocation, int] = Field(default_factory=dict)
    expiration_date: date | None = None
    estimated_cost: float | None = None
    carbon_footprint: float = 0.0
    location: StorageLocation = StorageLocation.PANTRY
    state: LifecycleState = LifecycleState.LIVE
    used_date: date | None = None
    category: FoodCategory | None = None

    @field_validator("shelf_life_by_storage")
    @classmethod
    def _shelf_life_not_negative(
        cls, value: dict[StorageLocation, int]
    ) -> dict[StorageLocation, int]:
        for location, days in value.items():
            if days < 0:
                raise ValueError(f"Negative shelf life for {location.value}: {days}")
        return value

    @property
    def food_category(self) -> FoodCategory:
        """Explicit category, or the keyword match on the item name."""
        return self.category or FoodCategory(categorize(self.name))

    @property
    def is_live(self) -> bool:
        return self.state == LifecycleState.LIVE

    def shelf_life_days(self, default: int = 30) -> int:
        """Shelf life at the current storage location.

        A missing or zero entry falls back to ``default``.
        """
        return self.shelf_life_by_storage.get(self.location) or default

    @property
    def effective_expiration_date(self) -> date:
        """Explicit expiration date, else acquisition date plus shelf life."""
        if self.expiration_date is not None:
            return self.expiration_date
        return self.acquired_date + timedelta(days=self.shelf_life_days())

    def days_until_expiration(self, today: date) -> int:
        return (self.effective_expiration_date - today).days


class WastedFood(BaseModel):
    """One food item thrown away in a waste session."""

    model_config = ConfigDict(frozen=True)

    name: str
    peso_value: float = Field(ge=0)
    carbon_footprint: float = Field(default=0.0, ge=0)
    category: FoodCategory | None = None
    estimated_amount: str | None = None

    @property
    def food_category(self) -> FoodCategory:
        return self.category or FoodCategory(categorize(self.name))


class WasteEvent(BaseModel):
    """A waste session: everything thrown away together, with one reason."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.now)
    items: list[WastedFood] = Field(default_factory=list)
    reason: str | None = None
    total_peso_value: float = 0.0
    total_carbon_footprint: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _fill_totals(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        items = data.get("items") or []
        if data.get("total_peso_value") is None:
            data["total_peso_value"] = round(sum(_item_field(i, "peso_value") for i in items), 2)
        if data.get("total_carbon_footprint") is None:
            data["total_carbon_footprint"] = round(
                sum(_item_field(i, "carbon_footprint") for i in items), 4
            )
        return data

    @model_validator(mode="after")
    def _totals_match_items(self) -> "WasteEvent":
        peso = sum(item.peso_value for item in self.items)
        carbon = sum(item.carbon_footprint for item in self.items)
        if not math.isclose(self.total_peso_value, peso, abs_tol=0.005):
            raise ValueError(
                f"total_peso_value {self.total_peso_value} does not match item sum {peso}"
            )
        if not math.isclose(self.total_carbon_footprint, carbon, abs_tol=0.0005):
            raise ValueError(
                f"total_carbon_footprint {self.total_carbon_footprint} "
                f"does not match item sum {carbon}"
            )
        return self


def _item_field(item: Any, name: str) -> float:
    if isinstance(item, dict):
        return float(item.get(name) or 0.0)
    return float(getattr(item, name, 0.0) or 0.0)


class SavingsEvent(BaseModel):
    """An append-only record attributing a peso amount to a user action."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
    type: SavingsType
    amount: float = Field(ge=0)
    description: str
    calculation_method: str
    related_item_id: UUID | None = None
    week_id: str | None = None
    transferred: bool = False

    @property
    def claim_key(self) -> tuple[str, str, str] | None:
        """Idempotency key for once-per-week claims."""
        if self.week_id is None:
            return None
        return (self.user_id or "", self.week_id, self.type.value)


class GreenPointsEvent(BaseModel):
    """An append-only record of Green Points earned for a user action."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
    type: GreenPointsType
    points: int = Field(ge=0)
    description: str
    related_item_id: UUID | None = None
    related_recipe_id: UUID | None = None
    week_id: str | None = None

    @property
    def claim_key(self) -> tuple[str, str, str] | None:
        """Idempotency key for once-per-week awards."""
        if self.week_id is None:
            return None
        return (self.user_id or "", self.week_id, self.type.value)


class RecipeIngredient(BaseModel):
    """An ingredient line in a recipe."""

    name: str
    quantity: float = 1.0
    unit: str = "pc"
    status: IngredientStatus = IngredientStatus.NEED
    estimated_cost: float | None = None


class Recipe(BaseModel):
    """A recipe the user chose to cook."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    ingredients: list[RecipeIngredient] = Field(default_factory=list)


class DeductionResult(BaseModel):
    """Outcome of deducting recipe ingredients from the pantry."""

    deducted: list[InventoryItem] = Field(default_factory=list)
    missing: list[RecipeIngredient] = Field(default_factory=list)


class WasteStats(BaseModel):
    """A user's historical waste behaviour."""

    log_count: int = 0
    waste_rate: float | None = None


class WeeklyComparison(BaseModel):
    """Waste value for the current and previous ISO calendar week."""

    week_id: str
    this_week_value: float
    last_week_value: float

    @property
    def difference(self) -> float:
        return round(self.last_week_value - self.this_week_value, 2)


# --- Derived snapshots ---


class CategoryValue(BaseModel):
    name: str
    value: float


class NamedCount(BaseModel):
    name: str
    count: int


class WasteTrends(BaseModel):
    """Windowed waste totals and breakdowns."""

    this_week_value: float = 0.0
    last_week_value: float = 0.0
    week_over_week_change: float | None = None
    this_month_value: float = 0.0
    last_month_value: float = 0.0
    month_over_month_change: float | None = None
    total_value: float = 0.0
    total_co2e: float = 0.0
    category_values: dict[str, float] = Field(default_factory=dict)
    category_counts: dict[str, int] = Field(default_factory=dict)
    reason_counts: dict[str, int] = Field(default_factory=dict)
    top_category_by_value: CategoryValue | None = None
    top_category_by_frequency: NamedCount | None = None
    top_reason: NamedCount | None = None
    days_since_last_log: int | None = None
    avg_weekly_value: float = 0.0
    waste_log_frequency: float = 0.0  # sessions per week


class PantryHealth(BaseModel):
    """Freshness buckets for live inventory."""

    total_items: int = 0
    fresh_items: int = 0
    expiring_items: int = 0
    expired_items: int = 0
    total_value: float = 0.0
    health_score: int = 100
    avg_item_duration: float = 0.0  # days from acquisition to leaving the pantry
    turnover_rate: float = 0.0  # percent


class SavingsRollup(BaseModel):
    """Windowed savings totals."""

    total: float = 0.0
    this_week: float = 0.0
    this_month: float = 0.0
    average_per_event: float = 0.0
    by_type: dict[str, float] = Field(default_factory=dict)


class AnalyticsSnapshot(BaseModel):
    """Derived analytics, recomputed from the raw collections on every read."""

    generated_at: datetime
    waste: WasteTrends = Field(default_factory=WasteTrends)
    pantry: PantryHealth = Field(default_factory=PantryHealth)
    savings: SavingsRollup = Field(default_factory=SavingsRollup)
    consumption_velocity: dict[str, float] = Field(default_factory=dict)
    waste_rate_by_category: dict[str, float] = Field(default_factory=dict)
    use_rate: float = 100.0  # percent
    savings_per_waste_peso: float = 0.0


class GreenScoreBreakdown(BaseModel):
    """Sub-scores behind a Green Score."""

    behavioral: int = 0
    financial: int = 0
    engagement: int = 0
    use_rate_points: int = 0
    waste_penalty: int = 0
    savings_ratio_points: int = 0
    consistency_points: int = 0
    streak_points: int = 0


class GreenScoreSnapshot(BaseModel):
    """Bounded composite score with badges."""

    score: int = Field(ge=300, le=1000)
    breakdown: GreenScoreBreakdown = Field(default_factory=GreenScoreBreakdown)
    badges: list[Badge] = Field(default_factory=list)
