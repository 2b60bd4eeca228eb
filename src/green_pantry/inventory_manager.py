"""Inventory management and recipe ingredient deduction."""

import logging
import math
from datetime import date, datetime
from uuid import UUID

from .data_store import DataStore, DataStoreProtocol, ItemNotFoundError
from .models import (
    DeductionResult,
    GreenPointsType,
    IngredientStatus,
    InventoryItem,
    LifecycleState,
    Recipe,
    RecipeIngredient,
    SavingsEvent,
    StorageLocation,
    WastedFood,
    WasteEvent,
)
from .points import award_points
from .savings import avoided_expiry_savings, recipe_followed_savings, user_waste_stats
from .units import UnsupportedConversion, from_base, to_base

logger = logging.getLogger(__name__)

# Remaining base quantities below this are treated as fully consumed.
_EPSILON = 1e-9


class LifecycleError(ValueError):
    """Raised when an item that already left the pantry is used or wasted again."""

    def __init__(self, item: InventoryItem):
        self.item = item
        super().__init__(f"'{item.name}' is already {item.state.value}")


def find_match(name: str, live_items: list[InventoryItem]) -> InventoryItem | None:
    """First live item whose name contains ``name`` (or vice versa), ignoring case."""
    needle = name.strip().lower()
    if not needle:
        return None
    for item in live_items:
        haystack = item.name.lower()
        if needle in haystack or haystack in needle:
            return item
    return None


def deduct(
    required_ingredients: list[RecipeIngredient],
    live_items: list[InventoryItem],
    now: datetime | None = None,
) -> DeductionResult:
    """Deduct owned recipe ingredients from the pantry.

    Only ingredients marked as already owned are matched. Staples and
    ingredients to buy are ignored. Inputs are left untouched; the returned
    ``deducted`` list holds updated copies, and an item whose quantity
    reaches zero becomes ``used``.

    Args:
        required_ingredients: Ingredients of the recipe
        live_items: Current live pantry items
        now: When the deduction happens

    Returns:
        DeductionResult with deducted items and unsatisfied ingredients
    """
    used_on = (now or datetime.now()).date()
    working = [item.model_copy(deep=True) for item in live_items if item.is_live]
    touched: dict[UUID, InventoryItem] = {}
    missing: list[RecipeIngredient] = []

    for ingredient in required_ingredients:
        if ingredient.status != IngredientStatus.HAVE:
            continue

        candidates = [i for i in working if i.is_live and i.quantity > 0]
        item = find_match(ingredient.name, candidates)
        if item is None:
            logger.debug("No pantry match for %s", ingredient.name)
            missing.append(ingredient)
            continue

        if math.isnan(ingredient.quantity) or ingredient.quantity <= 0:
            logger.debug("Invalid quantity %r for %s", ingredient.quantity, ingredient.name)
            missing.append(ingredient)
            continue

        try:
            needed = to_base(ingredient.quantity, ingredient.unit, item.name)
            available = to_base(item.quantity, item.unit, item.name)
        except UnsupportedConversion as e:
            logger.warning("Skipping %s: %s", ingredient.name, e)
            missing.append(ingredient)
            continue

        if needed.base_unit != available.base_unit:
            logger.warning(
                "Skipping %s: %s and %s are not comparable",
                ingredient.name,
                ingredient.unit,
                item.unit,
            )
            missing.append(ingredient)
            continue

        if available.quantity + _EPSILON < needed.quantity:
            logger.debug(
                "Not enough %s: need %s %s, have %s %s",
                item.name,
                needed.quantity,
                needed.base_unit,
                available.quantity,
                available.base_unit,
            )
            missing.append(ingredient)
            continue

        remaining = available.quantity - needed.quantity
        if remaining <= _EPSILON:
            item.quantity = 0.0
            item.state = LifecycleState.USED
            item.used_date = used_on
        else:
            try:
                item.quantity = round(
                    from_base(remaining, available.base_unit, item.unit, item.name).quantity, 4
                )
            except UnsupportedConversion as e:
                logger.warning("Skipping %s: %s", ingredient.name, e)
                missing.append(ingredient)
                continue
        touched[item.id] = item

    return DeductionResult(deducted=list(touched.values()), missing=missing)


class InventoryManager:
    """Manages household inventory and the savings it earns."""

    def __init__(self, data_store: DataStoreProtocol | None = None, user_id: str | None = None):
        self.data_store = data_store or DataStore()
        self.user_id = user_id

    def add_item(
        self,
        name: str,
        quantity: float = 1.0,
        unit: str = "pc",
        estimated_cost: float | None = None,
        location: StorageLocation = StorageLocation.PANTRY,
        shelf_life_by_storage: dict[StorageLocation, int] | None = None,
        expiration_date: date | None = None,
        acquired_date: date | None = None,
        carbon_footprint: float = 0.0,
    ) -> InventoryItem:
        """Add an item to the pantry and award logging points.

        Args:
            name: Name of the item
            quantity: Quantity in stock
            unit: Unit of measurement
            estimated_cost: Estimated peso cost
            location: Storage location
            shelf_life_by_storage: Days of shelf life per storage location
            expiration_date: Explicit expiration date
            acquired_date: Date acquired, defaults to today
            carbon_footprint: Carbon-equivalent value in kg

        Returns:
            The created InventoryItem
        """
        item = InventoryItem(
            name=name,
            quantity=quantity,
            unit=unit,
            estimated_cost=estimated_cost,
            location=location,
            shelf_life_by_storage=shelf_life_by_storage or {},
            expiration_date=expiration_date,
            acquired_date=acquired_date or date.today(),
            carbon_footprint=carbon_footprint,
        )
        self.data_store.add_inventory_item(item)
        self._award(GreenPointsType.LOG_PANTRY_ITEM, item.name, related_item_id=item.id)
        return item

    def get_item(self, item_id: str | UUID) -> InventoryItem:
        """Get a stored item.

        Raises:
            ItemNotFoundError: If item not found
        """
        if isinstance(item_id, str):
            item_id = UUID(item_id)
        item = self.data_store.get_inventory_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def get_live_items(self, location: StorageLocation | None = None) -> list[InventoryItem]:
        items = [i for i in self.data_store.load_inventory() if i.is_live]
        if location:
            items = [i for i in items if i.location == location]
        return items

    def get_archived_items(self) -> list[InventoryItem]:
        return [i for i in self.data_store.load_inventory() if not i.is_live]

    def use_item(
        self,
        item_id: str | UUID,
        usage_efficiency: float = 1.0,
        now: datetime | None = None,
    ) -> tuple[InventoryItem, SavingsEvent | None]:
        """Mark an item as used, award points and attribute avoided-expiry savings.

        Args:
            item_id: UUID of the item
            usage_efficiency: Fraction of the item actually used
            now: When it was used

        Returns:
            The archived item and the savings event, if any

        Raises:
            ItemNotFoundError: If item not found
            LifecycleError: If the item already left the pantry
        """
        now = now or datetime.now()
        item = self._archive(item_id, LifecycleState.USED, now.date())
        event = self._attribute_avoided_expiry(item, usage_efficiency, now)
        self._award(GreenPointsType.USE_PANTRY_ITEM, item.name, now, related_item_id=item.id)
        return item, event

    def waste_item(
        self,
        item_id: str | UUID,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> tuple[InventoryItem, WasteEvent]:
        """Mark an item as wasted and log a waste event for it.

        Raises:
            ItemNotFoundError: If item not found
            LifecycleError: If the item already left the pantry
        """
        now = now or datetime.now()
        item = self._archive(item_id, LifecycleState.WASTED, now.date())
        event = WasteEvent(
            timestamp=now,
            reason=reason,
            items=[
                WastedFood(
                    name=item.name,
                    peso_value=item.estimated_cost or 0.0,
                    carbon_footprint=item.carbon_footprint,
                    category=item.category,
                    estimated_amount=f"{item.quantity:g} {item.unit}",
                )
            ],
        )
        self.data_store.add_waste_event(event)
        return item, event

    def cook_recipe(
        self,
        recipe: Recipe,
        now: datetime | None = None,
    ) -> tuple[DeductionResult, list[SavingsEvent]]:
        """Deduct a cooked recipe's owned ingredients and attribute savings.

        Items the recipe uses up are archived as used and earn avoided-expiry
        savings; the recipe itself earns recipe savings and cooking points.

        Returns:
            The deduction result and the savings events appended
        """
        now = now or datetime.now()
        result = deduct(recipe.ingredients, self.get_live_items(), now=now)
        events: list[SavingsEvent] = []

        for item in result.deducted:
            if item.state == LifecycleState.USED:
                self.data_store.update_inventory_item(item)
                event = self._attribute_avoided_expiry(item, 1.0, now)
                if event is not None:
                    events.append(event)
            else:
                self.data_store.set_inventory_quantity(item.id, item.quantity)

        recipe_event = recipe_followed_savings(recipe, now=now, user_id=self.user_id)
        if recipe_event is not None:
            self.data_store.append_savings_event(recipe_event)
            events.append(recipe_event)
        self._award(GreenPointsType.COOK_RECIPE, recipe.name, now, related_recipe_id=recipe.id)

        if result.missing:
            logger.info(
                "Cooked %s with %d ingredient(s) not deducted: %s",
                recipe.name,
                len(result.missing),
                ", ".join(i.name for i in result.missing),
            )
        return result, events

    def _archive(self, item_id: str | UUID, state: LifecycleState, when: date) -> InventoryItem:
        item = self.get_item(item_id)
        if not item.is_live:
            raise LifecycleError(item)
        item.state = state
        item.used_date = when
        self.data_store.update_inventory_item(item)
        return item

    def _attribute_avoided_expiry(
        self,
        item: InventoryItem,
        usage_efficiency: float,
        now: datetime,
    ) -> SavingsEvent | None:
        stats = user_waste_stats(
            [i for i in self.get_archived_items() if i.id != item.id],
            self.data_store.load_waste_events(),
        )
        event = avoided_expiry_savings(
            item,
            usage_efficiency,
            historical_waste_rate=stats.waste_rate,
            waste_log_count=stats.log_count,
            consumed_on=item.used_date,
            now=now,
            user_id=self.user_id,
        )
        if event is not None:
            self.data_store.append_savings_event(event)
        return event

    def _award(
        self,
        event_type: GreenPointsType,
        subject: str,
        now: datetime | None = None,
        **related: UUID,
    ) -> None:
        event = award_points(event_type, subject, now=now, user_id=self.user_id, **related)
        self.data_store.append_points_event(event)
