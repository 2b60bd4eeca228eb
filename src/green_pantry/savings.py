"""Savings attribution.

Each mechanism turns one trigger (an item consumed, a recipe cooked, a
weekly waste comparison) into at most one ``SavingsEvent``. The functions
are stateless: calling one twice for the same trigger emits twice, and the
event store is responsible for uniqueness.

Bad input data (missing or negative costs, NaN, an item already past its
expiry) yields ``None`` instead of an exception. Ambiguity resolves toward
emitting nothing rather than guessing an amount.
"""

import logging
import math
from datetime import date, datetime
from typing import Iterable

from .models import (
    IngredientStatus,
    InventoryItem,
    LifecycleState,
    Recipe,
    SavingsEvent,
    SavingsType,
    WasteEvent,
    WasteStats,
)

logger = logging.getLogger(__name__)

ALTERNATIVE_MEAL_COST = 150.0
RECIPE_SAVINGS_CAP = 100.0
DEFAULT_SHELF_LIFE_DAYS = 30
COLD_START_WASTE_PROBABILITY = 0.25
MIN_WASTE_LOGS_FOR_HISTORY = 10

# (max freshness ratio, spoil probability), checked in order
SPOIL_PROBABILITY_BREAKPOINTS: tuple[tuple[float, float], ...] = (
    (0.10, 0.90),
    (0.25, 0.70),
    (0.50, 0.40),
    (0.75, 0.20),
)
FRESH_SPOIL_PROBABILITY = 0.05


def _is_valid_number(value: float | None) -> bool:
    return value is not None and not math.isnan(value) and not math.isinf(value)


def spoil_probability(freshness_ratio: float) -> float:
    """Probability that an item would have spoiled, from its freshness ratio."""
    for upper, probability in SPOIL_PROBABILITY_BREAKPOINTS:
        if freshness_ratio <= upper:
            return probability
    return FRESH_SPOIL_PROBABILITY


def iso_week_id(moment: date | datetime) -> str:
    """ISO week identifier such as ``2026-W43``."""
    year, week, _ = moment.isocalendar()
    return f"{year}-W{week:02d}"


def user_waste_stats(
    archived_items: Iterable[InventoryItem],
    waste_events: Iterable[WasteEvent],
) -> WasteStats:
    """Historical waste behaviour used as the avoided-expiry baseline.

    ``waste_rate`` is None until at least one item was used or wasted.
    """
    used = wasted = 0
    for item in archived_items:
        if item.state == LifecycleState.USED:
            used += 1
        elif item.state == LifecycleState.WASTED:
            wasted += 1
    total = used + wasted
    return WasteStats(
        log_count=sum(1 for _ in waste_events),
        waste_rate=round(wasted / total, 4) if total else None,
    )


def avoided_expiry_savings(
    item: InventoryItem,
    usage_efficiency: float,
    historical_waste_rate: float | None = None,
    waste_log_count: int = 0,
    consumed_on: date | None = None,
    now: datetime | None = None,
    user_id: str | None = None,
) -> SavingsEvent | None:
    """Savings for using an item before it expired.

    amount = cost x spoil probability x user waste probability x usage efficiency

    Args:
        item: The consumed inventory item
        usage_efficiency: Fraction of the item used, in (0, 1]
        historical_waste_rate: The user's waste rate, trusted once they have
            at least ten waste logs; None falls back to the cold-start prior
        waste_log_count: Number of waste logs the user has recorded
        consumed_on: Consumption date, defaults to ``now``'s date
        now: Event timestamp
        user_id: Owner of the event

    Returns:
        A SavingsEvent, or None when nothing can be attributed
    """
    now = now or datetime.now()
    consumed_on = consumed_on or now.date()
    cost = item.estimated_cost

    if not _is_valid_number(cost) or cost <= 0:
        logger.debug("No avoided-expiry savings for %s: missing or invalid cost", item.name)
        return None
    if not _is_valid_number(usage_efficiency) or not 0 < usage_efficiency <= 1:
        logger.debug(
            "No avoided-expiry savings for %s: usage efficiency %r out of range",
            item.name,
            usage_efficiency,
        )
        return None

    expiry = item.effective_expiration_date
    if consumed_on > expiry:
        logger.debug("No avoided-expiry savings for %s: used after expiry", item.name)
        return None

    shelf_life = item.shelf_life_days(DEFAULT_SHELF_LIFE_DAYS)
    days_until_expiry = (expiry - consumed_on).days
    freshness_ratio = max(0.0, days_until_expiry / shelf_life)
    spoil = spoil_probability(freshness_ratio)

    if waste_log_count >= MIN_WASTE_LOGS_FOR_HISTORY and _is_valid_number(historical_waste_rate):
        waste_probability = min(1.0, max(0.0, historical_waste_rate))  # type: ignore[type-var]
    else:
        waste_probability = COLD_START_WASTE_PROBABILITY

    amount = round(cost * spoil * waste_probability * usage_efficiency, 2)
    if amount <= 0:
        return None

    event = SavingsEvent(
        user_id=user_id,
        timestamp=now,
        type=SavingsType.AVOIDED_EXPIRY,
        amount=amount,
        description=(
            f'Used {usage_efficiency * 100:.0f}% of "{item.name}" '
            f"{days_until_expiry} day(s) before expiry."
        ),
        calculation_method=(
            f"Price (₱{cost:.2f}) × Spoil Prob. ({spoil:g}) × "
            f"User Waste Prob. ({waste_probability:g}) × Usage ({usage_efficiency:g})"
        ),
        related_item_id=item.id,
    )
    logger.info("Attributed ₱%.2f avoided-expiry savings to %s", amount, item.name)
    return event


def recipe_followed_savings(
    recipe: Recipe,
    now: datetime | None = None,
    user_id: str | None = None,
) -> SavingsEvent | None:
    """Savings for cooking a recipe instead of buying an alternative meal.

    amount = min(ALTERNATIVE_MEAL_COST - cost of ingredients to buy, RECIPE_SAVINGS_CAP)
    """
    needed_cost = 0.0
    for ingredient in recipe.ingredients:
        if ingredient.status != IngredientStatus.NEED or ingredient.estimated_cost is None:
            continue
        if not _is_valid_number(ingredient.estimated_cost) or ingredient.estimated_cost < 0:
            logger.debug(
                "No recipe savings for %s: invalid cost for %s", recipe.name, ingredient.name
            )
            return None
        needed_cost += ingredient.estimated_cost

    amount = round(min(ALTERNATIVE_MEAL_COST - needed_cost, RECIPE_SAVINGS_CAP), 2)
    if amount <= 0:
        logger.debug("No recipe savings for %s: needed ingredients cost ₱%.2f", recipe.name, needed_cost)
        return None

    event = SavingsEvent(
        user_id=user_id,
        timestamp=now or datetime.now(),
        type=SavingsType.RECIPE_FOLLOWED,
        amount=amount,
        description=f'Cooked "{recipe.name}" instead of opting for a more expensive meal.',
        calculation_method=(
            f"min(Alternative Meal Cost (₱{ALTERNATIVE_MEAL_COST:.2f}) - "
            f"Needed Ingredients (₱{needed_cost:.2f}), Cap (₱{RECIPE_SAVINGS_CAP:.2f}))"
        ),
    )
    logger.info("Attributed ₱%.2f recipe savings to %s", amount, recipe.name)
    return event


def weekly_reduction_bonus(
    this_week_value: float,
    last_week_value: float,
    week_id: str | None = None,
    now: datetime | None = None,
    user_id: str | None = None,
) -> SavingsEvent | None:
    """Bonus equal to the drop in waste value from last week to this week.

    Each week may be claimed once; the caller passes ``week_id`` so the
    event store can enforce that.
    """
    if not (_is_valid_number(this_week_value) and _is_valid_number(last_week_value)):
        return None
    if this_week_value < 0 or last_week_value < 0:
        return None

    difference = round(last_week_value - this_week_value, 2)
    if difference <= 0:
        return None

    now = now or datetime.now()
    event = SavingsEvent(
        user_id=user_id,
        timestamp=now,
        type=SavingsType.WASTE_REDUCTION_BONUS,
        amount=difference,
        description=(
            f"Bonus for reducing waste by ₱{difference:.2f} this week "
            f"(₱{last_week_value:.2f} last week, ₱{this_week_value:.2f} this week)."
        ),
        calculation_method=(
            f"Last Week (₱{last_week_value:.2f}) - This Week (₱{this_week_value:.2f})"
        ),
        week_id=week_id or iso_week_id(now),
    )
    logger.info("Weekly waste reduction bonus of ₱%.2f for %s", difference, event.week_id)
    return event
