"""Green Points: fixed rewards for sustainable pantry actions.

Points sit beside savings and never affect peso amounts. Each action earns
the amount configured in ``GREEN_POINTS_CONFIG``. A zero-waste week is
awarded at most once per user and week, which the event store enforces
through the event's ``week_id``.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable
from uuid import UUID

from .models import GreenPointsEvent, GreenPointsType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PointsRule:
    """How many points an action earns and how it is described."""

    points: int
    description: str
    default_subject: str = ""


GREEN_POINTS_CONFIG: dict[GreenPointsType, PointsRule] = {
    GreenPointsType.LOG_PANTRY_ITEM: PointsRule(10, 'Logged "{}" in pantry.', "item"),
    GreenPointsType.USE_PANTRY_ITEM: PointsRule(25, 'Used "{}" from pantry.', "item"),
    GreenPointsType.COOK_RECIPE: PointsRule(50, "Cooked the recipe: {}.", "a suggested meal"),
    GreenPointsType.ZERO_WASTE_WEEK: PointsRule(250, "Completed a zero-waste week!"),
}


def award_points(
    event_type: GreenPointsType,
    subject: str | None = None,
    now: datetime | None = None,
    user_id: str | None = None,
    related_item_id: UUID | None = None,
    related_recipe_id: UUID | None = None,
    week_id: str | None = None,
) -> GreenPointsEvent:
    """Build the points event for one action.

    Args:
        event_type: The rewarded action
        subject: Item or recipe name used in the description
        now: Event timestamp
        user_id: Owner of the event
        related_item_id: Inventory item the action was about
        related_recipe_id: Recipe the action was about
        week_id: ISO week for once-per-week awards

    Returns:
        GreenPointsEvent
    """
    rule = GREEN_POINTS_CONFIG[event_type]
    event = GreenPointsEvent(
        user_id=user_id,
        timestamp=now or datetime.now(),
        type=event_type,
        points=rule.points,
        description=rule.description.format(subject or rule.default_subject),
        related_item_id=related_item_id,
        related_recipe_id=related_recipe_id,
        week_id=week_id,
    )
    logger.info("Awarded %d Green Points for %s", event.points, event_type.value)
    return event


def zero_waste_week_points(
    last_week_value: float,
    week_id: str,
    tracked: bool,
    now: datetime | None = None,
    user_id: str | None = None,
) -> GreenPointsEvent | None:
    """Points for a finished week with no logged waste.

    Args:
        last_week_value: Peso value wasted during the finished week
        week_id: ISO week identifier of the finished week
        tracked: Whether the household had pantry items in that week
        now: Event timestamp
        user_id: Owner of the event

    Returns:
        A GreenPointsEvent, or None when the week had waste or no pantry
    """
    if not tracked:
        logger.debug("No zero-waste points for %s: nothing tracked yet", week_id)
        return None
    if last_week_value != 0:
        return None
    return award_points(
        GreenPointsType.ZERO_WASTE_WEEK, now=now, user_id=user_id, week_id=week_id
    )


def total_points(events: Iterable[GreenPointsEvent]) -> int:
    return sum(e.points for e in events)
