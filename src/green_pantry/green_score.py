"""Green Score: a bounded composite gamification score.

score = 300 + behavioral + financial + engagement, clamped to [300, 1000].

- behavioral: use rate x 300, minus 25 per waste session containing a
  high-impact (meat/poultry) item, floored at 0
- financial: savings / waste value x 100, capped at 100
- engagement: 5 per distinct logging day (max 75) plus 2 per day since the
  last waste (max 30)

Histories too thin to score get a fixed starter snapshot.
"""

import logging
from datetime import datetime

from .categories import is_high_impact
from .models import (
    Badge,
    GreenScoreBreakdown,
    GreenScoreSnapshot,
    InventoryItem,
    LifecycleState,
    SavingsEvent,
    WasteEvent,
)

logger = logging.getLogger(__name__)

BASE_SCORE = 300
MIN_SCORE = 300
MAX_SCORE = 1000
STARTER_SCORE = 350
MIN_HISTORY = 3

USE_RATE_WEIGHT = 300
HIGH_IMPACT_PENALTY = 25
SAVINGS_RATIO_CAP = 100
CONSISTENCY_POINTS_PER_DAY = 5
CONSISTENCY_CAP = 75
STREAK_POINTS_PER_DAY = 2
STREAK_CAP = 30

TIER_THRESHOLDS: tuple[tuple[int, Badge], ...] = (
    (850, Badge.ECO_LEGEND),
    (700, Badge.ECO_CHAMPION),
    (500, Badge.ECO_NOVICE),
)
PANTRY_PRO_USE_RATE = 0.95
PANTRY_PRO_MIN_ARCHIVED = 10
STREAK_KEEPER_POINTS = 20


def starter_snapshot() -> GreenScoreSnapshot:
    return GreenScoreSnapshot(score=STARTER_SCORE, badges=[Badge.ECO_STARTER])


def score(
    waste_events: list[WasteEvent],
    archived_items: list[InventoryItem],
    savings_events: list[SavingsEvent],
    now: datetime,
) -> GreenScoreSnapshot:
    """Compute the Green Score and badges from the raw history."""
    if len(archived_items) < MIN_HISTORY and len(waste_events) < MIN_HISTORY:
        return starter_snapshot()

    used = sum(1 for i in archived_items if i.state == LifecycleState.USED)
    wasted = sum(1 for i in archived_items if i.state == LifecycleState.WASTED)
    finished = used + wasted
    use_rate = used / finished if finished else 0.0

    use_rate_points = round(use_rate * USE_RATE_WEIGHT)
    high_impact_sessions = sum(
        1 for event in waste_events if any(is_high_impact(item.name) for item in event.items)
    )
    waste_penalty = high_impact_sessions * HIGH_IMPACT_PENALTY
    behavioral = max(0, use_rate_points - waste_penalty)

    total_waste = sum(e.total_peso_value for e in waste_events)
    total_savings = sum(e.amount for e in savings_events)
    savings_ratio = total_savings / total_waste if total_waste > 0 else 1.0
    savings_ratio_points = min(SAVINGS_RATIO_CAP, round(savings_ratio * 100))
    financial = savings_ratio_points

    logging_days = {e.timestamp.date() for e in waste_events}
    consistency_points = min(CONSISTENCY_CAP, len(logging_days) * CONSISTENCY_POINTS_PER_DAY)
    streak_days = _days_since_last_waste(waste_events, now)
    streak_points = min(STREAK_CAP, streak_days * STREAK_POINTS_PER_DAY)
    engagement = consistency_points + streak_points

    raw = BASE_SCORE + behavioral + financial + engagement
    final = round(max(MIN_SCORE, min(MAX_SCORE, raw)))

    badges = [badge for threshold, badge in TIER_THRESHOLDS if final >= threshold]
    if use_rate >= PANTRY_PRO_USE_RATE and finished > PANTRY_PRO_MIN_ARCHIVED:
        badges.append(Badge.PANTRY_PRO)
    if streak_points >= STREAK_KEEPER_POINTS:
        badges.append(Badge.STREAK_KEEPER)

    logger.debug("Green Score %d (raw %d) with badges %s", final, raw, badges)

    return GreenScoreSnapshot(
        score=final,
        breakdown=GreenScoreBreakdown(
            behavioral=behavioral,
            financial=financial,
            engagement=engagement,
            use_rate_points=use_rate_points,
            waste_penalty=waste_penalty,
            savings_ratio_points=savings_ratio_points,
            consistency_points=consistency_points,
            streak_points=streak_points,
        ),
        badges=badges,
    )


def _days_since_last_waste(waste_events: list[WasteEvent], now: datetime) -> int:
    """Days since the most recent waste; a household that never logged waste has no streak."""
    today = now.date()
    past = [e.timestamp.date() for e in waste_events if e.timestamp.date() <= today]
    if not past:
        return 0
    return (today - max(past)).days
