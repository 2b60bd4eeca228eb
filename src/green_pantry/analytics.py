"""Analytics and aggregation for Green Pantry."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta

from .data_store import DataStore, DataStoreProtocol
from .green_score import score as compute_green_score
from .models import (
    AnalyticsSnapshot,
    CategoryValue,
    GreenScoreSnapshot,
    InventoryItem,
    LifecycleState,
    NamedCount,
    PantryHealth,
    SavingsEvent,
    SavingsRollup,
    WastedFood,
    WasteEvent,
    WasteTrends,
    WeeklyComparison,
)
from .savings import iso_week_id

logger = logging.getLogger(__name__)

EXPIRING_SOON_DAYS = 3
# Per-week averages cover at least one week
MIN_HISTORY_DAYS = 7


def aggregate(
    waste_events: list[WasteEvent],
    live_items: list[InventoryItem],
    archived_items: list[InventoryItem],
    savings_events: list[SavingsEvent],
    now: datetime,
) -> AnalyticsSnapshot:
    """Compute windowed rollups and ratios from the raw collections.

    Windows are half-open: "this week" is ``[now - 7d, now)`` and "last
    week" is ``[now - 14d, now - 7d)``. Month windows are anchored at the
    first of the calendar month. Nothing is cached between calls.

    Args:
        waste_events: Every waste session
        live_items: Inventory items still in the pantry
        archived_items: Inventory items that were used or wasted
        savings_events: Every savings event
        now: Reference time for the windows

    Returns:
        AnalyticsSnapshot
    """
    waste = _waste_trends(waste_events, now)
    pantry = _pantry_health(live_items, archived_items, now)
    savings = _savings_rollup(savings_events, now)

    used_count = sum(1 for i in archived_items if i.state == LifecycleState.USED)
    wasted_count = sum(1 for i in archived_items if i.state == LifecycleState.WASTED)
    finished = used_count + wasted_count
    use_rate = round(used_count / finished * 100, 1) if finished else 100.0

    if waste.total_value > 0:
        savings_per_waste_peso = round(savings.total / waste.total_value, 2)
    else:
        savings_per_waste_peso = savings.total

    return AnalyticsSnapshot(
        generated_at=now,
        waste=waste,
        pantry=pantry,
        savings=savings,
        consumption_velocity=_consumption_velocity(archived_items),
        waste_rate_by_category=_waste_rate_by_category(archived_items),
        use_rate=use_rate,
        savings_per_waste_peso=savings_per_waste_peso,
    )


def percent_change(current: float, previous: float) -> float | None:
    """Percentage change, or None when there is no previous value to compare."""
    if previous == 0:
        return None
    return round((current - previous) / previous * 100, 1)


def month_start(moment: datetime) -> datetime:
    return moment.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month_start(moment: datetime) -> datetime:
    return month_start(month_start(moment) - timedelta(days=1))


def window_total(events: list[WasteEvent], start: datetime, end: datetime) -> float:
    """Sum of waste value for events with ``start <= timestamp < end``."""
    return round(sum(e.total_peso_value for e in events if start <= e.timestamp < end), 2)


def weekly_waste_comparison(waste_events: list[WasteEvent], now: datetime) -> WeeklyComparison:
    """Waste in the current ISO calendar week so far versus the whole previous week."""
    week_start = (now - timedelta(days=now.weekday())).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    last_week_start = week_start - timedelta(days=7)
    return WeeklyComparison(
        week_id=iso_week_id(now),
        this_week_value=window_total(waste_events, week_start, now),
        last_week_value=window_total(waste_events, last_week_start, week_start),
    )


def _waste_trends(events: list[WasteEvent], now: datetime) -> WasteTrends:
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    this_month = month_start(now)
    last_month = previous_month_start(now)

    this_week_value = window_total(events, week_ago, now)
    last_week_value = window_total(events, two_weeks_ago, week_ago)
    this_month_value = window_total(events, this_month, now)
    last_month_value = window_total(events, last_month, this_month)

    category_values: dict[str, float] = defaultdict(float)
    category_counts: dict[str, int] = defaultdict(int)
    reason_counts: dict[str, int] = defaultdict(int)

    for event in events:
        if event.reason:
            reason_counts[event.reason] += 1
        for item in event.items:
            category = _category_name(item)
            category_values[category] += item.peso_value
            category_counts[category] += 1

    past_events = [e for e in events if e.timestamp <= now]
    days_since_last_log = None
    avg_weekly_value = waste_log_frequency = 0.0
    if past_events:
        latest = max(e.timestamp for e in past_events)
        earliest = min(e.timestamp for e in past_events)
        days_since_last_log = (now.date() - latest.date()).days
        weeks = max((now.date() - earliest.date()).days, MIN_HISTORY_DAYS) / 7
        avg_weekly_value = round(sum(e.total_peso_value for e in past_events) / weeks, 2)
        waste_log_frequency = round(len(past_events) / weeks, 2)

    top_by_value = _top_entry(category_values)
    top_by_frequency = _top_entry(category_counts)
    top_reason = _top_entry(reason_counts)

    return WasteTrends(
        this_week_value=this_week_value,
        last_week_value=last_week_value,
        week_over_week_change=percent_change(this_week_value, last_week_value),
        this_month_value=this_month_value,
        last_month_value=last_month_value,
        month_over_month_change=percent_change(this_month_value, last_month_value),
        total_value=round(sum(e.total_peso_value for e in events), 2),
        total_co2e=round(sum(e.total_carbon_footprint for e in events), 3),
        category_values={k: round(v, 2) for k, v in sorted(category_values.items())},
        category_counts=dict(sorted(category_counts.items())),
        reason_counts=dict(sorted(reason_counts.items())),
        top_category_by_value=(
            CategoryValue(name=top_by_value[0], value=round(top_by_value[1], 2))
            if top_by_value
            else None
        ),
        top_category_by_frequency=(
            NamedCount(name=top_by_frequency[0], count=top_by_frequency[1])
            if top_by_frequency
            else None
        ),
        top_reason=NamedCount(name=top_reason[0], count=top_reason[1]) if top_reason else None,
        days_since_last_log=days_since_last_log,
        avg_weekly_value=avg_weekly_value,
        waste_log_frequency=waste_log_frequency,
    )


def _category_name(item: WastedFood | InventoryItem) -> str:
    return item.food_category.value


def _top_entry(totals: dict) -> tuple | None:
    """Largest entry, ties broken alphabetically."""
    if not totals:
        return None
    return sorted(totals.items(), key=lambda row: (-row[1], row[0].lower()))[0]


def _pantry_health(
    live_items: list[InventoryItem],
    archived_items: list[InventoryItem],
    now: datetime,
) -> PantryHealth:
    """Freshness of live items, and how quickly archived items left the pantry.

    Turnover is used items as a share of live plus used items, reported only
    once the pantry has both.
    """
    today = now.date()
    fresh = expiring = expired = 0
    for item in live_items:
        days_left = item.days_until_expiration(today)
        if days_left < 0:
            expired += 1
        elif days_left <= EXPIRING_SOON_DAYS:
            expiring += 1
        else:
            fresh += 1

    total = len(live_items)
    health_score = round((fresh * 100 + expiring * 50) / total) if total else 100

    durations = [
        (i.used_date - i.acquired_date).days for i in archived_items if i.used_date is not None
    ]
    avg_item_duration = round(sum(durations) / len(durations), 2) if durations else 0.0

    used = sum(1 for i in archived_items if i.state == LifecycleState.USED)
    turnover_rate = 0.0
    if total and archived_items:
        turnover_rate = round(used / (total + used) * 100, 1)

    return PantryHealth(
        total_items=total,
        fresh_items=fresh,
        expiring_items=expiring,
        expired_items=expired,
        total_value=round(sum(i.estimated_cost or 0.0 for i in live_items), 2),
        health_score=health_score,
        avg_item_duration=avg_item_duration,
        turnover_rate=turnover_rate,
    )


def _savings_rollup(events: list[SavingsEvent], now: datetime) -> SavingsRollup:
    week_ago = now - timedelta(days=7)
    this_month = month_start(now)
    total = sum(e.amount for e in events)

    by_type: dict[str, float] = defaultdict(float)
    for event in events:
        by_type[event.type.value] += event.amount

    return SavingsRollup(
        total=round(total, 2),
        this_week=round(sum(e.amount for e in events if week_ago <= e.timestamp < now), 2),
        this_month=round(sum(e.amount for e in events if this_month <= e.timestamp < now), 2),
        average_per_event=round(total / len(events), 2) if events else 0.0,
        by_type={k: round(v, 2) for k, v in sorted(by_type.items())},
    )


def _consumption_velocity(archived_items: list[InventoryItem]) -> dict[str, float]:
    """Average days from acquisition to use, per category with used items."""
    durations: dict[str, list[int]] = defaultdict(list)
    for item in archived_items:
        if item.state != LifecycleState.USED or item.used_date is None:
            continue
        durations[_category_name(item)].append((item.used_date - item.acquired_date).days)

    return {
        category: round(sum(days) / len(days), 1)
        for category, days in sorted(durations.items())
    }


def _waste_rate_by_category(archived_items: list[InventoryItem]) -> dict[str, float]:
    used: dict[str, int] = defaultdict(int)
    wasted: dict[str, int] = defaultdict(int)
    for item in archived_items:
        category = _category_name(item)
        if item.state == LifecycleState.USED:
            used[category] += 1
        elif item.state == LifecycleState.WASTED:
            wasted[category] += 1

    rates = {}
    for category in sorted(set(used) | set(wasted)):
        rates[category] = round(wasted[category] / (used[category] + wasted[category]), 3)
    return rates


class Analytics:
    """Store-backed access to the analytics and Green Score engines."""

    def __init__(self, data_store: DataStoreProtocol | None = None):
        self.data_store = data_store or DataStore()

    def log_waste(
        self,
        items: list[WastedFood],
        reason: str | None = None,
        timestamp: datetime | None = None,
    ) -> WasteEvent:
        """Log a waste session.

        Args:
            items: Foods thrown away together
            reason: Optional session-level reason
            timestamp: When it happened, defaults to now

        Returns:
            The created WasteEvent
        """
        event = WasteEvent(
            items=items,
            reason=reason,
            timestamp=timestamp or datetime.now(),
        )
        self.data_store.add_waste_event(event)
        logger.info(
            "Logged waste session with %d item(s) worth ₱%.2f",
            len(items),
            event.total_peso_value,
        )
        return event

    def snapshot(self, now: datetime | None = None) -> AnalyticsSnapshot:
        """Aggregate everything currently in the store."""
        live, archived = self._split_inventory()
        return aggregate(
            waste_events=self.data_store.load_waste_events(),
            live_items=live,
            archived_items=archived,
            savings_events=self.data_store.load_savings_events(),
            now=now or datetime.now(),
        )

    def green_score(self, now: datetime | None = None) -> GreenScoreSnapshot:
        _, archived = self._split_inventory()
        return compute_green_score(
            waste_events=self.data_store.load_waste_events(),
            archived_items=archived,
            savings_events=self.data_store.load_savings_events(),
            now=now or datetime.now(),
        )

    def weekly_comparison(self, now: datetime | None = None) -> WeeklyComparison:
        return weekly_waste_comparison(self.data_store.load_waste_events(), now or datetime.now())

    def _split_inventory(self) -> tuple[list[InventoryItem], list[InventoryItem]]:
        live: list[InventoryItem] = []
        archived: list[InventoryItem] = []
        for item in self.data_store.load_inventory():
            (live if item.is_live else archived).append(item)
        return live, archived
