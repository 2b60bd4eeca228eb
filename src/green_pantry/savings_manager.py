"""Savings and Green Points ledger access, and weekly claims."""

import logging
from datetime import datetime, timedelta

from .analytics import weekly_waste_comparison
from .data_store import DataStore, DataStoreProtocol, DuplicateClaimError
from .models import (
    GreenPointsEvent,
    GreenPointsType,
    SavingsEvent,
    SavingsType,
    WeeklyComparison,
)
from .points import total_points, zero_waste_week_points
from .savings import iso_week_id, weekly_reduction_bonus

logger = logging.getLogger(__name__)


class SavingsManager:
    """Reads the savings and points ledgers and records weekly claims."""

    def __init__(self, data_store: DataStoreProtocol | None = None, user_id: str | None = None):
        self.data_store = data_store or DataStore()
        self.user_id = user_id

    def claim_weekly_bonus(self, now: datetime | None = None) -> SavingsEvent | None:
        """Claim this week's waste reduction bonus.

        Compares waste in the current ISO week with the previous one. When
        waste went down, the difference is recorded once per user per week.
        A previous week without waste also earns zero-waste points, once.

        Args:
            now: Claim time, defaults to now

        Returns:
            The recorded SavingsEvent, or None if waste did not go down

        Raises:
            DuplicateClaimError: If the bonus for this week was already claimed
        """
        now = now or datetime.now()
        comparison = weekly_waste_comparison(self.data_store.load_waste_events(), now)

        key = (self.user_id or "", comparison.week_id, SavingsType.WASTE_REDUCTION_BONUS.value)
        if self.data_store.has_claim(key):
            raise DuplicateClaimError(key)

        self._award_zero_waste_week(comparison, now)

        event = weekly_reduction_bonus(
            comparison.this_week_value,
            comparison.last_week_value,
            week_id=comparison.week_id,
            now=now,
            user_id=self.user_id,
        )
        if event is None:
            logger.info(
                "No weekly bonus for %s: ₱%.2f this week vs ₱%.2f last week",
                comparison.week_id,
                comparison.this_week_value,
                comparison.last_week_value,
            )
            return None

        self.data_store.append_savings_event(event)
        return event

    def list_events(
        self,
        event_type: SavingsType | None = None,
        since: datetime | None = None,
    ) -> list[SavingsEvent]:
        """Savings events, newest first."""
        events = self.data_store.load_savings_events()
        if event_type:
            events = [e for e in events if e.type == event_type]
        if since:
            events = [e for e in events if e.timestamp >= since]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)

    def total_savings(self) -> float:
        return round(sum(e.amount for e in self.data_store.load_savings_events()), 2)

    def list_points(self, event_type: GreenPointsType | None = None) -> list[GreenPointsEvent]:
        """Green Points events, newest first."""
        events = self.data_store.load_points_events()
        if event_type:
            events = [e for e in events if e.type == event_type]
        return sorted(events, key=lambda e: e.timestamp, reverse=True)

    def total_points(self) -> int:
        return total_points(self.data_store.load_points_events())

    def _award_zero_waste_week(
        self, comparison: WeeklyComparison, now: datetime
    ) -> GreenPointsEvent | None:
        week_start = (now - timedelta(days=now.weekday())).date()
        last_week_id = iso_week_id(week_start - timedelta(days=7))
        key = (self.user_id or "", last_week_id, GreenPointsType.ZERO_WASTE_WEEK.value)
        if self.data_store.has_points_claim(key):
            return None

        tracked = any(i.acquired_date < week_start for i in self.data_store.load_inventory())
        event = zero_waste_week_points(
            comparison.last_week_value, last_week_id, tracked, now=now, user_id=self.user_id
        )
        if event is not None:
            self.data_store.append_points_event(event)
        return event
