"""Tests for the savings ledger manager."""

from datetime import date, datetime

import pytest

from green_pantry.data_store import DuplicateClaimError
from green_pantry.models import (
    GreenPointsType,
    SavingsEvent,
    SavingsType,
    WastedFood,
    WasteEvent,
)
from green_pantry.points import award_points
from green_pantry.savings_manager import SavingsManager


@pytest.fixture
def savings_manager(data_store):
    """Create a SavingsManager with test data store."""
    return SavingsManager(data_store=data_store, user_id="maria")


def log_waste(data_store, timestamp, value):
    data_store.add_waste_event(
        WasteEvent(timestamp=timestamp, items=[WastedFood(name="Rice", peso_value=value)])
    )


class TestClaimWeeklyBonus:
    """Tests for weekly bonus claims."""

    def test_claim_reduction(self, savings_manager, data_store, now):
        log_waste(data_store, datetime(2026, 10, 13), 500.0)
        log_waste(data_store, datetime(2026, 10, 20), 300.0)

        event = savings_manager.claim_weekly_bonus(now)

        assert event.amount == 200.0
        assert event.week_id == "2026-W43"
        assert event.user_id == "maria"
        assert data_store.load_savings_events() == [event]

    def test_no_bonus_when_waste_increased(self, savings_manager, data_store, now):
        log_waste(data_store, datetime(2026, 10, 13), 300.0)
        log_waste(data_store, datetime(2026, 10, 20), 500.0)

        assert savings_manager.claim_weekly_bonus(now) is None
        assert data_store.load_savings_events() == []

    def test_second_claim_same_week_rejected(self, savings_manager, data_store, now):
        log_waste(data_store, datetime(2026, 10, 13), 100.0)
        savings_manager.claim_weekly_bonus(now)

        with pytest.raises(DuplicateClaimError):
            savings_manager.claim_weekly_bonus(datetime(2026, 10, 25, 20))
        assert len(data_store.load_savings_events()) == 1

    def test_next_week_can_claim_again(self, savings_manager, data_store, now):
        log_waste(data_store, datetime(2026, 10, 13), 100.0)
        log_waste(data_store, datetime(2026, 10, 20), 60.0)
        savings_manager.claim_weekly_bonus(now)

        event = savings_manager.claim_weekly_bonus(datetime(2026, 10, 27, 9))
        assert event.week_id == "2026-W44"
        assert event.amount == 60.0

    def test_other_user_can_claim(self, data_store, now):
        log_waste(data_store, datetime(2026, 10, 13), 100.0)
        SavingsManager(data_store, user_id="ana").claim_weekly_bonus(now)
        event = SavingsManager(data_store, user_id="ben").claim_weekly_bonus(now)
        assert event.amount == 100.0


class TestLedger:
    """Tests for listing and totals."""

    def _event(self, timestamp, amount, event_type=SavingsType.AVOIDED_EXPIRY):
        return SavingsEvent(
            timestamp=timestamp,
            type=event_type,
            amount=amount,
            description="test",
            calculation_method="test",
        )

    def test_list_newest_first(self, savings_manager, data_store):
        old = self._event(datetime(2026, 10, 1), 10.0)
        new = self._event(datetime(2026, 10, 20), 5.0, SavingsType.RECIPE_FOLLOWED)
        data_store.append_savings_event(old)
        data_store.append_savings_event(new)

        assert [e.id for e in savings_manager.list_events()] == [new.id, old.id]
        assert savings_manager.list_events(event_type=SavingsType.RECIPE_FOLLOWED) == [new]
        assert savings_manager.list_events(since=datetime(2026, 10, 10)) == [new]

    def test_total(self, savings_manager, data_store):
        data_store.append_savings_event(self._event(datetime(2026, 10, 1), 10.1))
        data_store.append_savings_event(self._event(datetime(2026, 10, 2), 22.45))
        assert savings_manager.total_savings() == 32.55

    def test_total_empty(self, savings_manager):
        assert savings_manager.total_savings() == 0.0


class TestZeroWasteWeek:
    """Tests for zero-waste week points awarded with the weekly claim."""

    def test_clean_week_awards_points_once(self, savings_manager, data_store, make_item, now):
        data_store.add_inventory_item(make_item("Rice", acquired_date=date(2026, 10, 5)))

        assert savings_manager.claim_weekly_bonus(now) is None
        savings_manager.claim_weekly_bonus(datetime(2026, 10, 23, 9))

        [event] = data_store.load_points_events()
        assert event.type == GreenPointsType.ZERO_WASTE_WEEK
        assert event.points == 250
        assert event.week_id == "2026-W42"
        assert event.user_id == "maria"

    def test_no_points_before_tracking(self, savings_manager, data_store, now):
        savings_manager.claim_weekly_bonus(now)
        assert data_store.load_points_events() == []

    def test_items_added_this_week_do_not_count(self, savings_manager, data_store, make_item, now):
        data_store.add_inventory_item(make_item("Rice", acquired_date=date(2026, 10, 20)))
        savings_manager.claim_weekly_bonus(now)
        assert data_store.load_points_events() == []

    def test_no_points_when_last_week_had_waste(self, savings_manager, data_store, make_item, now):
        data_store.add_inventory_item(make_item("Rice"))
        log_waste(data_store, datetime(2026, 10, 14), 40.0)

        savings_manager.claim_weekly_bonus(now)
        assert data_store.load_points_events() == []

    def test_next_week_earns_again(self, savings_manager, data_store, make_item, now):
        data_store.add_inventory_item(make_item("Rice"))
        savings_manager.claim_weekly_bonus(now)
        savings_manager.claim_weekly_bonus(datetime(2026, 10, 28, 9))

        assert sorted(e.week_id for e in data_store.load_points_events()) == [
            "2026-W42",
            "2026-W43",
        ]


class TestPointsLedger:
    """Tests for listing Green Points."""

    def test_list_newest_first_and_filter(self, savings_manager, data_store):
        logged = award_points(GreenPointsType.LOG_PANTRY_ITEM, "Rice", now=datetime(2026, 10, 1))
        cooked = award_points(GreenPointsType.COOK_RECIPE, "Sinigang", now=datetime(2026, 10, 2))
        data_store.append_points_event(logged)
        data_store.append_points_event(cooked)

        assert [e.id for e in savings_manager.list_points()] == [cooked.id, logged.id]
        assert savings_manager.list_points(GreenPointsType.COOK_RECIPE) == [cooked]
        assert savings_manager.total_points() == 60

    def test_total_empty(self, savings_manager):
        assert savings_manager.total_points() == 0
        assert savings_manager.list_points() == []
