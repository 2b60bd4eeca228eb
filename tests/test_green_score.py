"""Tests for the Green Score engine."""

from datetime import date, datetime, timedelta

import pytest

from green_pantry.green_score import MAX_SCORE, MIN_SCORE, score, starter_snapshot
from green_pantry.models import (
    Badge,
    GreenScoreBreakdown,
    LifecycleState,
    SavingsEvent,
    SavingsType,
    WastedFood,
    WasteEvent,
)


def waste(timestamp, name="Rice", value=50.0):
    return WasteEvent(timestamp=timestamp, items=[WastedFood(name=name, peso_value=value)])


def saving(amount):
    return SavingsEvent(
        timestamp=datetime(2026, 10, 1),
        type=SavingsType.AVOIDED_EXPIRY,
        amount=amount,
        description="test",
        calculation_method="test",
    )


def archive(make_item, used, wasted, used_date=date(2026, 10, 1)):
    items = [
        make_item(f"used {i}", state=LifecycleState.USED, used_date=used_date)
        for i in range(used)
    ]
    items += [
        make_item(f"wasted {i}", state=LifecycleState.WASTED, used_date=used_date)
        for i in range(wasted)
    ]
    return items


class TestColdStart:
    """Tests for thin histories."""

    def test_exact_starter_output(self, make_item, now):
        snapshot = score(
            [waste(datetime(2026, 10, 1)), waste(datetime(2026, 10, 2))],
            archive(make_item, 1, 1),
            [saving(500.0)],
            now,
        )
        assert snapshot.score == 350
        assert snapshot.badges == [Badge.ECO_STARTER]
        assert snapshot.breakdown == GreenScoreBreakdown()
        assert snapshot == starter_snapshot()

    def test_three_archived_items_leave_cold_start(self, make_item, now):
        snapshot = score([], archive(make_item, 3, 0), [], now)
        assert snapshot.badges != [Badge.ECO_STARTER]

    def test_three_waste_logs_leave_cold_start(self, now):
        events = [waste(datetime(2026, 10, d)) for d in (1, 2, 3)]
        snapshot = score(events, [], [], now)
        assert Badge.ECO_STARTER not in snapshot.badges


class TestComponents:
    """Tests for the score formula."""

    def test_mixed_history(self, make_item, now):
        events = [
            waste(datetime(2026, 10, 5), "Rice"),
            waste(datetime(2026, 10, 10), "Chicken thigh"),
            waste(datetime(2026, 10, 15), "Bread"),
        ]
        snapshot = score(events, archive(make_item, 9, 1), [saving(300.0)], now)
        b = snapshot.breakdown

        assert b.use_rate_points == 270
        assert b.waste_penalty == 25
        assert b.behavioral == 245
        assert b.savings_ratio_points == 100
        assert b.financial == 100
        assert b.consistency_points == 15
        assert b.streak_points == 12
        assert b.engagement == 27
        assert snapshot.score == 672
        assert snapshot.badges == [Badge.ECO_NOVICE]

    def test_penalty_counts_sessions_not_items(self, make_item, now):
        event = WasteEvent(
            timestamp=datetime(2026, 10, 20),
            items=[
                WastedFood(name="Pork belly", peso_value=100.0),
                WastedFood(name="Beef", peso_value=100.0),
            ],
        )
        snapshot = score([event], archive(make_item, 5, 0), [], now)
        assert snapshot.breakdown.waste_penalty == 25

    def test_behavioral_floor(self, make_item, now):
        events = [waste(datetime(2026, 10, d), "Chicken") for d in range(1, 6)]
        snapshot = score(events, archive(make_item, 0, 5), [], now)
        assert snapshot.breakdown.use_rate_points == 0
        assert snapshot.breakdown.behavioral == 0

    def test_savings_ratio_without_waste_is_full(self, make_item, now):
        snapshot = score([], archive(make_item, 3, 0), [], now)
        assert snapshot.breakdown.financial == 100

    def test_partial_savings_ratio(self, make_item, now):
        events = [waste(datetime(2026, 10, d), value=100.0) for d in (1, 2, 3, 4)]
        snapshot = score(events, [], [saving(100.0)], now)
        assert snapshot.breakdown.savings_ratio_points == 25

    def test_same_day_logs_count_once(self, now):
        events = [waste(datetime(2026, 10, 20, h)) for h in (8, 12, 18)]
        snapshot = score(events, [], [], now)
        assert snapshot.breakdown.consistency_points == 5

    def test_consistency_cap(self, now):
        events = [waste(now - timedelta(days=d)) for d in range(1, 21)]
        snapshot = score(events, [], [], now)
        assert snapshot.breakdown.consistency_points == 75

    def test_use_rate_zero_without_archive(self, now):
        events = [waste(datetime(2026, 10, d)) for d in (1, 2, 3)]
        assert score(events, [], [], now).breakdown.use_rate_points == 0


class TestBadges:
    """Tests for badges."""

    def test_perfect_household(self, make_item, now):
        snapshot = score([], archive(make_item, 12, 0, used_date=date(2026, 9, 21)), [], now)

        assert snapshot.breakdown.streak_points == 0
        assert snapshot.score == 700
        assert snapshot.badges == [Badge.ECO_CHAMPION, Badge.ECO_NOVICE, Badge.PANTRY_PRO]

    def test_no_streak_without_waste_logs(self, make_item, now):
        """Old usage history alone does not start a streak."""
        snapshot = score([], archive(make_item, 3, 0, used_date=date(2026, 9, 1)), [], now)

        assert snapshot.breakdown.streak_points == 0
        assert snapshot.breakdown.engagement == 0
        assert Badge.STREAK_KEEPER not in snapshot.badges

    def test_future_waste_does_not_count(self, make_item, now):
        events = [waste(datetime(2026, 10, d)) for d in (1, 2, 25)]
        snapshot = score(events, archive(make_item, 3, 0), [], now)
        # latest past waste is 10/2, 19 days ago
        assert snapshot.breakdown.streak_points == 30

    def test_pantry_pro_needs_more_than_ten(self, make_item, now):
        snapshot = score([], archive(make_item, 10, 0), [], now)
        assert Badge.PANTRY_PRO not in snapshot.badges

    def test_streak_keeper_threshold(self, make_item, now):
        events = [waste(datetime(2026, 10, d)) for d in (1, 2, 11)]
        snapshot = score(events, archive(make_item, 3, 0), [], now)
        # 10 days since the last waste
        assert snapshot.breakdown.streak_points == 20
        assert Badge.STREAK_KEEPER in snapshot.badges

    def test_no_streak_when_wasted_today(self, make_item, now):
        events = [waste(datetime(2026, 10, d)) for d in (1, 2, 21)]
        snapshot = score(events, archive(make_item, 3, 0), [], now)
        assert snapshot.breakdown.streak_points == 0
        assert Badge.STREAK_KEEPER not in snapshot.badges


@pytest.mark.parametrize("used,wasted,meat_logs", [(0, 20, 20), (50, 0, 0), (5, 5, 3)])
def test_score_is_clamped(make_item, now, used, wasted, meat_logs):
    events = [waste(now - timedelta(days=d), "Beef", 1000.0) for d in range(1, meat_logs + 1)]
    snapshot = score(events, archive(make_item, used, wasted), [saving(10_000.0)], now)
    assert MIN_SCORE <= snapshot.score <= MAX_SCORE
