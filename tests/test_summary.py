"""Tests for the dashboard, trend, heatmap and leaderboard queries."""

from datetime import date, datetime, timedelta, timezone

import pytest

from lifelog_stats.events import Event
from lifelog_stats.leaderboard import RankedEntry
from lifelog_stats.summary import (
    DashboardSummary,
    available_metrics,
    compute_dashboard_summary,
    compute_heatmap,
    compute_leaderboard,
    compute_trend_series,
    compute_user_trends,
    heatmap_levels,
)

TODAY = date(2024, 1, 10)


def _ev(kind: str = "water", day: date = TODAY, hour: int = 12, owner: str = "alice", **payload) -> Event:
    moment = datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)
    return Event(id=f"{owner}-{kind}-{day}-{hour}", owner_id=owner, kind=kind, occurred_at=moment, payload=payload)


def _ago(days: int) -> date:
    return TODAY - timedelta(days=days)


class TestDashboardSummary:
    def test_counts_today_only(self):
        events = [
            _ev("water", hour=8),
            _ev("water", hour=9),
            _ev("meal", hour=10),
            _ev("meal", day=_ago(1)),
        ]
        summary = compute_dashboard_summary(events, today=TODAY)
        assert summary.today_count == 3
        assert summary.per_kind_counts == {"water": 2, "meal": 1}
        assert summary.streak == 2

    def test_per_kind_order(self):
        events = [_ev("sleep", hour=1), _ev("meal", hour=2), _ev("meal", hour=3), _ev("bowel", hour=4)]
        summary = compute_dashboard_summary(events, today=TODAY)
        assert list(summary.per_kind_counts) == ["meal", "bowel", "sleep"]

    def test_streak_survives_empty_today(self):
        events = [_ev(day=_ago(1)), _ev(day=_ago(2))]
        summary = compute_dashboard_summary(events, today=TODAY)
        assert summary.streak == 2
        assert summary.today_count == 0

    def test_empty(self):
        assert compute_dashboard_summary([], today=TODAY) == DashboardSummary(
            streak=0, today_count=0, per_kind_counts={}, longest_streak=0
        )

    def test_longest_streak(self):
        events = [_ev(day=_ago(d)) for d in (5, 6, 7)]
        assert compute_dashboard_summary(events, today=TODAY).longest_streak == 3


class TestTrendSeries:
    def test_sum_metric(self):
        events = [_ev(amount=250), _ev(hour=15, amount=250), _ev(day=_ago(2), amount=100)]
        series = compute_trend_series(events, "water", "water_ml", 3, TODAY)
        assert [p.value for p in series] == [100, 0, 500]

    def test_average_metric_uses_mean(self):
        events = [_ev("mood", mood_level=2), _ev("mood", hour=18, mood_level=4)]
        series = compute_trend_series(events, "mood", "mood_level", 2, TODAY)
        assert [p.value for p in series] == [0, 3]

    def test_unknown_metric(self):
        with pytest.raises(KeyError):
            compute_trend_series([], "water", "steps", 7, TODAY)

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            compute_trend_series([], "water", "water_ml", 0, TODAY)

    def test_user_trends(self):
        events = [_ev(owner="alice", amount=100), _ev(owner="bob", amount=300)]
        trends = compute_user_trends(events, ["bob", "carol"], "water", "water_ml", 1, TODAY)
        assert trends["bob"][0].value == 300
        assert trends["carol"][0].value == 0


class TestHeatmap:
    def test_counts_per_day(self):
        events = [_ev("meal", hour=h) for h in (8, 12, 19)] + [_ev("meal", day=_ago(1))]
        series = compute_heatmap(events, "meal", window_days=30, end_date=TODAY)
        assert len(series) == 30
        assert series[-1].value == 3
        assert series[-2].value == 1

    def test_average_metric_is_daily_mean(self):
        events = [_ev("mood", hour=h, mood_level=3) for h in (8, 12, 18)]
        series = compute_heatmap(events, "mood", "mood_level", window_days=1, end_date=TODAY)
        trend = compute_trend_series(events, "mood", "mood_level", 1, TODAY)
        assert series[0].value == 3
        assert series == trend
        assert heatmap_levels(series) == [2]

    def test_levels(self):
        events = [_ev("meal", hour=h) for h in range(7)]
        series = compute_heatmap(events, None, window_days=2, end_date=TODAY)
        assert heatmap_levels(series) == [0, 3]


class TestComputeLeaderboard:
    def _events(self):
        return [
            _ev("water", owner="alice", amount=1000),
            _ev("water", owner="bob", hour=9, amount=300),
            _ev("water", owner="bob", hour=10, amount=300),
            _ev("meal", owner="carol"),
        ]

    def test_all(self):
        entries = compute_leaderboard(self._events(), today=TODAY)
        assert [e.owner_id for e in entries] == ["bob", "alice", "carol"]

    def test_kind_category(self):
        assert compute_leaderboard(self._events(), "meal", today=TODAY) == [RankedEntry("carol", 1, 1)]

    def test_all_with_kind(self):
        entries = compute_leaderboard(self._events(), "all", kind="water", today=TODAY)
        assert [e.owner_id for e in entries] == ["bob", "alice"]

    def test_metric_on_kind(self):
        entries = compute_leaderboard(self._events(), "water_ml", kind="water", today=TODAY)
        assert entries[0] == RankedEntry("alice", 1000, 1)
        assert entries[1] == RankedEntry("bob", 600, 2)

    def test_streak_with_kind(self):
        events = self._events() + [_ev("meal", owner="carol", day=_ago(1))]
        entries = compute_leaderboard(events, "streak", kind="meal", today=TODAY)
        assert entries == [RankedEntry("carol", 2, 1)]

    def test_average_metric_ranks_by_mean(self):
        events = [_ev("mood", owner="alice", hour=h, mood_level=2) for h in (8, 9, 10, 11)]
        events.append(_ev("mood", owner="bob", mood_level=5))
        entries = compute_leaderboard(events, "mood_level", kind="mood", today=TODAY)
        assert entries == [RankedEntry("bob", 5, 1), RankedEntry("alice", 2, 2)]

    def test_kind_category_with_other_kind_rejected(self):
        with pytest.raises(ValueError):
            compute_leaderboard(self._events(), "water", kind="meal", today=TODAY)

    def test_kind_category_with_same_kind(self):
        entries = compute_leaderboard(self._events(), "water", kind="water", today=TODAY)
        assert [e.owner_id for e in entries] == ["bob", "alice"]

    def test_unknown_metric(self):
        with pytest.raises(KeyError):
            compute_leaderboard(self._events(), "steps")

    def test_top_n(self):
        assert len(compute_leaderboard(self._events(), top_n=1, today=TODAY)) == 1


def test_available_metrics_sorted():
    metrics = available_metrics()
    assert metrics == sorted(metrics)
    assert "sleep_hours" in metrics
