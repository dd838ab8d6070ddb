"""Tests for period reports and profile stats."""
from datetime import date, datetime, timezone

import pytest

from lifelog_stats.events import Event
from lifelog_stats.periods import (
    PROFILE_ACTIVITY_DAYS,
    aggregate_period,
    compute_profile_stats,
    get_period_range,
    records_by_kind,
)


def _ev(day: str, kind: str = "water", hour: int = 12, **payload) -> Event:
    d = date.fromisoformat(day)
    moment = datetime(d.year, d.month, d.day, hour, tzinfo=timezone.utc)
    return Event(id=f"{kind}-{day}-{hour}", owner_id="alice", kind=kind, occurred_at=moment, payload=payload)


class TestGetPeriodRange:
    def test_week(self):
        assert get_period_range("week", date(2024, 1, 10)) == (date(2024, 1, 4), date(2024, 1, 10))

    def test_month(self):
        assert get_period_range("month", date(2024, 3, 15)) == (date(2024, 2, 15), date(2024, 3, 15))

    def test_month_clamps_day(self):
        assert get_period_range("month", date(2024, 3, 31)) == (date(2024, 2, 29), date(2024, 3, 31))

    def test_month_across_year(self):
        assert get_period_range("month", date(2024, 1, 5))[0] == date(2023, 12, 5)

    def test_year(self):
        assert get_period_range("year", date(2024, 2, 29)) == (date(2023, 2, 28), date(2024, 2, 29))

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown period"):
            get_period_range("decade", date(2024, 1, 1))


class TestRecordsByKind:
    def test_sorted_by_count_then_name(self):
        events = [_ev("2024-01-01", "water"), _ev("2024-01-01", "meal", 9), _ev("2024-01-01", "meal", 10),
                  _ev("2024-01-01", "bowel", 11)]
        assert records_by_kind(events) == [("meal", 2), ("bowel", 1), ("water", 1)]


class TestAggregatePeriod:
    def test_report(self):
        events = [
            _ev("2024-01-01", "water", amount=700),  # Monday
            _ev("2024-01-01", "water", 13, amount=700),
            _ev("2024-01-02", "exercise", duration=30),
            _ev("2024-01-03", "exercise", duration=45),
            _ev("2024-01-07", "meal"),  # Sunday
            _ev("2024-01-08", "meal"),  # outside
        ]
        report = aggregate_period(events, date(2024, 1, 1), date(2024, 1, 7))
        assert report["period_start"] == "2024-01-01"
        assert report["period_end"] == "2024-01-07"
        assert report["total_days"] == 7
        assert report["total_records"] == 5
        assert report["total_water_ml"] == 1400
        assert report["avg_water_per_day"] == 200
        assert report["total_exercise_minutes"] == 75
        assert report["exercise_count"] == 2
        assert report["active_days"] == 4
        assert report["period_streak"] == 3
        assert report["records_by_weekday"]["Monday"] == 2
        assert report["records_by_weekday"]["Sunday"] == 1
        assert report["records_by_weekday"]["Friday"] == 0
        assert list(report["records_by_weekday"]) == [
            "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
        ]

    def test_empty_range(self):
        report = aggregate_period([], date(2024, 1, 1), date(2024, 1, 7))
        assert report["total_records"] == 0
        assert report["avg_water_per_day"] == 0
        assert report["records_by_kind"] == []
        assert report["period_streak"] == 0

    def test_malformed_water_ignored(self):
        events = [_ev("2024-01-01", "water", amount="a lot"), _ev("2024-01-01", "water", 13, amount=100)]
        report = aggregate_period(events, date(2024, 1, 1), date(2024, 1, 1))
        assert report["total_water_ml"] == 100
        assert report["total_records"] == 2


class TestProfileStats:
    def test_profile(self):
        events = [_ev("2024-01-10"), _ev("2024-01-09", "meal"), _ev("2023-06-01", "meal")]
        stats = compute_profile_stats(events, today=date(2024, 1, 10))
        assert stats["total_records"] == 3
        assert stats["streak"] == 2
        assert stats["records_by_kind"] == [("meal", 2), ("water", 1)]
        assert len(stats["activity"]) == PROFILE_ACTIVITY_DAYS
        assert stats["activity"][-1] == ("2024-01-10", 1)
        assert stats["joined_days"] is None

    def test_joined_days(self):
        joined = datetime(2024, 1, 1, 9, tzinfo=timezone.utc)
        stats = compute_profile_stats([], today=date(2024, 1, 10), joined_at=joined)
        assert stats["joined_days"] == 9
        assert stats["streak"] == 0
