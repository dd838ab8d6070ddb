"""Tests for derived metric functions."""

from datetime import datetime, timezone

import pytest

from lifelog_stats.events import Event
from lifelog_stats.metrics import (
    AVERAGE_METRICS,
    METRICS,
    count,
    default_metric,
    exercise_minutes,
    get_metric,
    mood_level,
    parse_clock,
    sleep_duration_hours,
    sleep_hours_between,
    sum_field,
    water_ml,
)


def _ev(kind: str, **payload) -> Event:
    return Event(
        id="e1",
        owner_id="alice",
        kind=kind,
        occurred_at=datetime(2024, 1, 1, 8, tzinfo=timezone.utc),
        payload=payload,
    )


class TestCount:
    def test_always_one(self):
        assert count(_ev("meal")) == 1
        assert count(_ev("custom_reading", junk=object())) == 1


class TestSumField:
    def test_reads_named_field(self):
        assert sum_field("amount")(_ev("water", amount=300)) == 300

    def test_missing_field_is_none(self):
        assert sum_field("amount")(_ev("water")) is None

    def test_non_numeric_is_none(self):
        assert sum_field("amount")(_ev("water", amount="a glass")) is None

    def test_works_on_custom_kinds(self):
        assert sum_field("pages")(_ev("custom_reading", pages=42)) == 42


class TestParseClock:
    def test_valid(self):
        assert parse_clock("07:30") == 450
        assert parse_clock("00:00") == 0

    def test_seconds_ignored(self):
        assert parse_clock("23:30:15") == 1410

    @pytest.mark.parametrize("value", [None, "", "7", "aa:bb", "24:00", "12:60"])
    def test_malformed(self, value):
        assert parse_clock(value) is None


class TestSleepDuration:
    def test_crosses_midnight(self):
        assert sleep_hours_between("23:30", "07:00") == 7.5

    def test_equal_times_is_full_day(self):
        assert sleep_hours_between("07:00", "07:00") == 24.0

    def test_same_day_nap(self):
        assert sleep_hours_between("13:00", "14:30") == 1.5

    def test_from_event(self):
        assert sleep_duration_hours(_ev("sleep", bedtime="23:30", wake_time="07:00")) == 7.5

    def test_sleep_time_alias(self):
        assert sleep_duration_hours(_ev("sleep", sleep_time="22:00", wake_time="06:00")) == 8.0

    def test_missing_wake_time(self):
        assert sleep_duration_hours(_ev("sleep", bedtime="23:00")) is None

    def test_malformed_time(self):
        assert sleep_duration_hours(_ev("sleep", bedtime="late", wake_time="07:00")) is None

    def test_other_kind_is_none(self):
        assert sleep_duration_hours(_ev("water", bedtime="23:00", wake_time="07:00")) is None


class TestNamedMetrics:
    def test_water_ml(self):
        assert water_ml(_ev("water", amount=250)) == 250

    def test_water_ml_ignores_other_kinds(self):
        assert water_ml(_ev("meal", amount=250)) is None

    def test_exercise_minutes(self):
        assert exercise_minutes(_ev("exercise", duration=45)) == 45

    def test_mood_level_bool_is_none(self):
        assert mood_level(_ev("mood", mood_level=True)) is None

    def test_get_metric(self):
        assert get_metric("sleep_hours") is sleep_duration_hours

    def test_get_metric_unknown(self):
        with pytest.raises(KeyError, match="Unknown metric"):
            get_metric("steps")

    def test_average_metrics_are_registered(self):
        assert AVERAGE_METRICS <= set(METRICS)

    def test_default_metric(self):
        assert default_metric("water") == "water_ml"
        assert default_metric("sleep") == "sleep_hours"
        assert default_metric("custom_reading") == "count"

    def test_metrics_never_raise_on_bad_payload(self):
        event = _ev("sleep", bedtime=123, wake_time=["x"], quality={"a": 1})
        for metric in METRICS.values():
            metric(event)
