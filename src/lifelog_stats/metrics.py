"""Derived metric functions for lifelog-stats.

A metric maps one Event to a number, or to None when the event does not
contribute (missing or malformed payload). Metrics never raise on bad payloads.
"""

from __future__ import annotations

from collections.abc import Callable

from lifelog_stats.events import (
    BowelPayload,
    Event,
    ExercisePayload,
    IntimacyPayload,
    MealPayload,
    MoodPayload,
    SleepPayload,
    WaterPayload,
    payload_view,
    read_number,
)

Metric = Callable[[Event], "float | int | None"]

MINUTES_PER_DAY = 24 * 60


def count(event: Event) -> int:
    """Every event contributes 1."""
    return 1


def sum_field(name: str) -> Metric:
    """Build a metric that reads the numeric payload field `name`."""

    def _metric(event: Event) -> float | int | None:
        return read_number(event.payload, name)

    _metric.__name__ = f"sum_{name}"
    return _metric


def parse_clock(value: str | None) -> int | None:
    """Parse 'HH:MM' into minutes since midnight; None if malformed."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours = int(parts[0])
        minutes = int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return hours * 60 + minutes


def sleep_hours_between(bedtime: str | None, wake_time: str | None) -> float | None:
    """Hours slept between two HH:MM clock times.

    A wake time at or before the bedtime crosses midnight, so equal times
    mean a full 24 hours.
    """
    bed = parse_clock(bedtime)
    wake = parse_clock(wake_time)
    if bed is None or wake is None:
        return None
    if wake <= bed:
        wake += MINUTES_PER_DAY
    return (wake - bed) / 60


def sleep_duration_hours(event: Event) -> float | None:
    view = payload_view(event)
    if not isinstance(view, SleepPayload):
        return None
    return sleep_hours_between(view.bedtime, view.wake_time)


def _view_field(view_type: type, attr: str) -> Metric:
    def _metric(event: Event) -> float | int | None:
        view = payload_view(event)
        if not isinstance(view, view_type):
            return None
        return getattr(view, attr)

    _metric.__name__ = attr
    return _metric


water_ml = _view_field(WaterPayload, "amount")
exercise_minutes = _view_field(ExercisePayload, "duration")
calories = _view_field(MealPayload, "calories")
calories_burned = _view_field(ExercisePayload, "calories_burned")
sleep_quality = _view_field(SleepPayload, "quality")
mood_level = _view_field(MoodPayload, "mood_level")
energy_level = _view_field(MoodPayload, "energy_level")
stress_level = _view_field(MoodPayload, "stress_level")
satisfaction = _view_field(IntimacyPayload, "satisfaction")
bristol_scale = _view_field(BowelPayload, "bristol_scale")

METRICS: dict[str, Metric] = {
    "count": count,
    "water_ml": water_ml,
    "exercise_minutes": exercise_minutes,
    "calories": calories,
    "calories_burned": calories_burned,
    "sleep_hours": sleep_duration_hours,
    "sleep_quality": sleep_quality,
    "mood_level": mood_level,
    "energy_level": energy_level,
    "stress_level": stress_level,
    "satisfaction": satisfaction,
    "bristol_scale": bristol_scale,
}

# Ratings and scales: a per-day sum is meaningless, consumers want sum / count.
AVERAGE_METRICS: frozenset[str] = frozenset({
    "sleep_quality",
    "mood_level",
    "energy_level",
    "stress_level",
    "satisfaction",
    "bristol_scale",
})

# The metric a trend chart uses for a kind when none is requested.
DEFAULT_METRIC_FOR_KIND: dict[str, str] = {
    "water": "water_ml",
    "sleep": "sleep_hours",
    "exercise": "count",
    "meal": "count",
    "mood": "mood_level",
}


def get_metric(name: str) -> Metric:
    """Look up a metric by name. Raises KeyError for unknown names."""
    try:
        return METRICS[name]
    except KeyError:
        raise KeyError(
            f"Unknown metric {name!r}. Valid metrics: {', '.join(sorted(METRICS))}"
        ) from None


def default_metric(kind: str) -> str:
    return DEFAULT_METRIC_FOR_KIND.get(kind, "count")
