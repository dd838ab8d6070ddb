"""Fixed-window series for trend charts and heatmaps.

Pure functions: events in, a contiguous ascending date-indexed list out.
Days without qualifying events are explicit zero entries, so a series always
has exactly window_days points.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from typing import NamedTuple

from lifelog_stats.bucketing import SeriesPoint, date_window, to_bucket
from lifelog_stats.events import Event

KindFilter = str | Iterable[str] | None

# Upper bounds for heat levels 1 and 2; anything above the last is level 3.
DEFAULT_HEAT_THRESHOLDS: tuple[int, ...] = (2, 5)

MEALS_PER_DAY_TARGET = 3


class SumCountPoint(NamedTuple):
    date: date
    total: float | int
    count: int

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0


def _kind_matcher(kind_filter: KindFilter) -> Callable[[str], bool]:
    if kind_filter is None:
        return lambda kind: True
    if isinstance(kind_filter, str):
        return lambda kind: kind == kind_filter
    kinds = frozenset(kind_filter)
    return lambda kind: kind in kinds


def _accumulate(
    events: Iterable[Event],
    kind_filter: KindFilter,
    value_fn: Callable[[Event], float | int | None],
    window: list[date],
) -> tuple[dict[date, float | int], dict[date, int]]:
    matches = _kind_matcher(kind_filter)
    totals: dict[date, float | int] = {d: 0 for d in window}
    counts: dict[date, int] = {d: 0 for d in window}
    for event in events:
        if not matches(event.kind):
            continue
        bucket = to_bucket(event.occurred_at)
        if bucket not in totals:
            continue
        value = value_fn(event)
        if value is None:
            continue
        totals[bucket] += value
        counts[bucket] += 1
    return totals, counts


def build_series(
    events: Iterable[Event],
    kind_filter: KindFilter,
    value_fn: Callable[[Event], float | int | None],
    window_days: int,
    end_date: date,
) -> list[SeriesPoint]:
    """Sum value_fn per day over the window_days days ending at end_date.

    Raises ValueError if window_days < 1.
    """
    window = date_window(window_days, end_date)
    totals, _ = _accumulate(events, kind_filter, value_fn, window)
    return [SeriesPoint(d, totals[d]) for d in window]


def build_sum_count_series(
    events: Iterable[Event],
    kind_filter: KindFilter,
    value_fn: Callable[[Event], float | int | None],
    window_days: int,
    end_date: date,
) -> list[SumCountPoint]:
    """Like build_series, but keeps the contributing count for mean metrics."""
    window = date_window(window_days, end_date)
    totals, counts = _accumulate(events, kind_filter, value_fn, window)
    return [SumCountPoint(d, totals[d], counts[d]) for d in window]


def mean_series(points: list[SumCountPoint]) -> list[SeriesPoint]:
    return [SeriesPoint(p.date, p.mean) for p in points]


def series_total(series: list[SeriesPoint]) -> float | int:
    return sum(p.value for p in series)


def heat_level(value: float | int, thresholds: tuple[int, ...] = DEFAULT_HEAT_THRESHOLDS) -> int:
    """Map a day value to a heatmap level: 0 / 1-2 / 3-5 / 6+ by default."""
    if value <= 0:
        return 0
    for level, upper in enumerate(thresholds, start=1):
        if value <= upper:
            return level
    return len(thresholds) + 1


def meal_compliance(meal_count: int) -> str:
    """Classify a day's meal count against the three-meals target."""
    if meal_count <= 0:
        return "none"
    if meal_count < MEALS_PER_DAY_TARGET:
        return "under"
    if meal_count == MEALS_PER_DAY_TARGET:
        return "target"
    return "over"
