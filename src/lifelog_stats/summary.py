"""Query surface consumed by the CLI and MCP server.

Each function takes an already-fetched event collection and returns a fresh
value. Fetching, and deciding what to show when a fetch fails, belongs to the
caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from lifelog_stats.bucketing import SeriesPoint, group_by_owner, to_bucket, utc_today
from lifelog_stats.events import Event
from lifelog_stats.leaderboard import (
    DEFAULT_TOP_N,
    LEADERBOARD_CATEGORIES,
    RankedEntry,
    rank,
    score_users,
)
from lifelog_stats.metrics import AVERAGE_METRICS, METRICS, get_metric
from lifelog_stats.series import build_series, build_sum_count_series, heat_level, mean_series
from lifelog_stats.streaks import active_dates, compute_streak, longest_streak


@dataclass
class DashboardSummary:
    streak: int
    today_count: int
    per_kind_counts: dict[str, int] = field(default_factory=dict)
    longest_streak: int = 0


def compute_dashboard_summary(events: Iterable[Event], today: date | None = None) -> DashboardSummary:
    """Streak, today's record count and today's records per kind."""
    event_list = list(events)
    today_date = today or utc_today()
    dates = active_dates(event_list)

    per_kind: dict[str, int] = {}
    today_count = 0
    for event in event_list:
        if to_bucket(event.occurred_at) != today_date:
            continue
        today_count += 1
        per_kind[event.kind] = per_kind.get(event.kind, 0) + 1

    return DashboardSummary(
        streak=compute_streak(dates, today_date),
        today_count=today_count,
        per_kind_counts=dict(sorted(per_kind.items(), key=lambda kv: (-kv[1], kv[0]))),
        longest_streak=longest_streak(dates),
    )


def compute_trend_series(
    events: Iterable[Event],
    kind: str | None,
    metric: str,
    window_days: int,
    end_date: date | None = None,
) -> list[SeriesPoint]:
    """Per-day series for one kind and metric.

    Average metrics (ratings, scales) are reported as the day's mean; days
    with no contributing events are 0.
    """
    value_fn = get_metric(metric)
    end = end_date or utc_today()
    if metric in AVERAGE_METRICS:
        return mean_series(build_sum_count_series(events, kind, value_fn, window_days, end))
    return build_series(events, kind, value_fn, window_days, end)


def compute_heatmap(
    events: Iterable[Event],
    kind: str | None,
    metric: str = "count",
    window_days: int = 30,
    end_date: date | None = None,
) -> list[SeriesPoint]:
    """Same shape as a trend series; consumers map values to heat levels.

    Average metrics are the day's mean, as in compute_trend_series.
    """
    return compute_trend_series(events, kind, metric, window_days, end_date)


def heatmap_levels(series: list[SeriesPoint]) -> list[int]:
    return [heat_level(point.value) for point in series]


def compute_leaderboard(
    events: Iterable[Event],
    metric: str = "all",
    top_n: int | None = DEFAULT_TOP_N,
    today: date | None = None,
    kind: str | None = None,
) -> list[RankedEntry]:
    """Rank users for a category ("all", "streak", a kind) or a metric on a kind.

    Average metrics rank by each user's mean, not their sum.
    Raises KeyError if metric is neither a category nor a known metric, and
    ValueError if a kind category is combined with a different kind.
    """
    event_list = list(events)
    if metric == "streak":
        if kind is not None:
            event_list = [e for e in event_list if e.kind == kind]
        return rank(score_users(event_list, "streak", today), top_n)
    if metric == "all":
        return rank(score_users(event_list, kind or "all", today), top_n)
    if metric in LEADERBOARD_CATEGORIES:
        if kind is not None and kind != metric:
            raise ValueError(f"Category {metric!r} already selects a kind; got kind={kind!r}")
        return rank(score_users(event_list, metric, today), top_n)
    value_fn = get_metric(metric)
    scores = score_users(event_list, kind or "all", today, metric=value_fn, mean=metric in AVERAGE_METRICS)
    return rank(scores, top_n)


def compute_user_trends(
    events: Iterable[Event],
    owner_ids: Iterable[str],
    kind: str | None,
    metric: str = "count",
    window_days: int = 30,
    end_date: date | None = None,
) -> dict[str, list[SeriesPoint]]:
    """One trend series per owner, for comparing the top of a leaderboard."""
    by_owner = group_by_owner(events)
    return {
        owner: compute_trend_series(by_owner.get(owner, []), kind, metric, window_days, end_date)
        for owner in owner_ids
    }


def available_metrics() -> list[str]:
    return sorted(METRICS)
