"""Period reports and profile statistics.

Pure functions that aggregate events over a date range into summary dicts.
No side effects, no store access - accepts events as input.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from lifelog_stats.bucketing import to_bucket, utc_today
from lifelog_stats.events import Event
from lifelog_stats.leaderboard import WEEKDAY_NAMES
from lifelog_stats.metrics import count, exercise_minutes, water_ml
from lifelog_stats.series import build_series
from lifelog_stats.streaks import active_dates, compute_streak, longest_streak

PERIODS = ("week", "month", "year")

PROFILE_ACTIVITY_DAYS = 28


def _months_back(d: date, months: int) -> date:
    month_index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def get_period_range(period: str, today: date | None = None) -> tuple[date, date]:
    """Return (start, end) dates, inclusive, for a period name.

    period: "week" (last 7 days) | "month" (since the same day last month)
    | "year" (since the same day last year)
    """
    ref = today or utc_today()
    if period == "week":
        return (ref - timedelta(days=6), ref)
    if period == "month":
        return (_months_back(ref, 1), ref)
    if period == "year":
        return (_months_back(ref, 12), ref)
    raise ValueError(f"Unknown period {period!r}. Must be one of: {', '.join(PERIODS)}")


def _sum(events: Iterable[Event], kind: str, value_fn) -> float | int:
    total: float | int = 0
    for event in events:
        if event.kind != kind:
            continue
        value = value_fn(event)
        if value is not None:
            total += value
    return total


def records_by_kind(events: Iterable[Event]) -> list[tuple[str, int]]:
    """(kind, count) pairs, most frequent first, ties by kind name."""
    counts: dict[str, int] = {}
    for event in events:
        counts[event.kind] = counts.get(event.kind, 0) + 1
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


def aggregate_period(events: Iterable[Event], start: date, end: date) -> dict:
    """Aggregate the events whose bucket falls in [start, end] into a report dict."""
    in_range = [e for e in events if start <= to_bucket(e.occurred_at) <= end]
    total_days = (end - start).days + 1

    weekday_counts = dict.fromkeys(WEEKDAY_NAMES, 0)
    for event in in_range:
        weekday_counts[WEEKDAY_NAMES[to_bucket(event.occurred_at).weekday()]] += 1

    total_water = _sum(in_range, "water", water_ml)
    dates = active_dates(in_range)

    return {
        "period_start": start.isoformat(),
        "period_end": end.isoformat(),
        "total_days": total_days,
        "total_records": len(in_range),
        "records_by_kind": records_by_kind(in_range),
        "records_by_weekday": weekday_counts,
        "total_water_ml": total_water,
        "avg_water_per_day": round(total_water / total_days) if total_days > 0 else 0,
        "total_exercise_minutes": _sum(in_range, "exercise", exercise_minutes),
        "exercise_count": _sum(in_range, "exercise", count),
        "active_days": len(dates),
        "period_streak": longest_streak(dates),
    }


def compute_profile_stats(
    events: Iterable[Event],
    today: date | None = None,
    joined_at: datetime | None = None,
) -> dict:
    """Public profile numbers: totals, streak, kinds and recent activity."""
    event_list = list(events)
    today_date = today or utc_today()
    activity = build_series(event_list, None, count, PROFILE_ACTIVITY_DAYS, today_date)

    joined_days = None
    if joined_at is not None:
        joined_days = max((today_date - to_bucket(joined_at)).days, 0)

    return {
        "total_records": len(event_list),
        "streak": compute_streak(active_dates(event_list), today_date),
        "records_by_kind": records_by_kind(event_list),
        "activity": [(p.date.isoformat(), p.value) for p in activity],
        "joined_days": joined_days,
    }
