"""Streak tracking for lifelog-stats."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from lifelog_stats.bucketing import to_bucket, utc_today
from lifelog_stats.events import Event

DEFAULT_MAX_LOOKBACK = 365


@dataclass
class StreakInfo:
    current_streak: int
    longest_streak: int
    last_active_date: date | None
    is_active_today: bool


def active_dates(
    events: Iterable[Event],
    kind: str | None = None,
    value_fn: Callable[[Event], float | int | None] | None = None,
) -> set[date]:
    """Collect the dates on which at least one qualifying event exists.

    With value_fn, an event only qualifies when its value is not None.
    """
    dates: set[date] = set()
    for event in events:
        if kind is not None and event.kind != kind:
            continue
        if value_fn is not None and value_fn(event) is None:
            continue
        dates.add(to_bucket(event.occurred_at))
    return dates


def compute_streak(
    dates_with_activity: set[date],
    today: date,
    max_lookback: int = DEFAULT_MAX_LOOKBACK,
) -> int:
    """Count consecutive active days walking backwards from today.

    Rules:
    - A day counts if it is in dates_with_activity
    - Today missing does not break the streak; counting resumes at yesterday
    - Any other missing day ends the walk
    - At most max_lookback days are inspected
    """
    count = 0
    for offset in range(max_lookback):
        if today - timedelta(days=offset) in dates_with_activity:
            count += 1
        elif offset > 0:
            break
    return count


def longest_streak(dates: Iterable[date]) -> int:
    """Longest run of consecutive dates anywhere in the set."""
    sorted_dates = sorted(set(dates))
    if not sorted_dates:
        return 0

    longest = 1
    current = 1
    for prev, curr in zip(sorted_dates, sorted_dates[1:]):
        if (curr - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def calculate_streak(
    dates_with_activity: set[date],
    today: date | None = None,
    max_lookback: int = DEFAULT_MAX_LOOKBACK,
) -> StreakInfo:
    """Current and longest streak plus last activity for a set of active dates."""
    if not dates_with_activity:
        return StreakInfo(
            current_streak=0,
            longest_streak=0,
            last_active_date=None,
            is_active_today=False,
        )

    today_date = today or utc_today()
    current = compute_streak(dates_with_activity, today_date, max_lookback)

    return StreakInfo(
        current_streak=current,
        longest_streak=max(longest_streak(dates_with_activity), current),
        last_active_date=max(dates_with_activity),
        is_active_today=today_date in dates_with_activity,
    )
