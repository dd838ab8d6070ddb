"""Date bucketing and grouping for lifelog-stats.

Every bucket key is the UTC calendar date of an event's occurred_at. One time
zone policy is used for the whole computation so events near midnight always
land in the same bucket regardless of which view asks.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta, timezone
from typing import NamedTuple

from lifelog_stats.events import Event

ValueFn = Callable[[Event], "float | int | None"]

ROLLUP_PERIODS = ("day", "week", "month")


class SeriesPoint(NamedTuple):
    date: date
    value: float | int


def to_bucket(moment: datetime | date) -> date:
    """Truncate a timestamp to its UTC calendar date."""
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            return moment.date()
        return moment.astimezone(timezone.utc).date()
    return moment


def utc_today() -> date:
    return datetime.now(tz=timezone.utc).date()


def group_by_date(events: Iterable[Event]) -> dict[date, list[Event]]:
    groups: dict[date, list[Event]] = defaultdict(list)
    for event in events:
        groups[to_bucket(event.occurred_at)].append(event)
    return dict(groups)


def group_by_date_and_kind(events: Iterable[Event]) -> dict[date, dict[str, list[Event]]]:
    groups: dict[date, dict[str, list[Event]]] = {}
    for event in events:
        by_kind = groups.setdefault(to_bucket(event.occurred_at), {})
        by_kind.setdefault(event.kind, []).append(event)
    return groups


def group_by_kind(events: Iterable[Event]) -> dict[str, list[Event]]:
    groups: dict[str, list[Event]] = defaultdict(list)
    for event in events:
        groups[event.kind].append(event)
    return dict(groups)


def group_by_owner(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group by owner_id. Owners keep the order in which they were first seen."""
    groups: dict[str, list[Event]] = {}
    for event in events:
        groups.setdefault(event.owner_id, []).append(event)
    return groups


def date_window(window_days: int, end_date: date) -> list[date]:
    """Return the window_days dates ending at end_date, ascending and inclusive."""
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")
    start = end_date - timedelta(days=window_days - 1)
    return [start + timedelta(days=i) for i in range(window_days)]


def week_start(d: date) -> date:
    """Monday of the ISO week containing d."""
    return d - timedelta(days=d.weekday())


def month_start(d: date) -> date:
    return d.replace(day=1)


def rollup(
    events: Iterable[Event],
    value_fn: ValueFn,
    period: str = "day",
    kind: str | None = None,
) -> list[SeriesPoint]:
    """Sum value_fn over events per day, week or month.

    Only buckets with at least one contributing event are returned, ascending.
    Week buckets are keyed by their Monday, month buckets by their first day.
    """
    if period not in ROLLUP_PERIODS:
        raise ValueError(f"Unknown rollup period {period!r}; expected one of {ROLLUP_PERIODS}")
    key_fn = {"day": lambda d: d, "week": week_start, "month": month_start}[period]

    totals: dict[date, float | int] = {}
    for event in events:
        if kind is not None and event.kind != kind:
            continue
        value = value_fn(event)
        if value is None:
            continue
        key = key_fn(to_bucket(event.occurred_at))
        totals[key] = totals.get(key, 0) + value
    return [SeriesPoint(d, totals[d]) for d in sorted(totals)]
