"""Cross-user leaderboards for lifelog-stats.

Pure functions for scoring users from their events and ranking the scores.
Ranking is deterministic: ties keep the order in which owners were supplied.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import date
from typing import NamedTuple

from lifelog_stats.bucketing import group_by_owner, to_bucket, utc_today
from lifelog_stats.events import KNOWN_KINDS, Event
from lifelog_stats.metrics import count
from lifelog_stats.streaks import active_dates, compute_streak

DEFAULT_TOP_N = 5

LEADERBOARD_CATEGORIES: tuple[str, ...] = ("all", "streak") + KNOWN_KINDS

WEEKDAY_NAMES: tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


class RankedEntry(NamedTuple):
    owner_id: str
    score: float | int
    rank: int


def rank(scores: Mapping[str, float | int], top_n: int | None = None) -> list[RankedEntry]:
    """Rank owners by score descending. Adds a 1-based rank.

    Scores <= 0 are excluded. Ties keep the mapping's iteration order.
    top_n=None returns every qualifying entry; negative top_n raises ValueError.
    """
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n must be >= 0, got {top_n}")
    qualifying = [(owner, score) for owner, score in scores.items() if score > 0]
    ordered = sorted(qualifying, key=lambda item: -item[1])
    if top_n is not None:
        ordered = ordered[:top_n]
    return [RankedEntry(owner, score, i + 1) for i, (owner, score) in enumerate(ordered)]


def score_users(
    events: Iterable[Event],
    category: str,
    today: date | None = None,
    metric: Callable[[Event], float | int | None] | None = None,
    mean: bool = False,
) -> dict[str, float | int]:
    """Score every owner for a leaderboard category.

    category: "all" (records logged), "streak" (current streak) or a kind
    (records of that kind, or the summed metric when one is given).
    With mean=True the metric is averaged over the owner's contributing events.
    Owners keep their first-seen order.
    """
    today_date = today or utc_today()
    scores: dict[str, float | int] = {}
    for owner, owner_events in group_by_owner(events).items():
        if category == "streak":
            scores[owner] = compute_streak(active_dates(owner_events), today_date)
            continue
        kind = None if category == "all" else category
        value_fn = metric or count
        total: float | int = 0
        contributing = 0
        for event in owner_events:
            if kind is not None and event.kind != kind:
                continue
            value = value_fn(event)
            if value is not None:
                total += value
                contributing += 1
        if mean:
            total = total / contributing if contributing else 0
        scores[owner] = total
    return scores


def build_leaderboards(
    events: Iterable[Event],
    top_n: int = DEFAULT_TOP_N,
    today: date | None = None,
) -> dict[str, list[RankedEntry]]:
    """Rank owners in every category of LEADERBOARD_CATEGORIES."""
    event_list = list(events)
    return {
        category: rank(score_users(event_list, category, today), top_n)
        for category in LEADERBOARD_CATEGORIES
    }


def community_stats(events: Iterable[Event]) -> dict:
    """Totals across all users: users, records, average per user, busiest weekday."""
    event_list = list(events)
    owners = group_by_owner(event_list)

    weekday_counts: dict[int, int] = {}
    for event in event_list:
        weekday = to_bucket(event.occurred_at).weekday()
        weekday_counts[weekday] = weekday_counts.get(weekday, 0) + 1

    most_active_day = None
    if weekday_counts:
        # Earliest weekday wins ties.
        busiest = max(sorted(weekday_counts), key=lambda d: weekday_counts[d])
        most_active_day = WEEKDAY_NAMES[busiest]

    total_users = len(owners)
    total_records = len(event_list)
    return {
        "total_users": total_users,
        "total_records": total_records,
        "avg_records_per_user": round(total_records / total_users) if total_users else 0,
        "most_active_day": most_active_day,
    }
