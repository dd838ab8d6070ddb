"""MCP server for lifelog-stats.

Exposes life-log statistics as MCP tools so an assistant can query them mid-conversation.
Run via: python3 -m lifelog_stats.mcp_server
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Any

from mcp.server.fastmcp import FastMCP

from lifelog_stats.store import EventFilter, StoreError

logger = logging.getLogger(__name__)

mcp = FastMCP(name="lifelog-stats")


def _get_store():
    from lifelog_stats.config import get_db_path
    from lifelog_stats.store import SQLiteEventStore
    return SQLiteEventStore(get_db_path())


def _resolve_owner(store, owner_id: str) -> str | None:
    if owner_id:
        return owner_id
    from lifelog_stats.config import get_owner_id
    configured = get_owner_id()
    if configured:
        return configured
    owners = store.owners()
    return owners[0] if owners else None


def _series_payload(series) -> list[dict[str, Any]]:
    return [{"date": p.date.isoformat(), "value": p.value} for p in series]


def _parse_day(value: str) -> date | None:
    return date.fromisoformat(value) if value else None


@mcp.tool()
def get_dashboard(owner_id: str = "", today: str = "") -> dict[str, Any]:
    """Get streak, today's record count and today's records per kind for a user."""
    from lifelog_stats.summary import compute_dashboard_summary
    try:
        store = _get_store()
    except StoreError as exc:
        return {"error": f"Event store unavailable: {exc}"}
    try:
        owner = _resolve_owner(store, owner_id)
        if owner is None:
            return {"error": "No data yet. Import records with: lifelog-stats import <file>"}
        events = store.fetch_events(EventFilter(owner_id=owner))
        summary = compute_dashboard_summary(events, _parse_day(today))
        return {
            "owner_id": owner,
            "streak": summary.streak,
            "longest_streak": summary.longest_streak,
            "today_count": summary.today_count,
            "per_kind_counts": summary.per_kind_counts,
        }
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        return {"error": f"Could not load events: {exc}"}
    except ValueError as exc:
        return {"error": str(exc)}
    finally:
        store.close()


@mcp.tool()
def get_trend(kind: str, metric: str = "", days: int = 30, owner_id: str = "", end_date: str = "") -> dict[str, Any]:
    """Get a per-day trend series for one record kind (e.g. water, sleep, meal).

    metric: count, water_ml, sleep_hours, exercise_minutes, mood_level, ...
            If empty, a sensible default for the kind is used.
    """
    from lifelog_stats.metrics import default_metric
    from lifelog_stats.summary import compute_trend_series
    metric = metric or default_metric(kind)
    try:
        store = _get_store()
    except StoreError as exc:
        return {"error": f"Event store unavailable: {exc}"}
    try:
        owner = _resolve_owner(store, owner_id)
        events = store.fetch_events(EventFilter(owner_id=owner, kinds=frozenset({kind})))
        series = compute_trend_series(events, kind, metric, days, _parse_day(end_date))
        return {"kind": kind, "metric": metric, "owner_id": owner, "series": _series_payload(series)}
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        return {"error": f"Could not load events: {exc}"}
    except (KeyError, ValueError) as exc:
        return {"error": str(exc).strip("'\"")}
    finally:
        store.close()


@mcp.tool()
def get_heatmap(kind: str = "", metric: str = "count", days: int = 30, owner_id: str = "") -> dict[str, Any]:
    """Get a daily heatmap (value and level 0-3 per day) for a kind, or all kinds if empty."""
    from lifelog_stats.summary import compute_heatmap, heatmap_levels
    try:
        store = _get_store()
    except StoreError as exc:
        return {"error": f"Event store unavailable: {exc}"}
    try:
        owner = _resolve_owner(store, owner_id)
        kinds = frozenset({kind}) if kind else None
        events = store.fetch_events(EventFilter(owner_id=owner, kinds=kinds))
        series = compute_heatmap(events, kind or None, metric, days)
        levels = heatmap_levels(series)
        cells = [
            {"date": p.date.isoformat(), "value": p.value, "level": level}
            for p, level in zip(series, levels)
        ]
        return {"kind": kind or "all", "metric": metric, "owner_id": owner, "cells": cells}
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        return {"error": f"Could not load events: {exc}"}
    except (KeyError, ValueError) as exc:
        return {"error": str(exc).strip("'\"")}
    finally:
        store.close()


@mcp.tool()
def get_leaderboard(category: str = "all", kind: str = "", top_n: int = 5) -> dict[str, Any]:
    """Rank all users.

    category: "all" (records logged), "streak", a record kind, or a metric name
              applied to `kind` (e.g. category="water_ml", kind="water").
    """
    from lifelog_stats.leaderboard import community_stats
    from lifelog_stats.summary import compute_leaderboard
    try:
        store = _get_store()
    except StoreError as exc:
        return {"error": f"Event store unavailable: {exc}"}
    try:
        events = store.fetch_events(EventFilter())
        entries = compute_leaderboard(events, category, top_n, kind=kind or None)
        return {
            "category": category,
            "entries": [{"owner_id": e.owner_id, "score": e.score, "rank": e.rank} for e in entries],
            "count": len(entries),
            "community": community_stats(events),
        }
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        return {"error": f"Could not load events: {exc}"}
    except (KeyError, ValueError) as exc:
        return {"error": str(exc).strip("'\"")}
    finally:
        store.close()


@mcp.tool()
def get_period_stats(period: str = "week", owner_id: str = "") -> dict[str, Any]:
    """Get a period report (week, month or year): totals, kinds, weekdays, water, exercise."""
    from lifelog_stats.periods import PERIODS, aggregate_period, get_period_range
    if period not in PERIODS:
        return {"error": f"Invalid period. Must be one of: {', '.join(PERIODS)}"}
    try:
        store = _get_store()
    except StoreError as exc:
        return {"error": f"Event store unavailable: {exc}"}
    try:
        owner = _resolve_owner(store, owner_id)
        start, end = get_period_range(period)
        events = store.fetch_events(EventFilter(owner_id=owner, date_range=(start, end)))
        report = aggregate_period(events, start, end)
        report["period"] = period
        report["owner_id"] = owner
        report["records_by_kind"] = [{"kind": k, "count": n} for k, n in report["records_by_kind"]]
        return report
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        return {"error": f"Could not load events: {exc}"}
    finally:
        store.close()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
