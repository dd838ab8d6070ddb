"""CLI commands for lifelog-stats."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from lifelog_stats.bucketing import date_window, utc_today
from lifelog_stats.config import get_db_path, get_int_setting, get_owner_id, set_db_path, set_owner_id
from lifelog_stats.display import (
    console,
    print_config_result,
    print_dashboard,
    print_heatmap,
    print_import_result,
    print_leaderboard,
    print_no_data_message,
    print_period_report,
    print_profile,
    print_series,
    print_store_error,
)
from lifelog_stats.leaderboard import LEADERBOARD_CATEGORIES, community_stats
from lifelog_stats.metrics import METRICS, default_metric
from lifelog_stats.periods import PERIODS, aggregate_period, compute_profile_stats, get_period_range
from lifelog_stats.store import EventFilter, EventStore, JsonlEventSource, SQLiteEventStore, StoreError
from lifelog_stats.summary import (
    compute_dashboard_summary,
    compute_heatmap,
    compute_leaderboard,
    compute_trend_series,
    heatmap_levels,
)

logger = logging.getLogger(__name__)

_UNITS = {"water_ml": "ml", "exercise_minutes": "min", "sleep_hours": "h", "calories": "kcal", "calories_burned": "kcal"}


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lifelog-stats",
        description="Streaks, trends and leaderboards from your life log",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--db", default=None, help="Path to the event database")
    subparsers = parser.add_subparsers(dest="command")

    import_p = subparsers.add_parser("import", help="Load a JSON or JSONL export into the event store")
    import_p.add_argument("file", help="Export file path")

    dash_p = subparsers.add_parser("dashboard", help="Show streak and today's records")
    dash_p.add_argument("--owner", "-u", default=None, help="User id (defaults to configured owner)")

    trend_p = subparsers.add_parser("trend", help="Per-day trend for one record kind")
    trend_p.add_argument("kind", help="Record kind, e.g. water")
    trend_p.add_argument("--metric", "-m", default=None, choices=sorted(METRICS))
    trend_p.add_argument("--days", "-d", type=int, default=None, help="Window length in days")
    trend_p.add_argument("--owner", "-u", default=None)

    heat_p = subparsers.add_parser("heatmap", help="Daily activity heatmap for one record kind")
    heat_p.add_argument("kind", help="Record kind, or 'all'")
    heat_p.add_argument("--metric", "-m", default="count", choices=sorted(METRICS))
    heat_p.add_argument("--days", "-d", type=int, default=None)
    heat_p.add_argument("--owner", "-u", default=None)

    lb_p = subparsers.add_parser("leaderboard", help="Rank all users")
    lb_p.add_argument("--category", "-c", default="all", help="all, streak, a kind, or a metric name")
    lb_p.add_argument("--kind", "-k", default=None, help="Kind the metric applies to")
    lb_p.add_argument("--top", "-n", type=int, default=None)

    stats_p = subparsers.add_parser("stats", help="Period report")
    stats_p.add_argument("--period", "-p", choices=list(PERIODS), default="week")
    stats_p.add_argument("--owner", "-u", default=None)

    profile_p = subparsers.add_parser("profile", help="Profile statistics for a user")
    profile_p.add_argument("--owner", "-u", default=None)

    config_p = subparsers.add_parser("config", help="Persist default owner and database path")
    config_p.add_argument("--owner", "-u", default=None)
    config_p.add_argument("--db-path", default=None)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    command = args.command or "dashboard"

    if command == "config":
        do_config(owner=args.owner, db_path=args.db_path)
        return

    db_path = Path(args.db).expanduser() if args.db else get_db_path()
    try:
        store = SQLiteEventStore(db_path)
    except StoreError as exc:
        print_store_error(str(exc))
        sys.exit(1)

    owner = getattr(args, "owner", None)
    days = getattr(args, "days", None)
    if days is None:
        days = get_int_setting("trend_days")
    try:
        if command == "import":
            do_import(store, Path(args.file))
        elif command == "dashboard":
            do_dashboard(store, owner=owner)
        elif command == "trend":
            do_trend(store, args.kind, metric=args.metric, days=days, owner=owner)
        elif command == "heatmap":
            do_heatmap(store, args.kind, metric=args.metric, days=days, owner=owner)
        elif command == "leaderboard":
            do_leaderboard(
                store, category=args.category, kind=args.kind,
                top_n=args.top if args.top is not None else get_int_setting("top_n"),
                highlight_owner=get_owner_id(),
            )
        elif command == "stats":
            do_stats(store, period=args.period, owner=owner)
        elif command == "profile":
            do_profile(store, owner=owner)
    except StoreError as exc:
        logger.error("Event store failure: %s", exc)
        print_store_error(str(exc))
        sys.exit(1)
    finally:
        store.close()


def _resolve_owner(store: EventStore, owner: str | None) -> str | None:
    """Explicit owner, else the configured one, else the first owner in the store."""
    if owner:
        return owner
    configured = get_owner_id()
    if configured:
        return configured
    owners = store.owners() if hasattr(store, "owners") else []
    return owners[0] if owners else None


def _unknown_metric(metric: str) -> dict:
    console.print(f"[red]Unknown metric {metric!r}. Valid metrics: {', '.join(sorted(METRICS))}[/]")
    return {"ok": False, "reason": "unknown_metric"}


def do_import(store: SQLiteEventStore, path: Path) -> dict:
    """Read an export file and store its events. Returns import counts."""
    raws = JsonlEventSource(path).read_raw()
    batch = store.add_events(raws)
    result = {"ok": True, "source": str(path), "imported": len(batch.events), "dropped": batch.dropped}
    print_import_result(result)
    return result


def do_dashboard(store: EventStore, owner: str | None = None, today: date | None = None) -> dict:
    """Show streak, today's record count and today's records per kind."""
    owner_id = _resolve_owner(store, owner)
    events = store.fetch_events(EventFilter(owner_id=owner_id)) if owner_id else []
    if not events:
        print_no_data_message()
        return {"ok": False, "reason": "no_data"}

    today_date = today or utc_today()
    summary = compute_dashboard_summary(events, today_date)
    data = {
        "owner_id": owner_id,
        "today": today_date.isoformat(),
        "streak": summary.streak,
        "longest_streak": summary.longest_streak,
        "today_count": summary.today_count,
        "per_kind_counts": summary.per_kind_counts,
    }
    print_dashboard(data)
    return {"ok": True, **data}


def do_trend(
    store: EventStore,
    kind: str,
    metric: str | None = None,
    days: int = 30,
    owner: str | None = None,
    today: date | None = None,
) -> dict:
    """Show a per-day trend series for one kind."""
    metric = metric or default_metric(kind)
    if metric not in METRICS:
        return _unknown_metric(metric)
    if days < 1:
        console.print("[red]--days must be at least 1[/]")
        return {"ok": False, "reason": "invalid_days"}

    end = today or utc_today()
    window = date_window(days, end)
    owner_id = _resolve_owner(store, owner)
    events = store.fetch_events(
        EventFilter(owner_id=owner_id, kinds=frozenset({kind}), date_range=(window[0], window[-1]))
    )
    series = compute_trend_series(events, kind, metric, days, end)
    print_series(f"{kind} · {metric} · last {days} days", series, kind=kind, unit=_UNITS.get(metric, ""))
    return {"ok": True, "kind": kind, "metric": metric, "series": series}


def do_heatmap(
    store: EventStore,
    kind: str,
    metric: str = "count",
    days: int = 30,
    owner: str | None = None,
    today: date | None = None,
) -> dict:
    """Show a daily heatmap for one kind ('all' for every kind)."""
    if metric not in METRICS:
        return _unknown_metric(metric)
    if days < 1:
        console.print("[red]--days must be at least 1[/]")
        return {"ok": False, "reason": "invalid_days"}

    end = today or utc_today()
    window = date_window(days, end)
    kind_filter = None if kind == "all" else kind
    owner_id = _resolve_owner(store, owner)
    events = store.fetch_events(
        EventFilter(
            owner_id=owner_id,
            kinds=frozenset({kind_filter}) if kind_filter else None,
            date_range=(window[0], window[-1]),
        )
    )
    series = compute_heatmap(events, kind_filter, metric, days, end)
    levels = heatmap_levels(series)
    print_heatmap(f"{kind} · last {days} days", series, levels)
    return {"ok": True, "series": series, "levels": levels}


def do_leaderboard(
    store: EventStore,
    category: str = "all",
    kind: str | None = None,
    top_n: int = 5,
    highlight_owner: str | None = None,
    today: date | None = None,
) -> dict:
    """Rank every user in the store."""
    if category not in LEADERBOARD_CATEGORIES and category not in METRICS:
        console.print(
            f"[red]Unknown category {category!r}. Use one of: "
            f"{', '.join(LEADERBOARD_CATEGORIES)} or a metric name[/]"
        )
        return {"ok": False, "reason": "unknown_category"}
    if category in LEADERBOARD_CATEGORIES and category not in ("all", "streak") and kind and kind != category:
        console.print(f"[red]Category {category!r} is a kind; drop --kind or pass --kind {category}[/]")
        return {"ok": False, "reason": "kind_mismatch"}
    if top_n < 0:
        console.print("[red]--top must not be negative[/]")
        return {"ok": False, "reason": "invalid_top"}

    events = store.fetch_events(EventFilter())
    entries = compute_leaderboard(events, category, top_n, today, kind=kind)
    stats = community_stats(events)
    title = f"Leaderboard · {category}" + (f" · {kind}" if kind else "")
    print_leaderboard(entries, title=title, highlight_owner=highlight_owner, stats=stats)

    your_rank = None
    if highlight_owner:
        your_rank = next((e.rank for e in entries if e.owner_id == highlight_owner), None)
    return {"ok": True, "entries": entries, "count": len(entries), "stats": stats, "your_rank": your_rank}


def do_stats(store: EventStore, period: str = "week", owner: str | None = None, today: date | None = None) -> dict:
    """Show a period report for one user."""
    start, end = get_period_range(period, today)
    owner_id = _resolve_owner(store, owner)
    if owner_id is None:
        print_no_data_message()
        return {"ok": False, "reason": "no_data"}
    events = store.fetch_events(EventFilter(owner_id=owner_id, date_range=(start, end)))
    report = aggregate_period(events, start, end)
    report["period"] = period
    print_period_report(report)
    return {"ok": True, **report}


def do_profile(store: EventStore, owner: str | None = None, today: date | None = None) -> dict:
    """Show profile statistics for one user."""
    owner_id = _resolve_owner(store, owner)
    events = store.fetch_events(EventFilter(owner_id=owner_id)) if owner_id else []
    if not events:
        print_no_data_message()
        return {"ok": False, "reason": "no_data"}
    data = compute_profile_stats(events, today)
    data["owner_id"] = owner_id
    print_profile(data)
    return {"ok": True, **data}


def do_config(owner: str | None = None, db_path: str | None = None, config_path: Path | None = None) -> dict:
    """Persist default owner and database path."""
    result: dict = {"ok": True}
    if owner:
        set_owner_id(owner, config_path)
        result["owner_id"] = owner
    if db_path:
        expanded = Path(db_path).expanduser().resolve()
        set_db_path(expanded, config_path)
        result["db_path"] = str(expanded)
    if len(result) == 1:
        console.print("[yellow]Nothing to save. Pass --owner and/or --db-path.[/]")
        return {"ok": False, "reason": "nothing_to_save"}
    print_config_result(result)
    return result
