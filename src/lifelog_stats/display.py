"""Rich terminal display for lifelog-stats."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# Rich color names per record kind
KIND_COLORS: dict[str, str] = {
    "meal": "orange1",
    "bowel": "dark_orange3",
    "sleep": "slate_blue1",
    "exercise": "spring_green3",
    "intimacy": "hot_pink",
    "medication": "dodger_blue2",
    "water": "dark_turquoise",
    "mood": "medium_purple",
}

# Heat level -> cell style, level 0 is an empty day
_HEAT_STYLES: tuple[str, ...] = ("grey23", "green4", "green3", "bright_green")


def _kind_color(kind: str | None) -> str:
    return KIND_COLORS.get(kind or "", "cyan")


def format_number(n: float | int) -> str:
    """Format numbers: 421543 -> '421.5K', 1200 -> '1,200', 7.25 -> '7.2'."""
    if isinstance(n, float) and not n.is_integer():
        return f"{n:,.1f}"
    n = int(n)
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def _bar(current: float, total: float, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "░" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_dashboard(data: dict) -> None:
    """Print the dashboard: streak, today's records and the per-kind breakdown."""
    owner = data.get("owner_id", "")
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{owner}[/]  {data.get('today', '')}")
    lines.append("")
    lines.append(
        f"  \U0001f525 Streak: {data.get('streak', 0)} days  |  "
        f"Best: {data.get('longest_streak', 0)} days"
    )
    lines.append(f"  \U0001f4dd Today: {data.get('today_count', 0)} records")

    per_kind = data.get("per_kind_counts", {})
    if per_kind:
        lines.append("")
        lines.append("  [bold]Logged Today:[/]")
        for kind, n in per_kind.items():
            lines.append(f"  [{_kind_color(kind)}]●[/] {kind:<12s} {n}")

    lines.append("")
    panel = Panel(
        "\n".join(lines),
        title="[bold]LIFELOG[/]",
        box=box.ROUNDED,
        border_style="magenta",
        width=50,
    )
    console.print(panel)


def print_series(title: str, series: list[tuple], kind: str | None = None, unit: str = "") -> None:
    """Print a date series as a horizontal bar chart table."""
    color = _kind_color(kind)
    peak = max((value for _, value in series), default=0)

    table = Table(title=title, box=box.ROUNDED, border_style=color, header_style="bold")
    table.add_column("Date", style="bold")
    table.add_column("", min_width=22)
    table.add_column("Value", justify="right")

    for day, value in series:
        label = day.isoformat() if hasattr(day, "isoformat") else str(day)
        suffix = f" {unit}" if unit else ""
        table.add_row(label, f"[{color}]{_bar(value, peak)}[/]", f"{format_number(value)}{suffix}")

    total = sum(value for _, value in series)
    table.add_section()
    table.add_row("Total", "", f"{format_number(total)}{(' ' + unit) if unit else ''}")
    console.print(table)


def print_heatmap(title: str, series: list[tuple], levels: list[int]) -> None:
    """Print one colored cell per day, seven days per row."""
    cells: list[str] = []
    for (day, value), level in zip(series, levels):
        style = _HEAT_STYLES[min(level, len(_HEAT_STYLES) - 1)]
        cells.append(f"[{style}]■[/]")

    rows = [" ".join(cells[i:i + 7]) for i in range(0, len(cells), 7)]
    lines = [""] + [f"  {row}" for row in rows] + [""]
    if series:
        lines.append(f"  {series[0][0]} → {series[-1][0]}")
    total = sum(value for _, value in series)
    active = sum(1 for level in levels if level > 0)
    lines.append(f"  Total: [bold]{format_number(total)}[/]  |  Active days: {active}/{len(series)}")
    legend = "  ".join(f"[{style}]■[/] {label}" for style, label in zip(_HEAT_STYLES, ("0", "1-2", "3-5", "6+")))
    lines.append(f"  {legend}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title=f"[bold]{title}[/]",
        box=box.ROUNDED,
        border_style="green",
        width=50,
    )
    console.print(panel)


def print_leaderboard(
    entries: list,
    title: str = "Leaderboard",
    highlight_owner: str | None = None,
    stats: dict | None = None,
) -> None:
    """Print ranked entries as a table, optionally followed by community stats."""
    if not entries:
        console.print(
            Panel(
                "\n  No qualifying users yet.\n",
                title=f"[bold]{title}[/]",
                box=box.ROUNDED,
                border_style="grey50",
                width=50,
            )
        )
    else:
        medals = {1: "\U0001f947", 2: "\U0001f948", 3: "\U0001f949"}
        table = Table(title=title, box=box.ROUNDED, header_style="bold", border_style="gold1")
        table.add_column("Rank", justify="right")
        table.add_column("User", min_width=16)
        table.add_column("Score", justify="right")
        for entry in entries:
            rank_text = medals.get(entry.rank, str(entry.rank))
            name = entry.owner_id
            if highlight_owner and name == highlight_owner:
                name = f"[bold cyan]{name} (you)[/]"
            table.add_row(rank_text, name, format_number(entry.score))
        console.print(table)

    if stats:
        lines = [
            "",
            f"  Users:            {stats.get('total_users', 0)}",
            f"  Records:          {format_number(stats.get('total_records', 0))}",
            f"  Avg per user:     {format_number(stats.get('avg_records_per_user', 0))}",
            f"  Most active day:  {stats.get('most_active_day') or '-'}",
            "",
        ]
        console.print(
            Panel(
                "\n".join(lines),
                title="[bold]Community[/]",
                box=box.ROUNDED,
                border_style="cyan",
                width=50,
            )
        )


def print_period_report(data: dict) -> None:
    """Print a period report with totals, kinds and weekday distribution."""
    period = data.get("period", "week")
    core_lines: list[str] = []
    core_lines.append("")
    core_lines.append(f"  Records:        {format_number(data.get('total_records', 0))}")
    core_lines.append(f"  Active Days:    {data.get('active_days', 0)}/{data.get('total_days', 0)}")
    core_lines.append(f"  Best Streak:    {data.get('period_streak', 0)} days")
    core_lines.append(f"  Water:          {format_number(data.get('total_water_ml', 0))} ml")
    core_lines.append(f"  Avg Water/Day:  {format_number(data.get('avg_water_per_day', 0))} ml")
    core_lines.append(
        f"  Exercise:       {format_number(data.get('exercise_count', 0))} sessions, "
        f"{format_number(data.get('total_exercise_minutes', 0))} min"
    )
    core_lines.append("")
    console.print(
        Panel(
            "\n".join(core_lines),
            title=f"[bold]{period}: {data.get('period_start', '')} to {data.get('period_end', '')}[/]",
            box=box.ROUNDED,
            border_style="yellow",
            width=50,
        )
    )

    by_kind = data.get("records_by_kind", [])
    if by_kind:
        kind_lines = [""]
        top = by_kind[0][1]
        for kind, n in by_kind:
            kind_lines.append(f"  {kind:<12s} [{_kind_color(kind)}]{_bar(n, top, width=15)}[/] {n}")
        kind_lines.append("")
        console.print(
            Panel("\n".join(kind_lines), title="[bold]By Kind[/]", box=box.ROUNDED, border_style="blue", width=50)
        )

    weekdays = data.get("records_by_weekday", {})
    if weekdays and any(weekdays.values()):
        top = max(weekdays.values())
        day_lines = [""]
        for day, n in weekdays.items():
            day_lines.append(f"  {day[:3]}  {_bar(n, top, width=20)} {n}")
        day_lines.append("")
        console.print(
            Panel("\n".join(day_lines), title="[bold]By Weekday[/]", box=box.ROUNDED, border_style="cyan", width=50)
        )


def print_profile(data: dict) -> None:
    """Print profile stats."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{data.get('owner_id', '')}[/]")
    lines.append(f"  Records: {format_number(data.get('total_records', 0))}  |  Streak: {data.get('streak', 0)} days")
    joined = data.get("joined_days")
    if joined is not None:
        lines.append(f"  Joined {joined} days ago")
    kinds = data.get("records_by_kind", [])[:5]
    if kinds:
        lines.append("")
        lines.append("  [bold]Top Kinds:[/]")
        for kind, n in kinds:
            lines.append(f"  [{_kind_color(kind)}]●[/] {kind:<12s} {n}")
    lines.append("")
    console.print(
        Panel("\n".join(lines), title="[bold]PROFILE[/]", box=box.ROUNDED, border_style="magenta", width=50)
    )


def print_import_result(result: dict) -> None:
    """Print import summary."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  Source:    {result.get('source', '')}")
    lines.append(f"  Imported:  {result.get('imported', 0)}")
    dropped = result.get("dropped", 0)
    style = "red" if dropped else "green"
    lines.append(f"  Dropped:   [{style}]{dropped}[/]")
    lines.append("")
    console.print(
        Panel("\n".join(lines), title="[bold]Import Complete[/]", box=box.ROUNDED, border_style="green", width=50)
    )


def print_config_result(result: dict) -> None:
    lines = [""] + [f"  {key}: {value}" for key, value in result.items() if key != "ok"] + [""]
    console.print(
        Panel("\n".join(lines), title="[bold]Config Saved[/]", box=box.ROUNDED, border_style="green", width=50)
    )


def print_store_error(message: str) -> None:
    """Print an explicit error state when events could not be fetched."""
    panel = Panel(
        f"\n  [bold red]Could not load events.[/]\n  {message}\n\n  No statistics shown.\n",
        title="[bold red]ERROR[/]",
        box=box.ROUNDED,
        border_style="red",
        width=60,
    )
    console.print(panel)


def print_no_data_message() -> None:
    """Print message when no data is available."""
    panel = Panel(
        "\n  No events found. Run [bold]lifelog-stats import <file>[/] to load your records.\n",
        title="[bold]LIFELOG[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=50,
    )
    console.print(panel)
