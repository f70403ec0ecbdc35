from __future__ import annotations

from datetime import date
from typing import Sequence

from studydesk.domain.stats.aggregator import StatsSummary

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
RESET_CONFIRM = "Clear the whole completed history? Statistics start from zero."
RESET_DONE = "Statistics reset ({count} completed tasks removed)."

# empty, light, medium, heavy
_HEAT = ("⬜", "🟩", "🟨", "🟧")


def heat_cell(count: int) -> str:
    if count <= 0:
        return _HEAT[0]
    if count <= 2:
        return _HEAT[1]
    if count <= 4:
        return _HEAT[2]
    return _HEAT[3]


def render_heatmap(cells: Sequence[tuple[date, int]], per_row: int = 7) -> str:
    rows = []
    for i in range(0, len(cells), per_row):
        rows.append("".join(heat_cell(n) for _, n in cells[i:i + per_row]))
    return "\n".join(rows)


def render_bar_chart(labels: Sequence[str], counts: Sequence[int], width: int = 12) -> str:
    peak = max(counts, default=0)
    lines = []
    for label, n in zip(labels, counts):
        bar = "█" * round(n / peak * width) if peak else ""
        lines.append(f"<code>{label:>3} {bar:<{width}} {n}</code>")
    return "\n".join(lines)


def render_summary(summary: StatsSummary) -> str:
    return "\n".join([
        "<b>Statistics</b>",
        "",
        f"🔥 Current streak: {summary.current_streak} d",
        f"🏆 Longest streak: {summary.longest_streak} d",
        "",
        f"This week: {summary.week.total} ({summary.week.average_per_day:.1f}/day)",
        f"This month: {summary.month.total} ({summary.month.average_per_day:.1f}/day)",
        f"This year: {summary.year.total}",
        f"All time: {summary.all_time}",
    ])


def render_weekdays(counts: Sequence[int]) -> str:
    return "<b>By weekday</b>\n" + render_bar_chart(WEEKDAYS, counts)


def render_hours(counts: Sequence[int]) -> str:
    # only hours with activity, the full 24 rows are mostly empty
    active = [(f"{h:02d}", n) for h, n in enumerate(counts) if n]
    if not active:
        return "<b>By hour</b>\nNo data yet."
    labels, values = zip(*active)
    return "<b>By hour</b>\n" + render_bar_chart(labels, values)
