from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable, Mapping, Optional

from studydesk.domain.common.time import parse_iso_instant


@dataclass(frozen=True)
class PeriodSummary:
    start: date
    end: date
    total: int
    days: int

    @property
    def average_per_day(self) -> float:
        return self.total / self.days if self.days else 0.0


@dataclass(frozen=True)
class StatsSummary:
    today: date
    current_streak: int
    longest_streak: int
    week: PeriodSummary
    month: PeriodSummary
    year: PeriodSummary
    all_time: int


class StatsAggregator:
    """
    Completion statistics over the completed-task history.

    Every completion instant is shifted into `tz` before it is bucketed by
    day, weekday or hour. Records with a missing or broken `completedAt`
    are skipped.
    """

    def __init__(self, completed: Iterable[Mapping[str, Any]], tz: tzinfo) -> None:
        self._tz = tz
        self._instants: list[datetime] = []
        for record in completed:
            dt = parse_iso_instant(record.get("completedAt"))
            if dt is not None:
                self._instants.append(dt.astimezone(tz))
        self._per_day = Counter(dt.date() for dt in self._instants)

    @property
    def total(self) -> int:
        return len(self._instants)

    def count_on(self, day: date) -> int:
        return self._per_day.get(day, 0)

    def current_streak(self, today: date) -> int:
        """
        Consecutive days with at least one completion, ending today.

        A day with nothing done yet does not break the streak until it is
        over, so the count may end yesterday instead.
        """
        day = today if self._per_day.get(today) else today - timedelta(days=1)
        streak = 0
        while self._per_day.get(day):
            streak += 1
            day -= timedelta(days=1)
        return streak

    def longest_streak(self) -> int:
        best = run = 0
        previous: Optional[date] = None
        for day in sorted(self._per_day):
            run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
            best = max(best, run)
            previous = day
        return best

    def period_summary(self, start: date, end: date) -> PeriodSummary:
        """Totals over [start, end], both ends included."""
        if end < start:
            raise ValueError("period end before start")
        total = sum(n for day, n in self._per_day.items() if start <= day <= end)
        return PeriodSummary(start=start, end=end, total=total, days=(end - start).days + 1)

    def summary(self, today: date) -> StatsSummary:
        week_start = today - timedelta(days=today.weekday())
        return StatsSummary(
            today=today,
            current_streak=self.current_streak(today),
            longest_streak=self.longest_streak(),
            week=self.period_summary(week_start, today),
            month=self.period_summary(today.replace(day=1), today),
            year=self.period_summary(today.replace(month=1, day=1), today),
            all_time=self.total,
        )

    def weekday_histogram(self) -> list[int]:
        """Seven counts, Monday first."""
        counts = [0] * 7
        for dt in self._instants:
            counts[dt.weekday()] += 1
        return counts

    def hour_histogram(self) -> list[int]:
        counts = [0] * 24
        for dt in self._instants:
            counts[dt.hour] += 1
        return counts

    def daily_heatmap(self, end: date, days: int = 35) -> list[tuple[date, int]]:
        """(day, count) for the `days` days ending at `end`, oldest first."""
        start = end - timedelta(days=days - 1)
        return [(start + timedelta(days=i), self.count_on(start + timedelta(days=i))) for i in range(days)]
