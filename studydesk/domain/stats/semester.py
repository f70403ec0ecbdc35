from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from studydesk.domain.common.time import civil_noon

_DAY_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class SemesterProgress:
    not_started: bool
    days_remaining: int
    percentage: float  # 0..100


def semester_progress(start: date, end: date, today: date) -> SemesterProgress:
    """
    Progress through the semester, with all three dates anchored at noon.

    Before the start the semester counts as a break (0%). Days remaining can
    go negative once the semester is over; the percentage stays clamped.
    """
    today_noon, start_noon, end_noon = civil_noon(today), civil_noon(start), civil_noon(end)
    if today_noon < start_noon:
        return SemesterProgress(not_started=True, days_remaining=-1, percentage=0.0)

    days_remaining = math.ceil((end_noon - today_noon).total_seconds() / _DAY_SECONDS)
    total_days = math.ceil((end_noon - start_noon).total_seconds() / _DAY_SECONDS)
    days_passed = math.ceil((today_noon - start_noon).total_seconds() / _DAY_SECONDS)
    if total_days <= 0:
        return SemesterProgress(not_started=False, days_remaining=days_remaining, percentage=100.0)
    percentage = min(max(days_passed / total_days * 100, 0.0), 100.0)
    return SemesterProgress(not_started=False, days_remaining=days_remaining, percentage=percentage)
