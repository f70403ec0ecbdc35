"""
Deterministic task ordering.

Combines three signals into one stable order used by every task view:
- Overdue detection (exact instant when a due time exists, civil date otherwise)
- Manual priority baked in by smart sort or a drag reorder
- Due-date urgency

Everything here is pure: callers pass `now` (timezone-aware, in the user's
timezone) and get new lists back. Due dates and times are read in `now`'s
timezone.
"""
from __future__ import annotations

import sys
from dataclasses import replace
from datetime import date, datetime, timezone
from enum import IntEnum
from typing import Iterable, Optional, Sequence

from studydesk.constants import FILTER_ALL, STATUS_COMPLETE
from studydesk.domain.common.errors import NotFoundError
from studydesk.domain.common.time import civil_noon, parse_civil_date, parse_clock_time, parse_iso_instant
from studydesk.domain.tasks.models import Task

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_END_OF_DAY_MINUTES = 24 * 60


class Urgency(IntEnum):
    """Urgency tiers, most urgent first (ascending sort key)."""
    OVERDUE = 0
    DUE_TODAY_TIMED = 1
    DUE_TODAY = 2
    FUTURE = 3
    NO_DATE = 4


def _due_minutes(task: Task) -> Optional[int]:
    t = parse_clock_time(task.time)
    return t.hour * 60 + t.minute if t else None


def _created_key(task: Task) -> datetime:
    return parse_iso_instant(task.created_at) or _OLDEST


def is_overdue(task: Task, now: datetime) -> bool:
    """
    Check whether a task is past due.

    Rules:
    - No due date or status complete: never overdue
    - Due date with time: overdue once that instant has passed
    - Due date only: overdue from the next civil day on (noon-anchored,
      so a task due today stays on time until midnight)
    """
    if task.status == STATUS_COMPLETE:
        return False
    due = parse_civil_date(task.due_date)
    if due is None:
        return False

    due_time = parse_clock_time(task.time)
    if due_time is not None:
        return datetime.combine(due, due_time, tzinfo=now.tzinfo) < now

    return civil_noon(due, now.tzinfo) < civil_noon(now.date(), now.tzinfo)


def days_until_due(task: Task, now: datetime) -> Optional[int]:
    due = parse_civil_date(task.due_date)
    if due is None:
        return None
    return (due - now.date()).days


def classify(task: Task, now: datetime) -> Urgency:
    if is_overdue(task, now):
        return Urgency.OVERDUE
    due = parse_civil_date(task.due_date)
    if due is None:
        return Urgency.NO_DATE
    if due == now.date():
        return Urgency.DUE_TODAY_TIMED if task.time and _due_minutes(task) is not None else Urgency.DUE_TODAY
    return Urgency.FUTURE


def bake_priorities(tasks: Sequence[Task]) -> list[Task]:
    """Freeze the current list order: customPriority = N - index."""
    n = len(tasks)
    return [replace(task, custom_priority=n - i) for i, task in enumerate(tasks)]


def _smart_key(task: Task, now: datetime) -> tuple[int, int, int]:
    tier = classify(task, now)
    due: Optional[date] = parse_civil_date(task.due_date)

    if tier is Urgency.OVERDUE:
        return (tier, due.toordinal(), _due_minutes(task) or 0)
    if tier is Urgency.DUE_TODAY_TIMED:
        return (tier, 0, _due_minutes(task))
    if tier is Urgency.FUTURE:
        return (tier, days_until_due(task, now), 0)
    return (tier, 0, 0)


def smart_sort(tasks: Iterable[Task], now: datetime) -> list[Task]:
    """
    One-shot re-prioritization.

    Order:
    1. Overdue, earliest due first
    2. Due today with a time, earliest time first
    3. Due today without a time
    4. Future, fewest days until due first
    5. No due date
    Ties: newest createdAt first.

    The result is baked in (customPriority = N - index), so display_order
    reproduces it until the next manual reorder.

    Args:
        tasks: Active tasks in any order
        now: Current time in the user's timezone

    Returns:
        New list of tasks with fresh customPriority values
    """
    newest_first = sorted(tasks, key=_created_key, reverse=True)
    ordered = sorted(newest_first, key=lambda t: _smart_key(t, now))
    return bake_priorities(ordered)


def manual_reorder(tasks: Sequence[Task], moved_id: str, target_id: str) -> list[Task]:
    """
    Move one task to the target's position (list splice) and re-bake the whole list.

    Moving down lands the task just after the target, moving up just before it.
    """
    ids = [t.id for t in tasks]
    if moved_id not in ids:
        raise NotFoundError(f"Task {moved_id} not found.")
    if target_id not in ids:
        raise NotFoundError(f"Task {target_id} not found.")

    items = list(tasks)
    to_index = ids.index(target_id)
    moved = items.pop(ids.index(moved_id))
    items.insert(to_index, moved)
    return bake_priorities(items)


def _display_key(task: Task, now: datetime) -> tuple[int, int, int]:
    if is_overdue(task, now):
        due = parse_civil_date(task.due_date)
        return (0, due.toordinal(), _due_minutes(task) or 0)
    if task.custom_priority > 0:
        return (1, -task.custom_priority, 0)

    due = parse_civil_date(task.due_date)
    if due is None:
        return (2, sys.maxsize, 0)
    minutes = _due_minutes(task)
    return (2, due.toordinal(), _END_OF_DAY_MINUTES if minutes is None else minutes)


def display_order(tasks: Iterable[Task], now: datetime) -> list[Task]:
    """
    Order actually rendered by task views.

    1. Overdue first, earliest due first
    2. Tasks with a manual priority (> 0), highest first
    3. Remaining tasks by due date ascending, undated last
    4. Newest createdAt first as the final fallback
    """
    newest_first = sorted(tasks, key=_created_key, reverse=True)
    return sorted(newest_first, key=lambda t: _display_key(t, now))


def filter_tasks(tasks: Iterable[Task], task_filter: str) -> list[Task]:
    if task_filter == FILTER_ALL:
        return list(tasks)
    return [t for t in tasks if t.task_type == task_filter]
