"""
Unit tests for task ordering: overdue detection, smart sort, manual reorder, display order.

Run with: python -m pytest tests/test_task_ordering.py -v
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from studydesk.domain.common.errors import NotFoundError
from studydesk.domain.tasks.models import Task
from studydesk.domain.tasks.ordering import (
    Urgency,
    bake_priorities,
    classify,
    display_order,
    filter_tasks,
    is_overdue,
    manual_reorder,
    smart_sort,
)
from studydesk.domain.tasks.service import TaskService

from fakes import FixedClock, MemoryStore, SeqIds

TZ = ZoneInfo("Europe/Helsinki")


def _at(day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(2025, 10, day, hour, minute, tzinfo=TZ)


def _task(task_id: str, due_date=None, time=None, created_minute: int = 0, **kw) -> Task:
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        created_at=f"2025-10-01T08:{created_minute:02d}:00+00:00",
        due_date=due_date,
        time=time,
        **kw,
    )


def _ids(tasks) -> list[str]:
    return [t.id for t in tasks]


# ----- is_overdue -----


def test_complete_task_is_never_overdue():
    """A completed task is not overdue even if its due date is long past."""
    now = _at(15)
    for due, time in (("2025-01-01", None), ("2025-10-14", "08:00"), ("2025-10-15", "00:01")):
        task = _task("a", due_date=due, time=time, status="complete")
        assert is_overdue(task, now) is False


def test_date_only_task_overdue_after_civil_rollover():
    """Due today without a time: on time all day, overdue from the next day."""
    task = _task("a", due_date="2025-10-15")
    assert is_overdue(task, _at(15, 0, 1)) is False
    assert is_overdue(task, _at(15, 12, 0)) is False
    assert is_overdue(task, _at(15, 23, 59)) is False
    assert is_overdue(task, _at(16, 0, 0)) is True


def test_timed_task_overdue_after_due_minute():
    """Due today 14:00: not overdue at 13:59, overdue at 14:01."""
    task = _task("a", due_date="2025-10-15", time="14:00")
    assert is_overdue(task, _at(15, 13, 59)) is False
    assert is_overdue(task, _at(15, 14, 1)) is True


def test_no_due_date_is_never_overdue():
    assert is_overdue(_task("a"), _at(15)) is False


def test_classify_tiers():
    now = _at(15, 9, 0)
    assert classify(_task("a", due_date="2025-10-14"), now) is Urgency.OVERDUE
    assert classify(_task("b", due_date="2025-10-15", time="10:00"), now) is Urgency.DUE_TODAY_TIMED
    assert classify(_task("c", due_date="2025-10-15"), now) is Urgency.DUE_TODAY
    assert classify(_task("d", due_date="2025-10-20"), now) is Urgency.FUTURE
    assert classify(_task("e"), now) is Urgency.NO_DATE


# ----- smart_sort -----


def test_smart_sort_orders_by_urgency_and_bakes_priorities():
    now = _at(15, 9, 0)
    tasks = [
        _task("none"),
        _task("future_far", due_date="2025-10-25"),
        _task("today_late", due_date="2025-10-15", time="18:00"),
        _task("today_plain", due_date="2025-10-15"),
        _task("overdue_recent", due_date="2025-10-14"),
        _task("future_near", due_date="2025-10-17"),
        _task("today_early", due_date="2025-10-15", time="10:30"),
        _task("overdue_old", due_date="2025-10-01"),
    ]
    result = smart_sort(tasks, now)

    assert _ids(result) == [
        "overdue_old",
        "overdue_recent",
        "today_early",
        "today_late",
        "today_plain",
        "future_near",
        "future_far",
        "none",
    ]
    assert [t.custom_priority for t in result] == list(range(len(tasks), 0, -1))


def test_smart_sort_ties_newest_created_first():
    now = _at(15)
    tasks = [_task("old", created_minute=1), _task("new", created_minute=30), _task("mid", created_minute=10)]
    assert _ids(smart_sort(tasks, now)) == ["new", "mid", "old"]


def test_smart_sort_is_idempotent():
    now = _at(15, 9, 0)
    tasks = [
        _task("a"),
        _task("b", due_date="2025-10-20"),
        _task("c", due_date="2025-10-15", time="11:00"),
        _task("d", due_date="2025-10-10"),
        _task("e", due_date="2025-10-20"),
    ]
    once = smart_sort(tasks, now)
    twice = smart_sort(once, now)
    assert _ids(once) == _ids(twice)
    assert [t.custom_priority for t in once] == [t.custom_priority for t in twice]


def test_smart_sort_result_is_the_display_order():
    now = _at(15, 9, 0)
    tasks = [_task("a"), _task("b", due_date="2025-10-20"), _task("c", due_date="2025-10-16")]
    sorted_tasks = smart_sort(tasks, now)
    assert _ids(display_order(reversed(sorted_tasks), now)) == _ids(sorted_tasks)


# ----- manual_reorder / display_order -----


def test_manual_reorder_survives_display_order():
    """Manual priority beats due dates: an undated task moved to the top stays there."""
    now = _at(15)
    tasks = [
        _task("x", due_date="2025-10-16"),
        _task("y"),
        _task("z", due_date="2025-10-20"),
    ]
    current = display_order(tasks, now)
    assert _ids(current) == ["x", "z", "y"]

    reordered = manual_reorder(current, "y", "x")
    assert _ids(reordered) == ["y", "x", "z"]
    assert _ids(display_order(reordered, now)) == ["y", "x", "z"]
    # input order does not matter once priorities are baked
    assert _ids(display_order(list(reversed(reordered)), now)) == ["y", "x", "z"]


def test_manual_reorder_moving_down_lands_after_target():
    tasks = bake_priorities([_task("a"), _task("b"), _task("c")])
    assert _ids(manual_reorder(tasks, "a", "c")) == ["b", "c", "a"]


def test_manual_reorder_unknown_id_raises():
    tasks = [_task("a"), _task("b")]
    with pytest.raises(NotFoundError):
        manual_reorder(tasks, "missing", "a")
    with pytest.raises(NotFoundError):
        manual_reorder(tasks, "a", "missing")


def test_display_order_overdue_beats_manual_priority():
    now = _at(15)
    pinned = _task("pinned", custom_priority=10)
    late = _task("late", due_date="2025-10-14")
    assert _ids(display_order([pinned, late], now)) == ["late", "pinned"]


def test_display_order_unprioritized_by_due_date_then_undated():
    now = _at(15)
    tasks = [
        _task("undated_old", created_minute=1),
        _task("later", due_date="2025-10-22"),
        _task("timed", due_date="2025-10-16", time="09:00"),
        _task("untimed", due_date="2025-10-16"),
        _task("undated_new", created_minute=40),
    ]
    assert _ids(display_order(tasks, now)) == ["timed", "untimed", "later", "undated_new", "undated_old"]


def test_filter_tasks_by_type():
    tasks = [_task("a", task_type="academic"), _task("p", task_type="personal")]
    assert _ids(filter_tasks(tasks, "all")) == ["a", "p"]
    assert _ids(filter_tasks(tasks, "personal")) == ["p"]


# ----- scenario through the service -----


def test_created_tasks_display_overdue_then_today_then_undated():
    """Create A (no date), B (due today), C (due yesterday) -> [C, B, A]."""
    async def _run():
        clock = FixedClock(_at(15, 10, 0))
        service = TaskService(MemoryStore(), clock, SeqIds())
        a = await service.create_task("A")
        clock.current += timedelta(minutes=1)
        b = await service.create_task("B", due_date="2025-10-15")
        clock.current += timedelta(minutes=1)
        c = await service.create_task("C", due_date="2025-10-14")
        assert _ids(service.list_tasks()) == [c.id, b.id, a.id]

    asyncio.run(_run())
