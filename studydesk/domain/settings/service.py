from __future__ import annotations

from typing import Callable, Optional

from studydesk.constants import (
    DEFAULT_BREAK_MINUTES,
    DEFAULT_SEMESTER_END,
    DEFAULT_SEMESTER_START,
    DEFAULT_WORK_MINUTES,
    FILTER_ALL,
    KEY_POMODORO_BREAK,
    KEY_POMODORO_WORK,
    KEY_SEMESTER_END,
    KEY_SEMESTER_START,
    KEY_TASK_FILTER,
    KEY_USER_NAME,
    MAX_POMODORO_MINUTES,
)
from studydesk.domain.common.errors import ValidationError
from studydesk.domain.common.ports import KeyValueStore
from studydesk.domain.common.time import parse_civil_date
from studydesk.domain.tasks.rules import validate_task_filter


def _validate_minutes(label: str, minutes: int) -> None:
    if not 1 <= minutes <= MAX_POMODORO_MINUTES:
        raise ValidationError(f"{label} must be between 1 and {MAX_POMODORO_MINUTES} minutes.")


class SettingsService:
    """User preferences kept in the local store. Each setter counts as a mutation."""

    def __init__(self, store: KeyValueStore, on_mutation: Optional[Callable[[], None]] = None) -> None:
        self._store = store
        self._on_mutation = on_mutation

    def _mutated(self) -> None:
        if self._on_mutation is not None:
            self._on_mutation()

    def user_name(self) -> str:
        return self._store.get(KEY_USER_NAME, "")

    async def set_user_name(self, name: str) -> str:
        name = (name or "").strip()
        if len(name) > 100:
            raise ValidationError("Name is too long (max 100 chars).")
        await self._store.set(KEY_USER_NAME, name)
        self._mutated()
        return name

    def semester_dates(self) -> tuple[str, str]:
        return (
            self._store.get(KEY_SEMESTER_START) or DEFAULT_SEMESTER_START,
            self._store.get(KEY_SEMESTER_END) or DEFAULT_SEMESTER_END,
        )

    async def set_semester_dates(self, start: str, end: str) -> tuple[str, str]:
        start_date, end_date = parse_civil_date(start), parse_civil_date(end)
        if start_date is None or end_date is None:
            raise ValidationError("Semester dates must be YYYY-MM-DD.")
        if end_date < start_date:
            raise ValidationError("Semester end must not be before its start.")
        await self._store.set_many({KEY_SEMESTER_START: start_date.isoformat(), KEY_SEMESTER_END: end_date.isoformat()})
        self._mutated()
        return start_date.isoformat(), end_date.isoformat()

    def task_filter(self) -> str:
        return self._store.get(KEY_TASK_FILTER) or FILTER_ALL

    async def set_task_filter(self, task_filter: str) -> str:
        validate_task_filter(task_filter)
        await self._store.set(KEY_TASK_FILTER, task_filter)
        self._mutated()
        return task_filter

    def pomodoro_durations(self) -> tuple[int, int]:
        """(work, break) in minutes."""
        return (
            int(self._store.get(KEY_POMODORO_WORK) or DEFAULT_WORK_MINUTES),
            int(self._store.get(KEY_POMODORO_BREAK) or DEFAULT_BREAK_MINUTES),
        )

    async def set_pomodoro_durations(self, work_minutes: int, break_minutes: int) -> tuple[int, int]:
        _validate_minutes("Work duration", work_minutes)
        _validate_minutes("Break duration", break_minutes)
        await self._store.set_many({KEY_POMODORO_WORK: work_minutes, KEY_POMODORO_BREAK: break_minutes})
        self._mutated()
        return work_minutes, break_minutes
