from __future__ import annotations

from typing import Iterable, Optional

from studydesk.constants import (
    STATUS_COMPLETE,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
    TASK_FILTERS,
    TASK_TYPES,
)
from studydesk.domain.common.errors import ValidationError
from studydesk.domain.common.time import parse_civil_date, parse_clock_time

_NEXT_STATUS = {
    STATUS_NOT_STARTED: STATUS_IN_PROGRESS,
    STATUS_IN_PROGRESS: STATUS_COMPLETE,
    STATUS_COMPLETE: STATUS_NOT_STARTED,
}


def next_status(status: str) -> str:
    # unknown values restart the cycle
    return _NEXT_STATUS.get(status, STATUS_IN_PROGRESS)


def validate_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        raise ValidationError("Task title is required.")
    return title.strip()


def validate_schedule(due_date: Optional[str], time: Optional[str]) -> None:
    if due_date and parse_civil_date(due_date) is None:
        raise ValidationError("Due date must be YYYY-MM-DD.")
    if time:
        if not due_date:
            raise ValidationError("A due time needs a due date.")
        if parse_clock_time(time) is None:
            raise ValidationError("Due time must be HH:MM.")


def validate_task_type(task_type: str) -> None:
    if task_type not in TASK_TYPES:
        raise ValidationError(f"Task type must be one of: {', '.join(TASK_TYPES)}.")


def validate_task_filter(task_filter: str) -> None:
    if task_filter not in TASK_FILTERS:
        raise ValidationError(f"Filter must be one of: {', '.join(TASK_FILTERS)}.")


def merge_attachments(existing: Iterable[str], new_paths: Iterable[str]) -> tuple[str, ...]:
    """Append paths keeping first-seen order; duplicates and blanks are dropped."""
    merged: list[str] = []
    for path in list(existing) + list(new_paths):
        if path and path not in merged:
            merged.append(path)
    return tuple(merged)
