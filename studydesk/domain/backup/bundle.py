"""
Backup bundle shape: building, validating and picking restorable fields.

A bundle is the JSON object
    {tasks, completedTasks, userName, semesterStartDate, semesterEndDate,
     taskFilter, timestamp, version}
Every field is optional on the way in; restore writes only what is present.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from studydesk.constants import (
    BUNDLE_DEFAULTS,
    BUNDLE_FIELDS,
    BUNDLE_VERSION,
    KEY_COMPLETED_TASKS,
    KEY_SEMESTER_END,
    KEY_SEMESTER_START,
    KEY_TASK_FILTER,
    KEY_TASKS,
    TASK_FILTERS,
)
from studydesk.domain.common.errors import ValidationError
from studydesk.domain.common.time import parse_civil_date
from studydesk.domain.tasks.models import normalize_records

_LIST_FIELDS = (KEY_TASKS, KEY_COMPLETED_TASKS)
_DATE_FIELDS = (KEY_SEMESTER_START, KEY_SEMESTER_END)
_OPTIONAL_TEXT = ("description", "url", "dueDate", "time", "status", "taskType", "createdAt", "completedAt")
_SUPPORTED_MAJOR = BUNDLE_VERSION.split(".")[0]


def _is_priority(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        int(value)
    except (ValueError, OverflowError):
        return False
    return True


def build_bundle(values: Mapping[str, Any], timestamp: str) -> Dict[str, Any]:
    """Bundle from store values; missing keys fall back to BUNDLE_DEFAULTS."""
    bundle: Dict[str, Any] = {}
    for key in BUNDLE_FIELDS:
        value = values.get(key)
        bundle[key] = BUNDLE_DEFAULTS[key] if value is None else value
    bundle["timestamp"] = timestamp
    bundle["version"] = BUNDLE_VERSION
    return bundle


def _validate_records(key: str, records: Any) -> None:
    if not isinstance(records, list):
        raise ValidationError(f"'{key}' must be a list.")
    seen: set[str] = set()
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(f"'{key}[{i}]' must be an object.")
        task_id = record.get("id")
        if isinstance(task_id, bool) or not isinstance(task_id, (str, int)) or task_id == "":
            raise ValidationError(f"'{key}[{i}]' has no id.")
        if not isinstance(record.get("title"), str):
            raise ValidationError(f"'{key}[{i}]' has no title.")
        for name in _OPTIONAL_TEXT:
            if not isinstance(record.get(name), (str, type(None))):
                raise ValidationError(f"'{key}[{i}].{name}' must be a string.")
        attachments = record.get("attachments")
        if attachments is not None and (
            not isinstance(attachments, list) or not all(isinstance(p, str) for p in attachments)
        ):
            raise ValidationError(f"'{key}[{i}].attachments' must be a list of paths.")
        if not _is_priority(record.get("customPriority")):
            raise ValidationError(f"'{key}[{i}].customPriority' must be a number.")
        if key == KEY_TASKS:
            if str(task_id) in seen:
                raise ValidationError(f"Duplicate task id {task_id} in '{key}'.")
            seen.add(str(task_id))


def validate_bundle(data: Any) -> Dict[str, Any]:
    """
    Check bundle structure without modifying it.

    Raises:
        ValidationError: with a user-facing reason when the shape is wrong
    """
    if not isinstance(data, dict):
        raise ValidationError("Backup must be a JSON object.")
    if not any(key in data for key in BUNDLE_FIELDS):
        raise ValidationError("Backup contains no restorable data.")

    version = data.get("version")
    if version is not None:
        if not isinstance(version, str):
            raise ValidationError("Backup version must be a string.")
        if version.split(".")[0] != _SUPPORTED_MAJOR:
            raise ValidationError(f"Unsupported backup version {version}.")

    for key in BUNDLE_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if key in _LIST_FIELDS:
            _validate_records(key, value)
        elif not isinstance(value, str):
            raise ValidationError(f"'{key}' must be a string.")
        elif key in _DATE_FIELDS and value and parse_civil_date(value) is None:
            raise ValidationError(f"'{key}' must be a date (YYYY-MM-DD).")
        elif key == KEY_TASK_FILTER and value and value not in TASK_FILTERS:
            raise ValidationError(f"'{key}' must be one of: {', '.join(TASK_FILTERS)}.")
    return data


def restorable_fields(bundle: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Fields a restore writes back to the store.

    Only present, non-empty values are taken: an empty string or list in a
    bundle leaves the current store entry untouched, same as a missing key.
    Task records get the legacy taskType default on the way in.
    """
    out: Dict[str, Any] = {}
    for key in BUNDLE_FIELDS:
        value = bundle.get(key)
        if not value:
            continue
        if key in _LIST_FIELDS:
            value, _ = normalize_records(value)
        out[key] = value
    return out
