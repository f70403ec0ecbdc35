from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from studydesk.constants import STATUS_NOT_STARTED, TASK_TYPE_ACADEMIC


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    created_at: str  # ISO instant, UTC
    description: str = ""
    url: Optional[str] = None
    due_date: Optional[str] = None  # civil date YYYY-MM-DD
    time: Optional[str] = None  # HH:MM, only together with due_date
    status: str = STATUS_NOT_STARTED
    task_type: str = TASK_TYPE_ACADEMIC
    attachments: tuple[str, ...] = field(default_factory=tuple)
    custom_priority: int = 0
    completed_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Build from the camelCase record kept in the store and in bundles."""
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            created_at=data.get("createdAt") or "",
            description=data.get("description") or "",
            url=data.get("url") or None,
            due_date=data.get("dueDate") or None,
            time=data.get("time") or None,
            status=data.get("status") or STATUS_NOT_STARTED,
            task_type=data.get("taskType") or TASK_TYPE_ACADEMIC,
            attachments=tuple(data.get("attachments") or ()),
            custom_priority=int(data.get("customPriority") or 0),
            completed_at=data.get("completedAt") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "dueDate": self.due_date,
            "time": self.time,
            "status": self.status,
            "taskType": self.task_type,
            "attachments": list(self.attachments),
            "customPriority": self.custom_priority,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
        }


def normalize_records(records: List[Dict[str, Any]]) -> tuple[List[Dict[str, Any]], int]:
    """
    Fill fields missing from legacy task records.

    Returns the normalized copies and how many records needed a change.
    Records written before task types existed become 'academic'.
    """
    out: List[Dict[str, Any]] = []
    changed = 0
    for record in records:
        if not record.get("taskType"):
            record = {**record, "taskType": TASK_TYPE_ACADEMIC}
            changed += 1
        out.append(record)
    return out, changed
