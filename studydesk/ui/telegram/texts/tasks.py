from __future__ import annotations

from datetime import datetime
from html import escape
from typing import Sequence

from studydesk.constants import STATUS_IN_PROGRESS, TASK_TYPE_PERSONAL
from studydesk.domain.tasks.models import Task
from studydesk.domain.tasks.ordering import days_until_due, is_overdue

ADD_ASK_TITLE = "New task. Send the title:"
ADD_ASK_DUE = "Due date as YYYY-MM-DD? (send '-' to skip)"
ADD_ASK_TIME = "Time as HH:MM? (send '-' to skip)"
ADD_ASK_TYPE = "Academic or personal?"
EMPTY = "No active tasks. Add one with /add."
HISTORY_EMPTY = "Nothing completed yet."
SORTED = "Tasks sorted by urgency."

_STATUS_ICONS = {
    STATUS_IN_PROGRESS: "🟡",
}


def status_icon(task: Task) -> str:
    return _STATUS_ICONS.get(task.status, "⚪")


def due_label(task: Task, now: datetime) -> str:
    days = days_until_due(task, now)
    if days is None:
        return ""
    if is_overdue(task, now):
        label = "overdue"
    elif days == 0:
        label = "today"
    elif days == 1:
        label = "tomorrow"
    else:
        label = f"in {days} days"
    if task.time:
        label = f"{label} {task.time}"
    return label


def render_task_line(index: int, task: Task, now: datetime) -> str:
    parts = [f"{index}. {status_icon(task)} {escape(task.title)}"]
    due = due_label(task, now)
    if due:
        parts.append(f"<b>{due}</b>" if is_overdue(task, now) else f"<i>{due}</i>")
    if task.task_type == TASK_TYPE_PERSONAL:
        parts.append("(personal)")
    if task.attachments:
        parts.append(f"📎{len(task.attachments)}")
    return " · ".join(parts)


def render_task_list(tasks: Sequence[Task], now: datetime, task_filter: str = "all") -> str:
    if not tasks:
        return EMPTY
    header = "<b>Tasks</b>" if task_filter == "all" else f"<b>Tasks</b> ({task_filter})"
    lines = [header, ""]
    lines += [render_task_line(i, t, now) for i, t in enumerate(tasks, start=1)]
    overdue = sum(1 for t in tasks if is_overdue(t, now))
    if overdue:
        lines += ["", f"⚠️ {overdue} overdue"]
    return "\n".join(lines)


def render_history(tasks: Sequence[Task], limit: int = 20) -> str:
    if not tasks:
        return HISTORY_EMPTY
    lines = [f"<b>Completed</b> ({len(tasks)})", ""]
    for task in tasks[:limit]:
        done = (task.completed_at or "")[:10]
        lines.append(f"✅ {escape(task.title)} <i>{done}</i>")
    if len(tasks) > limit:
        lines.append(f"... and {len(tasks) - limit} more")
    return "\n".join(lines)


def render_task_detail(task: Task, now: datetime) -> str:
    lines = [f"{status_icon(task)} <b>{escape(task.title)}</b>"]
    if task.description:
        lines.append(escape(task.description))
    due = due_label(task, now)
    if due:
        lines.append(f"Due: {task.due_date} ({due})")
    if task.url:
        lines.append(f"Link: {escape(task.url)}")
    for path in task.attachments:
        lines.append(f"📎 {escape(path)}")
    return "\n".join(lines)
