from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from studydesk.constants import (
    FILTER_ALL,
    KEY_COMPLETED_TASKS,
    KEY_TASK_FILTER,
    KEY_TASKS,
    STATUS_COMPLETE,
    STATUS_NOT_STARTED,
    TASK_TYPE_ACADEMIC,
)
from studydesk.domain.common.errors import NotFoundError, ValidationError
from studydesk.domain.common.outcome import Outcome
from studydesk.domain.common.ports import Clock, FilePicker, IdGenerator, KeyValueStore, Shell, ShellResult
from studydesk.domain.tasks.models import Task
from studydesk.domain.tasks.ordering import display_order, filter_tasks, manual_reorder, smart_sort
from studydesk.domain.tasks.rules import (
    merge_attachments,
    next_status,
    validate_schedule,
    validate_task_type,
    validate_title,
)

logger = logging.getLogger(__name__)

MutationHook = Callable[[], None]

_EDITABLE = {"title", "description", "url", "due_date", "time", "task_type"}


class TaskService:
    """
    Task business logic over the local store. No aiogram. No sqlite.

    Every mutation writes the store, re-runs display ordering, and calls
    `on_mutation` exactly once (the composition root wires it to the
    backup manager's auto-backup).
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        ids: IdGenerator,
        on_mutation: Optional[MutationHook] = None,
        picker: Optional[FilePicker] = None,
        shell: Optional[Shell] = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._ids = ids
        self._on_mutation = on_mutation
        self._picker = picker
        self._shell = shell

    # ----- reads -----

    def _load(self, key: str) -> list[Task]:
        return [Task.from_dict(r) for r in self._store.get(key, [])]

    def list_tasks(self, now: Optional[datetime] = None, filtered: bool = False) -> list[Task]:
        tasks = display_order(self._load(KEY_TASKS), now or self._clock.now())
        if filtered:
            tasks = filter_tasks(tasks, self._store.get(KEY_TASK_FILTER, FILTER_ALL))
        return tasks

    def completed_tasks(self) -> list[Task]:
        return self._load(KEY_COMPLETED_TASKS)

    def get_task(self, task_id: str) -> Task:
        return self._find(self._load(KEY_TASKS), task_id)

    # ----- writes -----

    def _now_iso(self) -> str:
        return self._clock.now().astimezone(timezone.utc).isoformat()

    def _mutated(self) -> None:
        if self._on_mutation is not None:
            self._on_mutation()

    async def _save_tasks(self, tasks: Iterable[Task], completed: Optional[Iterable[Task]] = None) -> None:
        values = {KEY_TASKS: [t.to_dict() for t in display_order(tasks, self._clock.now())]}
        if completed is not None:
            values[KEY_COMPLETED_TASKS] = [t.to_dict() for t in completed]
        await self._store.set_many(values)
        self._mutated()

    async def create_task(
        self,
        title: str,
        description: str = "",
        url: Optional[str] = None,
        due_date: Optional[str] = None,
        time: Optional[str] = None,
        task_type: str = TASK_TYPE_ACADEMIC,
        attachments: Iterable[str] = (),
    ) -> Task:
        clean_title = validate_title(title)
        validate_schedule(due_date, time)
        validate_task_type(task_type)

        task = Task(
            id=self._ids.new_id(),
            title=clean_title,
            created_at=self._now_iso(),
            description=(description or "").strip(),
            url=(url or "").strip() or None,
            due_date=due_date or None,
            time=time or None,
            task_type=task_type,
            attachments=merge_attachments((), attachments),
        )
        await self._save_tasks([task] + self._load(KEY_TASKS))
        logger.info("Task created: %s", task.id)
        return task

    async def edit_task(self, task_id: str, **changes) -> Task:
        unknown = set(changes) - _EDITABLE
        if unknown:
            raise ValidationError(f"Cannot edit: {', '.join(sorted(unknown))}.")

        tasks = self._load(KEY_TASKS)
        current = self._find(tasks, task_id)
        if "title" in changes:
            changes["title"] = validate_title(changes["title"])
        if "task_type" in changes:
            validate_task_type(changes["task_type"])
        if "url" in changes:
            changes["url"] = (changes["url"] or "").strip() or None
        if "due_date" in changes and not changes["due_date"] and "time" not in changes:
            # clearing the date also clears its time
            changes["time"] = None
        updated = replace(current, **changes)
        validate_schedule(updated.due_date, updated.time)

        await self._save_tasks([updated if t.id == task_id else t for t in tasks])
        return updated

    async def delete_task(self, task_id: str) -> None:
        tasks = self._load(KEY_TASKS)
        self._find(tasks, task_id)
        await self._save_tasks([t for t in tasks if t.id != task_id])
        logger.info("Task deleted: %s", task_id)

    async def cycle_status(self, task_id: str) -> Task:
        """
        Advance status: not-started -> in-progress -> complete.

        Completion moves the task to the front of the completed history with
        completedAt set; it leaves the active list in the same write.
        """
        tasks = self._load(KEY_TASKS)
        current = self._find(tasks, task_id)
        status = next_status(current.status)

        if status == STATUS_COMPLETE:
            done = replace(current, status=STATUS_COMPLETE, completed_at=self._now_iso())
            await self._save_tasks(
                [t for t in tasks if t.id != task_id],
                completed=[done] + self._load(KEY_COMPLETED_TASKS),
            )
            logger.info("Task completed: %s", task_id)
            return done

        updated = replace(current, status=status, completed_at=None)
        await self._save_tasks([updated if t.id == task_id else t for t in tasks])
        return updated

    async def restore_completed(self, task_id: str) -> Task:
        """Put a completed task back on the active list as not started."""
        history = self._load(KEY_COMPLETED_TASKS)
        done = self._find(history, task_id)
        tasks = self._load(KEY_TASKS)
        if any(t.id == task_id for t in tasks):
            raise ValidationError("Task is already on the active list.")

        restored = replace(done, status=STATUS_NOT_STARTED, completed_at=None, custom_priority=0)
        await self._save_tasks([restored] + tasks, completed=[t for t in history if t.id != task_id])
        return restored

    async def clear_completed(self) -> int:
        """Reset statistics: drop the whole completed history. Returns how many were removed."""
        history = self._load(KEY_COMPLETED_TASKS)
        await self._store.set(KEY_COMPLETED_TASKS, [])
        self._mutated()
        logger.info("Completed history cleared (%d tasks)", len(history))
        return len(history)

    async def reorder(self, moved_id: str, target_id: str) -> list[Task]:
        now = self._clock.now()
        current = display_order(self._load(KEY_TASKS), now)
        reordered = manual_reorder(current, moved_id, target_id)
        await self._save_tasks(reordered)
        return display_order(reordered, now)

    async def smart_sort(self) -> list[Task]:
        sorted_tasks = smart_sort(self._load(KEY_TASKS), self._clock.now())
        await self._save_tasks(sorted_tasks)
        logger.info("Smart sort applied to %d tasks", len(sorted_tasks))
        return sorted_tasks

    # ----- attachments -----

    async def add_attachments(self, task_id: str, picker: Optional[FilePicker] = None) -> Outcome:
        picker = picker or self._picker
        if picker is None:
            return Outcome.fail("unsupported", "No file picker available.")
        tasks = self._load(KEY_TASKS)
        current = self._find(tasks, task_id)
        paths = await picker.open_file_dialog()
        if not paths:
            return Outcome.cancel()

        updated = replace(current, attachments=merge_attachments(current.attachments, paths))
        if updated.attachments != current.attachments:
            await self._save_tasks([updated if t.id == task_id else t for t in tasks])
        return Outcome.ok(updated)

    async def remove_attachment(self, task_id: str, path: str) -> Task:
        tasks = self._load(KEY_TASKS)
        current = self._find(tasks, task_id)
        if path not in current.attachments:
            raise NotFoundError("Attachment not found.")
        updated = replace(current, attachments=tuple(p for p in current.attachments if p != path))
        await self._save_tasks([updated if t.id == task_id else t for t in tasks])
        return updated

    async def open_attachment(self, path: str) -> ShellResult:
        if self._shell is None:
            return ShellResult(False, "Opening files is not supported here.")
        return await self._shell.open_path(path)

    async def show_attachment_in_folder(self, path: str) -> ShellResult:
        if self._shell is None:
            return ShellResult(False, "Opening folders is not supported here.")
        return await self._shell.show_in_folder(path)

    @staticmethod
    def _find(tasks: Iterable[Task], task_id: str) -> Task:
        for task in tasks:
            if task.id == task_id:
                return task
        raise NotFoundError("Task not found.")
