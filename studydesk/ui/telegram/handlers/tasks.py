from __future__ import annotations

import logging
from typing import Optional

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from studydesk.domain.common.errors import DomainError
from studydesk.domain.settings.service import SettingsService
from studydesk.domain.tasks.rules import validate_schedule
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.clock.system_clock import SystemClock
from studydesk.infra.picker.preset_picker import PresetFilePicker
from studydesk.ui.telegram.keyboards.common import cancel_kb
from studydesk.ui.telegram.keyboards.mainmenu import BTN_ADD, BTN_TASKS, main_menu_kb
from studydesk.ui.telegram.keyboards.tasks import filter_kb, history_kb, task_type_kb, tasks_list_kb
from studydesk.ui.telegram.states.tasks import AddTaskFlow
from studydesk.ui.telegram.texts import tasks as texts
from studydesk.ui.telegram.utils.navigation import command_args

logger = logging.getLogger(__name__)

router = Router()

SKIP = "-"

# /edit field names -> TaskService.edit_task keywords
EDIT_FIELDS = {
    "title": "title",
    "description": "description",
    "url": "url",
    "due": "due_date",
    "time": "time",
    "type": "task_type",
}


def _cb_arg(cb: CallbackQuery) -> str:
    # tk:<action>:<arg>
    return (cb.data or "").split(":", 2)[-1]


def _task_by_number(task_service: TaskService, clock: SystemClock, raw: str):
    """Resolve the 1-based number shown in the task list."""
    try:
        index = int(raw) - 1
    except ValueError:
        return None
    tasks = task_service.list_tasks(clock.now(), filtered=True)
    return tasks[index] if 0 <= index < len(tasks) else None


async def _send_or_edit_list(
    *,
    target_message: Message,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
    prefer_edit: bool,
) -> None:
    now = clock.now()
    tasks = task_service.list_tasks(now, filtered=True)
    text = texts.render_task_list(tasks, now, settings_service.task_filter())
    markup = tasks_list_kb(tasks) if tasks else None

    if prefer_edit:
        try:
            await target_message.edit_text(text, reply_markup=markup)
            return
        except TelegramBadRequest:
            # message too old or unchanged: fall back to a new one
            pass
    await target_message.answer(text, reply_markup=markup)


@router.message(Command("tasks"))
@router.message(F.text == BTN_TASKS)
async def tasks_list(
    message: Message,
    state: FSMContext,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    await state.clear()
    await _send_or_edit_list(
        target_message=message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=False,
    )


# ----- add -----

@router.message(Command("add"))
@router.message(F.text == BTN_ADD)
async def add_cmd(
    message: Message,
    state: FSMContext,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    await state.clear()
    args = command_args(message) if (message.text or "").startswith("/") else ""

    # /add title | YYYY-MM-DD | HH:MM -> create right away
    if args:
        parts = [p.strip() for p in args.split("|")]
        title = parts[0]
        due_date = parts[1] if len(parts) > 1 and parts[1] else None
        time = parts[2] if len(parts) > 2 and parts[2] else None
        try:
            task = await task_service.create_task(title, due_date=due_date, time=time)
        except DomainError as e:
            await message.answer(str(e))
            return
        await message.answer(f"Added: {task.title}", reply_markup=main_menu_kb())
        await _send_or_edit_list(
            target_message=message,
            task_service=task_service,
            settings_service=settings_service,
            clock=clock,
            prefer_edit=False,
        )
        return

    await state.set_state(AddTaskFlow.title)
    await message.answer(texts.ADD_ASK_TITLE, reply_markup=cancel_kb())


@router.message(AddTaskFlow.title)
async def add_title(message: Message, state: FSMContext):
    title = (message.text or "").strip()
    if not title:
        await message.answer(texts.ADD_ASK_TITLE, reply_markup=cancel_kb())
        return
    await state.update_data(title=title)
    await state.set_state(AddTaskFlow.due_date)
    await message.answer(texts.ADD_ASK_DUE, reply_markup=cancel_kb())


@router.message(AddTaskFlow.due_date)
async def add_due_date(message: Message, state: FSMContext):
    txt = (message.text or "").strip()
    due_date: Optional[str] = None if txt == SKIP else txt
    try:
        validate_schedule(due_date, None)
    except DomainError as e:
        await message.answer(f"{e}\n{texts.ADD_ASK_DUE}", reply_markup=cancel_kb())
        return

    await state.update_data(due_date=due_date)
    if due_date is None:
        await state.set_state(AddTaskFlow.task_type)
        await message.answer(texts.ADD_ASK_TYPE, reply_markup=task_type_kb())
        return
    await state.set_state(AddTaskFlow.time)
    await message.answer(texts.ADD_ASK_TIME, reply_markup=cancel_kb())


@router.message(AddTaskFlow.time)
async def add_time(message: Message, state: FSMContext):
    txt = (message.text or "").strip()
    time: Optional[str] = None if txt == SKIP else txt
    data = await state.get_data()
    try:
        validate_schedule(data.get("due_date"), time)
    except DomainError as e:
        await message.answer(f"{e}\n{texts.ADD_ASK_TIME}", reply_markup=cancel_kb())
        return

    await state.update_data(time=time)
    await state.set_state(AddTaskFlow.task_type)
    await message.answer(texts.ADD_ASK_TYPE, reply_markup=task_type_kb())


@router.callback_query(AddTaskFlow.task_type, F.data.startswith("tk:type:"))
async def add_type(
    cb: CallbackQuery,
    state: FSMContext,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    await cb.answer()
    data = await state.get_data()
    await state.clear()
    try:
        task = await task_service.create_task(
            data.get("title", ""),
            due_date=data.get("due_date"),
            time=data.get("time"),
            task_type=_cb_arg(cb),
        )
    except DomainError as e:
        await cb.message.answer(str(e), reply_markup=main_menu_kb())
        return

    await cb.message.answer(f"Added: {task.title}", reply_markup=main_menu_kb())
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=False,
    )


# ----- edit / details -----

@router.message(Command("edit"))
async def edit_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    parts = command_args(message).split(maxsplit=2)
    if len(parts) < 3 or parts[1].lower() not in EDIT_FIELDS:
        await message.answer(
            "Usage: /edit N field value\n"
            f"Fields: {', '.join(EDIT_FIELDS)}. Send '-' as value to clear."
        )
        return

    task = _task_by_number(task_service, clock, parts[0])
    if task is None:
        await message.answer("No task with that number. See /tasks.")
        return

    field = EDIT_FIELDS[parts[1].lower()]
    value = parts[2].strip()
    if value == SKIP and field not in ("title", "task_type"):
        value = None if field != "description" else ""
    try:
        updated = await task_service.edit_task(task.id, **{field: value})
    except DomainError as e:
        await message.answer(str(e))
        return
    await message.answer(texts.render_task_detail(updated, clock.now()))


@router.message(Command("task"))
async def task_detail_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    task = _task_by_number(task_service, clock, command_args(message))
    if task is None:
        await message.answer("Usage: /task N (number from /tasks)")
        return
    await message.answer(texts.render_task_detail(task, clock.now()))


# ----- list actions -----

@router.callback_query(F.data.startswith("tk:st:"))
async def cycle_status_cb(
    cb: CallbackQuery,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    try:
        task = await task_service.cycle_status(_cb_arg(cb))
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    await cb.answer("Completed! 🎉" if task.completed_at else f"Status: {task.status}")
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=True,
    )


@router.callback_query(F.data.startswith("tk:up:"))
async def move_up_cb(
    cb: CallbackQuery,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    task_id = _cb_arg(cb)
    ids = [t.id for t in task_service.list_tasks(clock.now(), filtered=True)]
    if task_id not in ids:
        await cb.answer("Task not found.", show_alert=True)
        return
    index = ids.index(task_id)
    if index == 0:
        await cb.answer("Already on top.")
        return

    try:
        await task_service.reorder(task_id, ids[index - 1])
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    await cb.answer()
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=True,
    )


@router.callback_query(F.data.startswith("tk:del:"))
async def delete_cb(
    cb: CallbackQuery,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    try:
        await task_service.delete_task(_cb_arg(cb))
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    await cb.answer("Deleted.")
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=True,
    )


@router.message(Command("sort"))
async def sort_cmd(
    message: Message,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    await task_service.smart_sort()
    await message.answer(texts.SORTED)
    await _send_or_edit_list(
        target_message=message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=False,
    )


@router.callback_query(F.data == "tk:sort")
async def sort_cb(
    cb: CallbackQuery,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    await task_service.smart_sort()
    await cb.answer(texts.SORTED)
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=True,
    )


# ----- filter -----

@router.message(Command("filter"))
async def filter_cmd(message: Message, settings_service: SettingsService):
    current = settings_service.task_filter()
    await message.answer(f"Showing: {current}", reply_markup=filter_kb(current))


@router.callback_query(F.data.startswith("tk:filter:"))
async def filter_cb(
    cb: CallbackQuery,
    task_service: TaskService,
    settings_service: SettingsService,
    clock: SystemClock,
):
    try:
        current = await settings_service.set_task_filter(_cb_arg(cb))
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    await cb.answer(f"Showing: {current}")
    await _send_or_edit_list(
        target_message=cb.message,
        task_service=task_service,
        settings_service=settings_service,
        clock=clock,
        prefer_edit=True,
    )


# ----- history -----

@router.message(Command("done"))
async def history_cmd(message: Message, task_service: TaskService):
    history = task_service.completed_tasks()
    await message.answer(texts.render_history(history), reply_markup=history_kb(history) if history else None)


@router.callback_query(F.data.startswith("tk:rs:"))
async def restore_completed_cb(cb: CallbackQuery, task_service: TaskService):
    try:
        task = await task_service.restore_completed(_cb_arg(cb))
    except DomainError as e:
        await cb.answer(str(e), show_alert=True)
        return
    await cb.answer(f"Back on the list: {task.title}")
    history = task_service.completed_tasks()
    try:
        await cb.message.edit_text(texts.render_history(history), reply_markup=history_kb(history) if history else None)
    except TelegramBadRequest as e:
        logger.debug("History message not updated: %s", e)


# ----- attachments (files on the machine running the bot) -----

@router.message(Command("attach"))
async def attach_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    parts = command_args(message).split(maxsplit=1)
    task = _task_by_number(task_service, clock, parts[0]) if parts else None
    if task is None or len(parts) < 2:
        await message.answer("Usage: /attach N /path/to/file")
        return

    outcome = await task_service.add_attachments(task.id, PresetFilePicker(open_paths=[parts[1].strip()]))
    if not outcome.success:
        await message.answer(outcome.error or "Nothing attached.")
        return
    await message.answer(texts.render_task_detail(outcome.value, clock.now()))


@router.message(Command("detach"))
async def detach_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    parts = command_args(message).split()
    task = _task_by_number(task_service, clock, parts[0]) if parts else None
    if task is None or len(parts) < 2 or not parts[1].isdigit():
        await message.answer("Usage: /detach N K (K = attachment number in /task N)")
        return
    k = int(parts[1]) - 1
    if not 0 <= k < len(task.attachments):
        await message.answer("No attachment with that number.")
        return
    updated = await task_service.remove_attachment(task.id, task.attachments[k])
    await message.answer(texts.render_task_detail(updated, clock.now()))


@router.message(Command("open"))
async def open_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    """/open N [K]: open attachment K (or the link) of task N on the host; /reveal shows it in its folder."""
    parts = command_args(message).split()
    task = _task_by_number(task_service, clock, parts[0]) if parts else None
    if task is None:
        await message.answer("Usage: /open N [K]")
        return

    if len(parts) > 1 and parts[1].isdigit() and 0 < int(parts[1]) <= len(task.attachments):
        target = task.attachments[int(parts[1]) - 1]
    elif task.attachments:
        target = task.attachments[0]
    elif task.url:
        target = task.url
    else:
        await message.answer("This task has no attachments or link.")
        return

    result = await task_service.open_attachment(target)
    await message.answer("Opened." if result.success else f"Could not open: {result.error}")


@router.message(Command("reveal"))
async def reveal_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    parts = command_args(message).split()
    task = _task_by_number(task_service, clock, parts[0]) if parts else None
    if task is None or not task.attachments:
        await message.answer("Usage: /reveal N (task with attachments)")
        return
    result = await task_service.show_attachment_in_folder(task.attachments[0])
    await message.answer("Shown in folder." if result.success else f"Could not open folder: {result.error}")
