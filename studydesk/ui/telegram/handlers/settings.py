from __future__ import annotations

from html import escape

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from studydesk.domain.common.errors import DomainError
from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.domain.settings.service import SettingsService
from studydesk.ui.telegram.utils.navigation import command_args

router = Router()


def _render_settings(settings_service: SettingsService) -> str:
    start, end = settings_service.semester_dates()
    work, brk = settings_service.pomodoro_durations()
    name = settings_service.user_name() or "-"
    return (
        "<b>Settings</b>\n"
        f"Name: {escape(name)}  (/name NAME)\n"
        f"Semester: {start} - {end}  (/semester START END)\n"
        f"Task filter: {settings_service.task_filter()}  (/filter)\n"
        f"Pomodoro: {work} min work / {brk} min break  (/pomodoro WORK BREAK)"
    )


@router.message(Command("settings"))
async def settings_cmd(message: Message, settings_service: SettingsService):
    await message.answer(_render_settings(settings_service))


@router.message(Command("name"))
async def name_cmd(message: Message, settings_service: SettingsService):
    try:
        name = await settings_service.set_user_name(command_args(message))
    except DomainError as e:
        await message.answer(str(e))
        return
    await message.answer(f"Hi {escape(name)}!" if name else "Name cleared.")


@router.message(Command("semester"))
async def semester_cmd(message: Message, settings_service: SettingsService):
    parts = command_args(message).split()
    if len(parts) != 2:
        await message.answer("Usage: /semester YYYY-MM-DD YYYY-MM-DD")
        return
    try:
        start, end = await settings_service.set_semester_dates(parts[0], parts[1])
    except DomainError as e:
        await message.answer(str(e))
        return
    await message.answer(f"Semester: {start} - {end}")


@router.message(Command("pomodoro"))
async def pomodoro_durations_cmd(message: Message, settings_service: SettingsService, pomodoro: PomodoroTimer):
    parts = command_args(message).split()
    try:
        work, brk = (int(p) for p in parts)
    except ValueError:
        await message.answer("Usage: /pomodoro WORK_MINUTES BREAK_MINUTES, e.g. /pomodoro 50 10")
        return
    try:
        work, brk = await settings_service.set_pomodoro_durations(work, brk)
    except DomainError as e:
        await message.answer(str(e))
        return
    pomodoro.set_durations(work, brk)
    await message.answer(f"Pomodoro: {work} min work / {brk} min break")
