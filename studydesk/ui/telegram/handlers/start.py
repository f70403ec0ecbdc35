from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.domain.settings.service import SettingsService
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.clock.system_clock import SystemClock
from studydesk.ui.telegram.handlers._common import send_dashboard
from studydesk.ui.telegram.keyboards.mainmenu import BTN_DASHBOARD

router = Router()

HELP_TEXT = (
    "<b>Commands</b>\n"
    "/tasks - active tasks\n"
    "/add [title] - new task\n"
    "/edit N field value - edit task N (title, description, url, due, time, type)\n"
    "/task N - task details\n"
    "/sort - smart sort by urgency\n"
    "/filter - show all, academic or personal\n"
    "/done - completed history\n"
    "/stats - statistics, /reset_stats to clear\n"
    "/timer - Pomodoro timer\n"
    "/backups, /backup, /export, /import - backups\n"
    "/settings, /name, /semester, /pomodoro - settings\n"
    "/cancel - abort the current step"
)


@router.message(CommandStart())
async def start_cmd(
    message: Message,
    state: FSMContext,
    task_service: TaskService,
    settings_service: SettingsService,
    pomodoro: PomodoroTimer,
    clock: SystemClock,
):
    await state.clear()
    await send_dashboard(message, task_service, settings_service, pomodoro, clock)


@router.message(Command("menu"))
@router.message(F.text == BTN_DASHBOARD)
async def menu_cmd(
    message: Message,
    state: FSMContext,
    task_service: TaskService,
    settings_service: SettingsService,
    pomodoro: PomodoroTimer,
    clock: SystemClock,
):
    await state.clear()
    await send_dashboard(message, task_service, settings_service, pomodoro, clock)


@router.message(Command("help"))
async def help_cmd(message: Message):
    await message.answer(HELP_TEXT)
