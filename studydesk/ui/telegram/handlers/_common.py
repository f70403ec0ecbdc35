from __future__ import annotations

from aiogram.types import Message

from studydesk.domain.common.time import parse_civil_date
from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.domain.settings.service import SettingsService
from studydesk.domain.stats.aggregator import StatsAggregator
from studydesk.domain.stats.semester import semester_progress
from studydesk.domain.tasks.ordering import is_overdue
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.clock.system_clock import SystemClock
from studydesk.ui.telegram.keyboards.mainmenu import main_menu_kb
from studydesk.ui.telegram.texts.dashboard import render_dashboard


def dashboard_text(
    task_service: TaskService,
    settings_service: SettingsService,
    pomodoro: PomodoroTimer,
    clock: SystemClock,
) -> str:
    now = clock.now()
    tasks = task_service.list_tasks(now)
    start, end = settings_service.semester_dates()
    progress = semester_progress(parse_civil_date(start), parse_civil_date(end), now.date())
    stats = StatsAggregator([t.to_dict() for t in task_service.completed_tasks()], clock.tz)
    return render_dashboard(
        user_name=settings_service.user_name(),
        progress=progress,
        timer=pomodoro.state,
        open_tasks=len(tasks),
        overdue=sum(1 for t in tasks if is_overdue(t, now)),
        done_today=stats.count_on(now.date()),
    )


async def send_dashboard(
    message: Message,
    task_service: TaskService,
    settings_service: SettingsService,
    pomodoro: PomodoroTimer,
    clock: SystemClock,
) -> None:
    text = dashboard_text(task_service, settings_service, pomodoro, clock)
    await message.answer(text, reply_markup=main_menu_kb())
