from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from studydesk.domain.stats.aggregator import StatsAggregator
from studydesk.domain.tasks.service import TaskService
from studydesk.infra.clock.system_clock import SystemClock
from studydesk.ui.telegram.keyboards.common import confirm_kb
from studydesk.ui.telegram.keyboards.mainmenu import BTN_STATS
from studydesk.ui.telegram.texts import stats as texts

router = Router()


def _aggregator(task_service: TaskService, clock: SystemClock) -> StatsAggregator:
    return StatsAggregator([t.to_dict() for t in task_service.completed_tasks()], clock.tz)


@router.message(Command("stats"))
@router.message(F.text == BTN_STATS)
async def stats_cmd(message: Message, task_service: TaskService, clock: SystemClock):
    stats = _aggregator(task_service, clock)
    today = clock.now().date()
    text = "\n\n".join([
        texts.render_summary(stats.summary(today)),
        "<b>Last 5 weeks</b>\n" + texts.render_heatmap(stats.daily_heatmap(today)),
        texts.render_weekdays(stats.weekday_histogram()),
        texts.render_hours(stats.hour_histogram()),
    ])
    await message.answer(text)


@router.message(Command("reset_stats"))
async def reset_stats_cmd(message: Message):
    await message.answer(texts.RESET_CONFIRM, reply_markup=confirm_kb("st:reset"))


@router.callback_query(F.data.startswith("st:reset:"))
async def reset_stats_cb(cb: CallbackQuery, task_service: TaskService):
    await cb.answer()
    if not (cb.data or "").endswith(":yes"):
        await cb.message.edit_text("Kept your statistics.")
        return
    removed = await task_service.clear_completed()
    await cb.message.edit_text(texts.RESET_DONE.format(count=removed))
