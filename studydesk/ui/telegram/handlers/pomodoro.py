from __future__ import annotations

from aiogram import F, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from studydesk.domain.pomodoro.timer import PomodoroTimer
from studydesk.ui.telegram.keyboards.mainmenu import BTN_TIMER
from studydesk.ui.telegram.keyboards.pomodoro import timer_kb
from studydesk.ui.telegram.texts.dashboard import render_timer

router = Router()

_ACTIONS = {
    "toggle": PomodoroTimer.toggle,
    "skip": PomodoroTimer.skip,
    "reset": PomodoroTimer.reset,
}


@router.message(Command("timer"))
@router.message(F.text == BTN_TIMER)
async def timer_cmd(message: Message, pomodoro: PomodoroTimer):
    state = pomodoro.state
    await message.answer(render_timer(state), reply_markup=timer_kb(state))


@router.callback_query(F.data.startswith("pm:"))
async def timer_cb(cb: CallbackQuery, pomodoro: PomodoroTimer):
    await cb.answer()
    action = _ACTIONS.get((cb.data or "").split(":", 1)[-1])
    state = action(pomodoro) if action else pomodoro.state
    try:
        await cb.message.edit_text(render_timer(state), reply_markup=timer_kb(state))
    except TelegramBadRequest:
        # "message is not modified" on a refresh within the same second
        pass
