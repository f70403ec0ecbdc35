from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from studydesk.domain.pomodoro.timer import MODE_IDLE, TimerState


def timer_kb(state: TimerState) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    if state.mode == MODE_IDLE:
        kb.button(text="▶️ Start", callback_data="pm:toggle")
    else:
        kb.button(text="⏸ Pause" if state.is_active else "▶️ Resume", callback_data="pm:toggle")
        kb.button(text="⏭ Skip", callback_data="pm:skip")
        kb.button(text="⏹ Reset", callback_data="pm:reset")
    kb.button(text="🔄 Refresh", callback_data="pm:show")
    kb.adjust(3, 1)
    return kb.as_markup()
