from __future__ import annotations

from aiogram.types import ReplyKeyboardMarkup
from aiogram.utils.keyboard import ReplyKeyboardBuilder

BTN_TASKS = "📋 Tasks"
BTN_ADD = "➕ Add task"
BTN_DASHBOARD = "🏠 Dashboard"
BTN_TIMER = "🍅 Timer"
BTN_STATS = "📊 Stats"
BTN_BACKUPS = "💾 Backups"


def main_menu_kb() -> ReplyKeyboardMarkup:
    kb = ReplyKeyboardBuilder()

    kb.button(text=BTN_TASKS)
    kb.button(text=BTN_ADD)
    kb.button(text=BTN_DASHBOARD)
    kb.button(text=BTN_TIMER)
    kb.button(text=BTN_STATS)
    kb.button(text=BTN_BACKUPS)

    # 2x3 grid
    kb.adjust(2, 2, 2)

    return kb.as_markup(resize_keyboard=True, one_time_keyboard=False)
