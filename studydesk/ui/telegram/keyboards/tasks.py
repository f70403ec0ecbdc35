from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from studydesk.constants import TASK_FILTERS, TASK_TYPE_ACADEMIC, TASK_TYPE_PERSONAL
from studydesk.domain.tasks.models import Task
from studydesk.ui.telegram.texts.tasks import status_icon


def _short(title: str, limit: int = 28) -> str:
    title = title or "(empty)"
    return title if len(title) <= limit else title[: limit - 1] + "…"


def tasks_list_kb(tasks: Sequence[Task]) -> InlineKeyboardMarkup:
    """
    One row per task:
      [status + title] -> tk:st:<id> (cycle status)
      [⬆] -> tk:up:<id>   [🗑️] -> tk:del:<id>
    """
    kb = InlineKeyboardBuilder()
    for task in tasks:
        kb.button(text=f"{status_icon(task)} {_short(task.title)}", callback_data=f"tk:st:{task.id}")
        kb.button(text="⬆", callback_data=f"tk:up:{task.id}")
        kb.button(text="🗑️", callback_data=f"tk:del:{task.id}")
    kb.button(text="✨ Smart sort", callback_data="tk:sort")
    kb.adjust(*([3] * len(tasks)), 1)
    return kb.as_markup()


def history_kb(tasks: Sequence[Task], limit: int = 10) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for task in tasks[:limit]:
        kb.button(text=f"↩️ {_short(task.title)}", callback_data=f"tk:rs:{task.id}")
    kb.adjust(1)
    return kb.as_markup()


def task_type_kb() -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Academic", callback_data=f"tk:type:{TASK_TYPE_ACADEMIC}")
    kb.button(text="Personal", callback_data=f"tk:type:{TASK_TYPE_PERSONAL}")
    kb.button(text="Cancel", callback_data="cancel")
    kb.adjust(2, 1)
    return kb.as_markup()


def filter_kb(current: str) -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    for name in TASK_FILTERS:
        mark = "• " if name == current else ""
        kb.button(text=f"{mark}{name.title()}", callback_data=f"tk:filter:{name}")
    kb.adjust(3)
    return kb.as_markup()
