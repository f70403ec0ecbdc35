from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder


def cancel_kb(prefix: str = "cancel") -> InlineKeyboardMarkup:
    kb = InlineKeyboardBuilder()
    kb.button(text="Cancel", callback_data=prefix)
    kb.adjust(1)
    return kb.as_markup()


def confirm_kb(prefix: str) -> InlineKeyboardMarkup:
    """callback_data: f"{prefix}:yes" / f"{prefix}:no" """
    kb = InlineKeyboardBuilder()
    kb.button(text="Yes", callback_data=f"{prefix}:yes")
    kb.button(text="No", callback_data=f"{prefix}:no")
    kb.adjust(2)
    return kb.as_markup()
