from __future__ import annotations

from typing import Optional

from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from studydesk.ui.telegram.keyboards.mainmenu import main_menu_kb


async def go_to_main_menu(
    message: Message,
    state: Optional[FSMContext] = None,
    text: str = "OK."
) -> None:
    """
    Clears FSM state (if provided) and returns user to the main menu.
    Safe to call from anywhere.
    """
    if state is not None:
        await state.clear()

    await message.answer(
        text,
        reply_markup=main_menu_kb()
    )


def command_args(message: Message) -> str:
    """Text after the command word, '' when there is none."""
    parts = (message.text or "").strip().split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""
