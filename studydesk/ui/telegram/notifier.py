from __future__ import annotations

import logging
from html import escape

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from studydesk.domain.common.ports import Notifier

logger = logging.getLogger(__name__)


class TelegramNotifier(Notifier):
    """Delivers notifications as chat messages to the owner."""

    def __init__(self, bot: Bot, chat_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id

    async def notify(self, title: str, body: str) -> None:
        try:
            await self._bot.send_message(self._chat_id, f"<b>{escape(title)}</b>\n{escape(body)}")
        except TelegramAPIError as e:
            logger.warning("Notification not delivered: %s", e)
