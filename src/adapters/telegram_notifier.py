"""Telegram notification adapter — implements NotificationPort.

Sends the nightly check-in with inline "clean" / "snacked" buttons so the
day can be logged straight from the notification. The bot routes the
`checkin:<answer>` callbacks back to the tracker.
"""

from __future__ import annotations

import logging

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup

from src.ports.notification_port import CHECKIN_CLEAN, CHECKIN_SNACKED

logger = logging.getLogger(__name__)

CHECKIN_CALLBACK_PREFIX = "checkin:"


def checkin_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[
        InlineKeyboardButton("✅ Clean today", callback_data=CHECKIN_CALLBACK_PREFIX + CHECKIN_CLEAN),
        InlineKeyboardButton("🍪 I snacked", callback_data=CHECKIN_CALLBACK_PREFIX + CHECKIN_SNACKED),
    ]])


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_checkin(self, user_id: int, text: str) -> None:
        await self._bot.send_message(
            chat_id=user_id,
            text=text,
            reply_markup=checkin_keyboard(),
        )
        logger.debug("Check-in pushed to chat %d", user_id)
