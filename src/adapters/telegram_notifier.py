"""Telegram notification adapter — implements NotificationPort.

Wraps a telegram.Bot instance to satisfy the NotificationPort protocol.
"""

from __future__ import annotations

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


def format_reminder(user_tag: str) -> str:
    """Text of the nightly ping for one user."""
    return f"@{user_tag.lstrip('@')}, don't forget about today's report"


class TelegramNotifier:
    """Telegram implementation of NotificationPort."""

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def send_reminder(
        self, chat_id: int | str, thread_id: int | None, user_tag: str
    ) -> None:
        await self._bot.send_message(
            chat_id=chat_id,
            text=format_reminder(user_tag),
            message_thread_id=thread_id,
        )
        logger.debug("Reminder delivered to %s (thread %s) for @%s", chat_id, thread_id, user_tag)
