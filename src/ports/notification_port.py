"""Notification port — abstract interface for pinging users in a chat.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class NotificationPort(Protocol):
    """Abstract notification interface used by core modules."""

    async def send_reminder(
        self, chat_id: int | str, thread_id: int | None, user_tag: str
    ) -> None: ...
