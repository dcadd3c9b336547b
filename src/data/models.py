"""
Report Reminder Bot — Data Models.

Value types shared by the stores and the scheduler. Reminders, report dates
and delivery marks are all keyed by ChatKey, the (chat, forum topic) pair a
message belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any

_KEY_SEPARATOR = "/"


def _coerce_chat_id(chat_id: int | str) -> int | str:
    """Numeric chat ids become ints so "100" and 100 address the same chat."""
    if isinstance(chat_id, bool):
        raise TypeError("chat_id must be int or str")
    if isinstance(chat_id, int):
        return chat_id
    text = str(chat_id).strip()
    if not text:
        raise ValueError("chat_id must not be empty")
    if _KEY_SEPARATOR in text:
        raise ValueError(f"chat_id may not contain {_KEY_SEPARATOR!r}: {text!r}")
    digits = text[1:] if text.startswith("-") else text
    if digits.isascii() and digits.isdigit():
        return int(text)
    return text


@total_ordering
@dataclass(frozen=True)
class ChatKey:
    """A conversation: a chat, optionally narrowed to one forum topic.

    thread_id 0 and None both mean "no topic" and compare equal.
    """

    chat_id: int | str
    thread_id: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "chat_id", _coerce_chat_id(self.chat_id))
        thread_id = self.thread_id
        if thread_id is not None:
            thread_id = int(thread_id) or None
        object.__setattr__(self, "thread_id", thread_id)

    def __lt__(self, other: ChatKey) -> bool:
        if not isinstance(other, ChatKey):
            return NotImplemented
        return self._order() < other._order()

    def _order(self) -> tuple[str, int]:
        return (str(self.chat_id), self.thread_id or 0)

    def to_str(self) -> str:
        """Canonical string form: "<chat>" or "<chat>/<thread>"."""
        if self.thread_id is None:
            return str(self.chat_id)
        return f"{self.chat_id}{_KEY_SEPARATOR}{self.thread_id}"

    @classmethod
    def from_str(cls, raw: str) -> ChatKey:
        """Parse the output of to_str(). Raises ValueError on malformed input."""
        chat, sep, thread = raw.partition(_KEY_SEPARATOR)
        if not sep:
            return cls(chat)
        try:
            thread_id = int(thread)
        except ValueError:
            raise ValueError(f"Invalid thread id in chat key {raw!r}") from None
        return cls(chat, thread_id)

    @classmethod
    def from_update(cls, update: Any) -> ChatKey:
        """Build the key for an incoming Telegram update.

        Only forum-topic messages carry a meaningful message_thread_id;
        reply threads in ordinary groups share the chat's key.
        """
        chat_id = update.effective_chat.id
        message = update.effective_message
        thread_id = None
        if message is not None and getattr(message, "is_topic_message", False):
            thread_id = message.message_thread_id
        return cls(chat_id, thread_id)

    def __str__(self) -> str:
        return self.to_str()


@dataclass
class Reminder:
    """One tracked user and the days their report is expected.

    Added via the add command, removed only by resetting the whole chat.
    """

    user_tag: str                 # Telegram username without the leading "@"
    schedule: str                 # normalized, e.g. "every mon wed fri"

    def to_dict(self) -> dict[str, str]:
        return {"userTag": self.user_tag, "schedule": self.schedule}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> Reminder:
        return cls(user_tag=data["userTag"], schedule=data["schedule"])


@dataclass
class Notification:
    """An outbound reminder the scheduler asks the transport to deliver."""

    chat_id: int | str
    user_tag: str
    thread_id: int | None = field(default=None)
