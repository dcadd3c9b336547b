"""
Report Reminder Bot — Mention Command Parser.

Besides slash commands, the bot reacts to group messages that mention it:

    @reminder_bot add alice every monday and friday
    @reminder_bot добавить alice every weekday
    ... done for today, @reminder_bot report

The mention may appear anywhere in the text; the word following it selects
the command and the remaining words are its arguments.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

# Verb aliases (English and Russian) → canonical command name
COMMAND_ALIASES: dict[str, str] = {
    "add": "add",
    "добавить": "add",
    "reset": "reset",
    "сброс": "reset",
    "list": "list",
    "список": "list",
    "report": "report",
    "отчет": "report",
    "отчёт": "report",
    "help": "help",
    "помощь": "help",
}


class ParsedCommand(BaseModel):
    """A command extracted from a message mentioning the bot.

    JSON example:
    {
        "command": "add",
        "args": ["alice", "every", "weekday"]
    }
    """
    command: str
    args: list[str] = []


def parse_mention_command(text: str, bot_username: str) -> ParsedCommand | None:
    """Find "@<bot_username> <verb> [args...]" in a message.

    Matching of the mention and the verb is case-insensitive. Returns None
    when the bot is not mentioned or no known verb follows any mention.
    """
    username = bot_username.strip().lstrip("@")
    if not username or not text:
        return None

    pattern = re.compile(rf"@{re.escape(username)}\b", re.IGNORECASE)
    for match in pattern.finditer(text):
        words = text[match.end():].split()
        if not words:
            continue
        command = COMMAND_ALIASES.get(words[0].lower().strip(".,!?:;"))
        if command is not None:
            return ParsedCommand(command=command, args=words[1:])
    return None


def split_add_args(args: list[str]) -> tuple[str, str] | None:
    """Split add-command arguments into (user_tag, raw_schedule).

    The user tag loses a leading "@". Returns None when either part is missing.
    """
    if len(args) < 2:
        return None
    user_tag = args[0].lstrip("@")
    schedule = " ".join(args[1:])
    if not user_tag or not schedule.strip():
        return None
    return user_tag, schedule
