"""
Report Reminder Bot — Centralized configuration.

Loads all settings from .env and validates required keys.
This module is the foundation for every other module in the project.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (two levels up from src/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Telegram
    TELEGRAM_BOT_TOKEN: str
    BOT_USERNAME: str = ""       # empty → taken from the bot account at runtime

    # SQLite
    DATABASE_PATH: str = "data/reminders.db"

    # Nightly report check (pinned to TIMEZONE, not the host clock)
    TIMEZONE: str = "Europe/Moscow"
    REPORT_CHECK_HOUR: int = 21
    REPORT_CHECK_MINUTE: int = 0

    # Security — empty list means every chat is served
    ALLOWED_CHAT_IDS: list[int] = []

    @field_validator("ALLOWED_CHAT_IDS", mode="before")
    @classmethod
    def parse_chat_ids(cls, v: str | list[int]) -> list[int]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [int(cid.strip()) for cid in v.split(",") if cid.strip()]
        return []

    @field_validator("REPORT_CHECK_HOUR", "REPORT_CHECK_MINUTE", mode="before")
    @classmethod
    def parse_int(cls, v: str | int) -> int:
        return int(v)

    @field_validator("BOT_USERNAME", mode="before")
    @classmethod
    def strip_at(cls, v: str) -> str:
        return (v or "").strip().lstrip("@")


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    token = os.getenv("TELEGRAM_BOT_TOKEN", "")

    if not token or token.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        TELEGRAM_BOT_TOKEN=token,
        BOT_USERNAME=os.getenv("BOT_USERNAME", ""),
        DATABASE_PATH=os.getenv("DATABASE_PATH", "data/reminders.db"),
        TIMEZONE=os.getenv("TIMEZONE", "Europe/Moscow"),
        REPORT_CHECK_HOUR=os.getenv("REPORT_CHECK_HOUR", "21"),
        REPORT_CHECK_MINUTE=os.getenv("REPORT_CHECK_MINUTE", "0"),
        ALLOWED_CHAT_IDS=os.getenv("ALLOWED_CHAT_IDS", ""),
    )


# Singleton — imported by all other modules as:
#   from src.config import settings
settings = _load_settings()
