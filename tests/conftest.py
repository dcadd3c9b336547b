"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides the state stores backed by a temp SQLite file.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("BOT_USERNAME", "izi_reminder_bot")
os.environ.setdefault("DATABASE_PATH", ":memory:")
os.environ.setdefault("TIMEZONE", "Europe/Moscow")
os.environ.setdefault("ALLOWED_CHAT_IDS", "")

import pytest


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_reminders.db")


@pytest.fixture
def reminder_store(tmp_db_path):
    """Return a ReminderStore backed by a temp file."""
    from src.data.db import ReminderStore
    return ReminderStore(db_path=tmp_db_path)


@pytest.fixture
def report_ledger(tmp_db_path):
    """Return a ReportLedger backed by a temp file."""
    from src.data.db import ReportLedger
    return ReportLedger(db_path=tmp_db_path)


@pytest.fixture
def dedup_tracker(tmp_db_path):
    """Return a DailyDedupTracker backed by a temp file."""
    from src.data.db import DailyDedupTracker
    return DailyDedupTracker(db_path=tmp_db_path)
