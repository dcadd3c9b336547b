"""
Report Reminder Bot — State Database.

Reminders, report dates and delivery marks persist in SQLite, surviving
bot restarts. Each store keeps its data in memory and writes through to
disk on every mutation; a failed write is logged and the
in-memory state stays authoritative until the next successful write.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import date
from pathlib import Path

from src.core.schedule import normalize_schedule
from src.data.models import ChatKey, Reminder

logger = logging.getLogger(__name__)


def _resolve_path(db_path: str | None) -> str:
    if db_path is None:
        from src.config import settings
        db_path = settings.DATABASE_PATH
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return db_path


def _quarantine(db_path: str, exc: Exception) -> str:
    """Move an unreadable database aside and return the path to open instead.

    The unreadable file is never deleted. If it cannot be moved, a fresh
    database is opened next to it under "<name>.recovered".
    """
    logger.warning("Database %s is unreadable (%s); starting with empty state", db_path, exc)
    path = Path(db_path)
    if db_path == ":memory:" or not path.exists():
        return db_path
    target = path.with_name(path.name + ".corrupt")
    try:
        path.replace(target)
        logger.warning("Corrupt database moved to %s", target)
    except OSError as move_exc:
        fallback = path.with_name(path.name + ".recovered")
        logger.warning(
            "Could not move corrupt database %s (%s); using %s instead",
            db_path, move_exc, fallback,
        )
        return str(fallback)
    return db_path


def _key_params(key: ChatKey) -> tuple[str, int]:
    return str(key.chat_id), key.thread_id or 0


class _SQLiteStore:
    """Connection handling and load-with-recovery shared by the stores."""

    _TABLE_SQL = ""

    def __init__(self, db_path: str | None = None) -> None:
        self._db_path = _resolve_path(db_path)
        self._memory_conn: sqlite3.Connection | None = None
        try:
            self._init_db()
            self._load()
        except sqlite3.DatabaseError as exc:
            self._db_path = _quarantine(self._db_path, exc)
            self._init_db()
            self._load()

    def _connect(self) -> sqlite3.Connection:
        # ":memory:" is per-connection, so one connection is kept for its lifetime
        if self._db_path == ":memory:" and self._memory_conn is not None:
            return self._memory_conn
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        if self._db_path == ":memory:":
            self._memory_conn = conn
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(self._TABLE_SQL)
        logger.debug("%s table initialized at %s", type(self).__name__, self._db_path)

    def _load(self) -> None:
        raise NotImplementedError

    def _reset_memory(self) -> None:
        raise NotImplementedError


class ReminderStore(_SQLiteStore):
    """Per-chat reminder lists, in insertion order.

    Each chat's list is stored as one JSON array of {userTag, schedule},
    so an explicitly reset (empty) list survives a restart as well.
    """

    _TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS reminders (
            chat_id    TEXT    NOT NULL,
            thread_id  INTEGER NOT NULL DEFAULT 0,
            items      TEXT    NOT NULL,
            PRIMARY KEY (chat_id, thread_id)
        )
    """

    def _reset_memory(self) -> None:
        self._reminders: dict[ChatKey, list[Reminder]] = {}

    def _load(self) -> None:
        self._reset_memory()
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM reminders").fetchall()
        for row in rows:
            key = ChatKey(row["chat_id"], row["thread_id"])
            try:
                items = [Reminder.from_dict(item) for item in json.loads(row["items"])]
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Skipping unreadable reminders for chat %s: %s", key, exc)
                continue
            self._reminders[key] = items
        logger.info("Loaded reminders for %d chat(s)", len(self._reminders))

    def _persist(self) -> None:
        """Rewrite the whole store. Failures are logged, never raised."""
        rows = [
            (*_key_params(key), json.dumps([r.to_dict() for r in items], ensure_ascii=False))
            for key, items in self._reminders.items()
        ]
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM reminders")
                conn.executemany(
                    "INSERT INTO reminders (chat_id, thread_id, items) VALUES (?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as exc:
            logger.warning("Failed to persist reminders, keeping them in memory only: %s", exc)

    def list(self, key: ChatKey) -> list[Reminder]:
        """Return the chat's reminders (empty if the chat was never addressed)."""
        return list(self._reminders.get(key, []))

    def keys(self) -> list[ChatKey]:
        """All chats that have a reminder list, in ChatKey order."""
        return sorted(self._reminders)

    def add(self, key: ChatKey, user_tag: str, raw_schedule: str) -> Reminder:
        """Normalize the schedule and append a reminder. Duplicates are allowed."""
        reminder = Reminder(user_tag=user_tag, schedule=normalize_schedule(raw_schedule))
        self._reminders.setdefault(key, []).append(reminder)
        self._persist()
        logger.info("Reminder added in %s: @%s %s", key, user_tag, reminder.schedule)
        return reminder

    def reset(self, key: ChatKey) -> None:
        """Replace the chat's list with an empty one."""
        self._reminders[key] = []
        self._persist()
        logger.info("Reminders reset in %s", key)

    def snapshot(self) -> dict[str, list[dict[str, str]]]:
        """The reminders-by-key document, keyed by ChatKey.to_str()."""
        return {
            key.to_str(): [r.to_dict() for r in self._reminders[key]]
            for key in self.keys()
        }


class ReportLedger(_SQLiteStore):
    """Last date a report was received in each chat."""

    _TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS reports (
            chat_id     TEXT    NOT NULL,
            thread_id   INTEGER NOT NULL DEFAULT 0,
            last_report TEXT    NOT NULL,
            PRIMARY KEY (chat_id, thread_id)
        )
    """

    def _reset_memory(self) -> None:
        self._reports: dict[ChatKey, date] = {}

    def _load(self) -> None:
        self._reset_memory()
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM reports").fetchall()
        for row in rows:
            key = ChatKey(row["chat_id"], row["thread_id"])
            try:
                self._reports[key] = date.fromisoformat(row["last_report"])
            except (ValueError, TypeError) as exc:
                logger.warning("Skipping unreadable report date for chat %s: %s", key, exc)
        logger.info("Loaded report dates for %d chat(s)", len(self._reports))

    def _persist(self) -> None:
        rows = [(*_key_params(key), day.isoformat()) for key, day in self._reports.items()]
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM reports")
                conn.executemany(
                    "INSERT INTO reports (chat_id, thread_id, last_report) VALUES (?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as exc:
            logger.warning("Failed to persist report dates, keeping them in memory only: %s", exc)

    def record_report(self, key: ChatKey, day: date) -> None:
        """Overwrite the chat's last report date."""
        self._reports[key] = day
        self._persist()
        logger.info("Report recorded in %s for %s", key, day.isoformat())

    def has_reported_on(self, key: ChatKey, day: date) -> bool:
        return self._reports.get(key) == day

    def last_report(self, key: ChatKey) -> date | None:
        return self._reports.get(key)

    def snapshot(self) -> dict[str, str]:
        """The reports-by-key document, keyed by ChatKey.to_str()."""
        return {
            key.to_str(): self._reports[key].isoformat()
            for key in sorted(self._reports)
        }


class DailyDedupTracker(_SQLiteStore):
    """(chat, day) pairs that were already notified or reported.

    Persisted, so a restart between a report and the nightly check neither
    re-sends nor forgets the suppression.
    """

    _TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS deliveries (
            chat_id    TEXT    NOT NULL,
            thread_id  INTEGER NOT NULL DEFAULT 0,
            day        TEXT    NOT NULL,
            PRIMARY KEY (chat_id, thread_id, day)
        )
    """

    def _reset_memory(self) -> None:
        self._marks: set[tuple[ChatKey, str]] = set()

    def _load(self) -> None:
        self._reset_memory()
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM deliveries").fetchall()
        for row in rows:
            self._marks.add((ChatKey(row["chat_id"], row["thread_id"]), row["day"]))
        logger.info("Loaded %d delivery mark(s)", len(self._marks))

    def is_marked(self, key: ChatKey, day: date) -> bool:
        return (key, day.isoformat()) in self._marks

    def mark_if_unmarked(self, key: ChatKey, day: date) -> bool:
        """Record (key, day) and return True, or return False if already recorded."""
        mark = (key, day.isoformat())
        if mark in self._marks:
            return False
        self._marks.add(mark)
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO deliveries (chat_id, thread_id, day) VALUES (?, ?, ?)",
                    (*_key_params(key), mark[1]),
                )
        except sqlite3.Error as exc:
            logger.warning("Failed to persist delivery mark %s %s: %s", key, mark[1], exc)
        return True

    def prune_before(self, day: date) -> int:
        """Drop marks for days earlier than `day`. Returns how many were dropped."""
        cutoff = day.isoformat()
        stale = {mark for mark in self._marks if mark[1] < cutoff}
        if not stale:
            return 0
        self._marks -= stale
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM deliveries WHERE day < ?", (cutoff,))
        except sqlite3.Error as exc:
            logger.warning("Failed to prune delivery marks before %s: %s", cutoff, exc)
        logger.debug("Pruned %d delivery mark(s) before %s", len(stale), cutoff)
        return len(stale)
