"""
Report Reminder Bot — Nightly Report Check.

Once a day (21:00 Europe/Moscow by default) every tracked chat is checked:
if nobody posted a report today and one of the chat's reminders is due,
the reminder's user is pinged.

The decision pass is synchronous and completes before any message is sent,
so handlers running between sends never observe a half-evaluated sweep.

This module is provider-agnostic: it depends on the NotificationPort
protocol, not on a specific implementation.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from src.config import settings
from src.core.schedule import is_due
from src.data.models import Notification

if TYPE_CHECKING:
    from src.data.db import DailyDedupTracker, ReminderStore, ReportLedger
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


def today_in_timezone(tz_name: str | None = None) -> date:
    """Current calendar date in the configured (not the host's) timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.TIMEZONE)).date()


# ---------------------------------------------------------------------------
# Decision pass
# ---------------------------------------------------------------------------


def plan_notifications(
    store: ReminderStore,
    ledger: ReportLedger,
    tracker: DailyDedupTracker,
    today: date,
) -> list[Notification]:
    """Decide which users to ping today, consuming dedup marks as it goes.

    Per chat:
    - a report already recorded today skips the chat without touching the
      dedup tracker;
    - otherwise the first due reminder that wins the chat's dedup mark
      produces the chat's single notification for the day. Further due
      reminders in the same chat are not sent.
    """
    planned: list[Notification] = []
    for key in store.keys():
        if ledger.has_reported_on(key, today):
            logger.debug("Chat %s already reported on %s", key, today)
            continue

        for reminder in store.list(key):
            if is_due(reminder.schedule, today) and tracker.mark_if_unmarked(key, today):
                planned.append(
                    Notification(
                        chat_id=key.chat_id,
                        thread_id=key.thread_id,
                        user_tag=reminder.user_tag,
                    )
                )
                break

    return planned


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


async def send_due_reminders(
    notifier: NotificationPort,
    store: ReminderStore,
    ledger: ReportLedger,
    tracker: DailyDedupTracker,
    today: date | None = None,
) -> list[Notification]:
    """Run the nightly check and hand every planned ping to the notifier.

    A failed send is logged and skipped; its dedup mark stays consumed.
    Returns the notifications that were planned.
    """
    if today is None:
        today = today_in_timezone()

    planned = plan_notifications(store, ledger, tracker, today)
    tracker.prune_before(today)
    logger.info("Report check for %s: %d reminder(s) to send", today.isoformat(), len(planned))

    for note in planned:
        try:
            await notifier.send_reminder(note.chat_id, note.thread_id, note.user_tag)
            logger.info("Reminder sent to %s for @%s", note.chat_id, note.user_tag)
        except Exception as exc:
            logger.error(
                "Failed to send reminder to %s for @%s: %s",
                note.chat_id, note.user_tag, exc,
            )

    return planned
