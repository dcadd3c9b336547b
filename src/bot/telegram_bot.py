"""
Report Reminder Bot — Telegram Bot.

Telegram is the only user interface. Chats register who is expected to post
a daily report and on which days; the bot records report messages and, every
evening, pings whoever has not reported.

Commands arrive either as slash commands (/add, /list, ...) or as messages
mentioning the bot (`@bot add alice every weekday`). Both routes share the
same handlers below.
"""

from __future__ import annotations

import logging
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from src.config import settings
from src.core.commands import parse_mention_command, split_add_args
from src.core.schedule import is_recognized
from src.core.scheduler import send_due_reminders, today_in_timezone
from src.data.models import ChatKey

if TYPE_CHECKING:
    from src.data.db import DailyDedupTracker, ReminderStore, ReportLedger
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

USAGE_ADD = "Usage: /add <user> <schedule>\nExample: /add alice every weekday"

HELP_TEXT = (
    "*Available commands:*\n"
    "/add <user> <schedule> — Track a user's daily report\n"
    "/list — Show tracked users and their schedules\n"
    "/reset — Stop tracking everyone in this chat\n"
    "/report — Mark today's report as done\n"
    "/help — Show this message\n\n"
    "*Schedules:* `every day`, `every weekday`, `every monday wednesday`, "
    "or a single day such as `friday`.\n"
    "You can also mention me instead of using a slash: `@{bot} add alice every day`."
)


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def allowed_chats_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores updates from chats outside the allow-list.

    An empty ALLOWED_CHAT_IDS serves every chat.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        allowed = settings.ALLOWED_CHAT_IDS
        chat = update.effective_chat
        if allowed and (chat is None or chat.id not in allowed):
            cid = chat.id if chat else "unknown"
            logger.warning("Ignoring update from non-allowed chat_id=%s", cid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Shared command logic — returns the reply text
# ---------------------------------------------------------------------------


def _bot_username(context: ContextTypes.DEFAULT_TYPE) -> str:
    return settings.BOT_USERNAME or (context.bot.username or "")


def _do_add(key: ChatKey, args: list[str], context: ContextTypes.DEFAULT_TYPE) -> str:
    parsed = split_add_args(args)
    if parsed is None:
        return USAGE_ADD

    user_tag, raw_schedule = parsed
    store: ReminderStore = context.bot_data["reminders"]
    reminder = store.add(key, user_tag, raw_schedule)

    msg = f"Added: @{reminder.user_tag} — {reminder.schedule}"
    if not is_recognized(reminder.schedule):
        msg += (
            "\n⚠️ I don't recognize this schedule, so this reminder will never fire. "
            "See /help for examples."
        )
    return msg


def _do_reset(key: ChatKey, context: ContextTypes.DEFAULT_TYPE) -> str:
    store: ReminderStore = context.bot_data["reminders"]
    store.reset(key)
    return "All tracked reports in this chat have been reset."


def _do_list(key: ChatKey, context: ContextTypes.DEFAULT_TYPE) -> str:
    store: ReminderStore = context.bot_data["reminders"]
    reminders = store.list(key)
    if not reminders:
        return "No active reminders."
    return "\n".join(f"@{r.user_tag} — {r.schedule}" for r in reminders)


def _do_report(key: ChatKey, context: ContextTypes.DEFAULT_TYPE) -> str:
    ledger: ReportLedger = context.bot_data["reports"]
    tracker: DailyDedupTracker = context.bot_data["tracker"]

    today = today_in_timezone()
    ledger.record_report(key, today)
    tracker.mark_if_unmarked(key, today)
    return "✅ Report received — no reminder today."


def _do_help(context: ContextTypes.DEFAULT_TYPE) -> str:
    return HELP_TEXT.format(bot=_bot_username(context) or "bot")


async def _dispatch(
    command: str,
    args: list[str],
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Run a command for the update's chat and reply with its result."""
    key = ChatKey.from_update(update)

    try:
        if command == "add":
            reply = _do_add(key, args, context)
        elif command == "reset":
            reply = _do_reset(key, context)
        elif command == "list":
            reply = _do_list(key, context)
        elif command == "report":
            reply = _do_report(key, context)
        elif command == "help":
            await update.effective_message.reply_text(_do_help(context), parse_mode="Markdown")
            return
        else:
            logger.warning("Unknown command %r in %s", command, key)
            return
    except Exception as exc:
        logger.error("/%s error in %s: %s", command, key, exc)
        await update.effective_message.reply_text("Something went wrong. Please try again.")
        return

    await update.effective_message.reply_text(reply)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@allowed_chats_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.effective_message.reply_text(
        "Hi! I keep track of daily reports in this chat.\n\n"
        "• Use /add <user> <schedule> to expect a report from someone\n"
        "• Post /report when today's report is done\n"
        f"• Every evening at {settings.REPORT_CHECK_HOUR:02d}:{settings.REPORT_CHECK_MINUTE:02d} "
        f"({settings.TIMEZONE}) I remind whoever is due and hasn't reported\n\n"
        "Type /help for the full command list."
    )


@allowed_chats_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await _dispatch("help", [], update, context)


@allowed_chats_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <user> <schedule>."""
    await _dispatch("add", list(context.args or []), update, context)


@allowed_chats_only
async def cmd_reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reset — clear this chat's reminders."""
    await _dispatch("reset", [], update, context)


@allowed_chats_only
async def cmd_list(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list — show this chat's reminders."""
    await _dispatch("list", [], update, context)


@allowed_chats_only
async def cmd_report(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /report — record today's report."""
    await _dispatch("report", [], update, context)


# ---------------------------------------------------------------------------
# Message handlers
# ---------------------------------------------------------------------------


@allowed_chats_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text messages — act on those that mention the bot."""
    parsed = parse_mention_command(update.effective_message.text or "", _bot_username(context))
    if parsed is None:
        return
    await _dispatch(parsed.command, parsed.args, update, context)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    store: ReminderStore | None = None,
    ledger: ReportLedger | None = None,
    tracker: DailyDedupTracker | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Reminder store. Defaults to ReminderStore at DATABASE_PATH.
        ledger: Report ledger. Defaults to ReportLedger at DATABASE_PATH.
        tracker: Dedup tracker. Defaults to DailyDedupTracker at DATABASE_PATH.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    from src.data.db import DailyDedupTracker, ReminderStore, ReportLedger

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if store is None:
        store = ReminderStore()
    if ledger is None:
        ledger = ReportLedger()
    if tracker is None:
        tracker = DailyDedupTracker()

    if notifier is None:
        from src.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    # Store state and ports in bot_data for handler access
    app.bot_data["reminders"] = store
    app.bot_data["reports"] = ledger
    app.bot_data["tracker"] = tracker
    app.bot_data["notifier"] = notifier

    # Edited messages are ignored so fixing a typo never re-runs /add
    _new = filters.UpdateType.MESSAGE

    # Commands
    app.add_handler(CommandHandler("start", cmd_start, filters=_new))
    app.add_handler(CommandHandler("help", cmd_help, filters=_new))
    app.add_handler(CommandHandler("add", cmd_add, filters=_new))
    app.add_handler(CommandHandler("reset", cmd_reset, filters=_new))
    app.add_handler(CommandHandler("list", cmd_list, filters=_new))
    app.add_handler(CommandHandler("report", cmd_report, filters=_new))

    # Text messages (non-command) — mention commands
    app.add_handler(MessageHandler(_new & filters.TEXT & ~filters.COMMAND, handle_text))

    _setup_report_check(app, notifier, store, ledger, tracker)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_report_check(
    app: Application,
    notifier: NotificationPort,
    store: ReminderStore,
    ledger: ReportLedger,
    tracker: DailyDedupTracker,
) -> None:
    """Register the nightly report check, pinned to settings.TIMEZONE."""
    tz = ZoneInfo(settings.TIMEZONE)
    check_time = dt_time(
        hour=settings.REPORT_CHECK_HOUR,
        minute=settings.REPORT_CHECK_MINUTE,
        tzinfo=tz,
    )

    async def _report_check_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await send_due_reminders(notifier, store, ledger, tracker)

    app.job_queue.run_daily(
        _report_check_callback,
        time=check_time,
        name="report_check",
    )

    logger.info(
        "Report check scheduled at %02d:%02d %s",
        settings.REPORT_CHECK_HOUR,
        settings.REPORT_CHECK_MINUTE,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling.

    run_polling stops the application cleanly on SIGINT/SIGTERM.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Report Reminder bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
