"""
BingeBreaker — Telegram Bot.

Telegram is the only user interface. Quick check-ins, full daily logs,
weight tracking, settings, backups and the craving coach all flow through
this bot. Handlers stay thin: they parse the update, call TrackerService or
CoachService, and render the response object.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import io
import logging
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove, Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from src.adapters.telegram_notifier import CHECKIN_CALLBACK_PREFIX
from src.config import settings
from src.core.metrics import STATUS_CLEAN, STATUS_SNACKED
from src.core.tracker_service import (
    DetailsPromptResponse,
    ResponseKind,
    ServiceResponse,
    SuccessResponse,
    days_ago,
    parse_iso_date,
)
from src.data.models import MOODS
from src.ports.notification_port import CHECKIN_CLEAN, CHECKIN_SNACKED

if TYPE_CHECKING:
    from src.core.coach import CoachService
    from src.core.tracker_service import DashboardSummary, TrackerService
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

_HISTORY_LIMIT = 14


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, Any]],
) -> Callable[..., Coroutine[Any, Any, Any]]:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return None  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _tracker(context: ContextTypes.DEFAULT_TYPE) -> TrackerService:
    return context.bot_data["tracker"]


def _coach(context: ContextTypes.DEFAULT_TYPE) -> CoachService:
    return context.bot_data["coach"]


def _resolve_day(tracker: TrackerService, args: list[str] | None) -> str | None:
    """Day named by command args: none → today, 'yesterday', or YYYY-MM-DD."""
    today = tracker.today()
    if not args:
        return today
    arg = args[0].strip().lower()
    if arg == "today":
        return today
    if arg == "yesterday":
        return days_ago(today, 1)
    return parse_iso_date(arg)


def _format_response(response: ServiceResponse) -> str:
    if isinstance(response, SuccessResponse) and response.celebration:
        return f"🎉 {response.celebration}\n{response.message}"
    return response.message


def _format_entry(entry) -> str:
    icon = "🍪" if entry.snacked else "✅"
    parts = [f"{icon} {entry.date}"]
    if entry.mood:
        parts.append(f"{MOODS.get(entry.mood, '')} {entry.mood}".strip())
    if entry.snacked and entry.snack_details:
        parts.append(f"ate: {entry.snack_details}")
    if entry.notes:
        parts.append(entry.notes)
    return " · ".join(parts)


def _format_dashboard(summary: DashboardSummary) -> str:
    """Render the dashboard as plain text."""
    s = summary.settings
    p = summary.progress
    filled = round(p.percent / 10)
    bar = "▓" * filled + "░" * (10 - filled)

    lines = [f"Hi {s.name}! Today is {summary.today}.", ""]
    lines.append(f"🏆 Clean streak: {p.streak} / {p.goal} days")
    lines.append(f"{bar} {p.percent:.0f}%")
    if p.goal_met:
        lines.append("Goal met! 🌟")

    week_icons = {STATUS_CLEAN: "🟢", STATUS_SNACKED: "🔴"}
    lines.append("")
    lines.append("Last 7 days: " + " ".join(week_icons.get(d.status, "⚪") for d in summary.week))

    entry = summary.today_entry
    if entry is None:
        lines.append("Today: not logged yet — /clean or /snacked")
    else:
        lines.append("Today: " + ("snacked 🍪" if entry.snacked else "clean ✅"))

    lines.append("")
    lines.extend(_format_weight_lines(summary))
    return "\n".join(lines)


def _format_weight_lines(summary: DashboardSummary) -> list[str]:
    lines: list[str] = []
    w = summary.weight
    if w is None:
        lines.append(f"⚖️ Your plan starts on {summary.settings.start_date}.")
    else:
        lines.append(f"⚖️ Current {w.current:.1f} kg · target today {w.target:.1f} kg")
        if w.on_track:
            lines.append(f"Awesome! You are {abs(w.diff):.1f} kg ahead of your target.")
        else:
            lines.append(f"You are {abs(w.diff):.1f} kg behind target. Keep pushing!")

    t = summary.trend
    if t is not None and t.current_avg is not None:
        line = f"7-day average: {t.current_avg:.1f} kg"
        if t.delta is not None:
            line += f" ({t.delta:+.1f} vs last week)"
        lines.append(line)
    return lines


async def _reply(update: Update, response: ServiceResponse) -> None:
    await update.message.reply_text(_format_response(response))


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to *BingeBreaker*!\n\n"
        "I help you stop night-time snacking and track your weight:\n"
        "• /clean or /snacked — one-tap check-in for today\n"
        "• /weight 61.4 — log today's weight\n"
        "• /today — your dashboard\n"
        "• Just write to me when a craving hits — I'm your coach\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/today — Dashboard: streak, last 7 days, weight status\n"
        "/clean [date] — Log a clean day (default today)\n"
        "/snacked [date] — Log a snack day\n"
        "/log [date] — Full entry: snacks, mood, notes\n"
        "/history — Recent daily logs\n"
        "/weight <kg> [date] — Log weight (no value: show status)\n"
        "/weights — Weight history\n"
        "/progress — Target plan vs. actual\n"
        "/goal <days> — Set your streak goal\n"
        "/settings — Show settings, /set <key> <value> to change one\n"
        "/export — Download a backup, /import — restore one\n"
        "/sos — I'm about to snack, help!\n"
        "/resetchat — Start a fresh coach conversation\n"
        "/help — Show this message",
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — dashboard."""
    try:
        summary = _tracker(context).dashboard()
    except Exception as exc:
        logger.error("/today error: %s", exc)
        await update.message.reply_text("Couldn't load your dashboard. Please try again.")
        return
    await update.message.reply_text(_format_dashboard(summary))


async def _quick_log(update: Update, context: ContextTypes.DEFAULT_TYPE, snacked: bool) -> None:
    tracker = _tracker(context)
    day = _resolve_day(tracker, context.args)
    if day is None:
        await update.message.reply_text("Dates look like 2026-01-31, or use 'yesterday'.")
        return

    response = tracker.quick_log(snacked, day)
    if isinstance(response, DetailsPromptResponse):
        context.user_data["awaiting_snack_details"] = response.date
    await _reply(update, response)


@authorized_only
async def cmd_clean(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /clean [date] — one-tap clean check-in."""
    await _quick_log(update, context, snacked=False)


@authorized_only
async def cmd_snacked(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /snacked [date] — one-tap lapse check-in, then ask for details."""
    await _quick_log(update, context, snacked=True)


@authorized_only
async def cmd_history(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /history — recent daily entries with delete buttons."""
    entries = _tracker(context).daily_history()[:_HISTORY_LIMIT]
    if not entries:
        await update.message.reply_text("No daily logs yet. Start with /clean or /log.")
        return

    keyboard = [
        [InlineKeyboardButton(f"🗑 {e.date}", callback_data=f"dellog:{e.date}")]
        for e in entries
    ]
    await update.message.reply_text(
        "Recent days:\n" + "\n".join(_format_entry(e) for e in entries),
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


# ---------------------------------------------------------------------------
# /log conversation — full daily entry
# ---------------------------------------------------------------------------

# ConversationHandler states for /log
(
    LOG_SNACKED,
    LOG_DETAILS,
    LOG_MOOD,
    LOG_NOTES,
) = range(4)

_SKIP = "Skip"
_LOG_KEYS = ["log_date", "log_snacked", "log_details", "log_mood"]


def _mood_keyboard() -> ReplyKeyboardMarkup:
    labels = [f"{emoji} {label}" for label, emoji in MOODS.items()]
    rows = [labels[i:i + 4] for i in range(0, len(labels), 4)]
    rows.append([_SKIP])
    return ReplyKeyboardMarkup(rows, one_time_keyboard=True, resize_keyboard=True)


def _parse_mood(text: str) -> str | None:
    """Map keyboard text ("😊 Happy", "happy", "Skip") to a mood label or ""."""
    text = text.strip()
    if text.lower() == _SKIP.lower():
        return ""
    word = text.split()[-1] if text else ""
    for label in MOODS:
        if word.lower() == label.lower():
            return label
    return None


def _clear_log_data(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remove all /log keys from user_data."""
    for k in _LOG_KEYS:
        context.user_data.pop(k, None)


@authorized_only
async def cmd_log(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /log [date] — start a full daily entry."""
    day = _resolve_day(_tracker(context), context.args)
    if day is None:
        await update.message.reply_text("Dates look like 2026-01-31, or use 'yesterday'.")
        return ConversationHandler.END

    _clear_log_data(context)
    context.user_data["log_date"] = day
    keyboard = ReplyKeyboardMarkup(
        [["No, clean day ✅", "Yes, I snacked 🍪"]],
        one_time_keyboard=True,
        resize_keyboard=True,
    )
    await update.message.reply_text(f"Logging {day}. Did you snack?", reply_markup=keyboard)
    return LOG_SNACKED


async def log_snacked(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive yes/no, ask for details on a lapse or go straight to mood."""
    text = update.message.text.strip().lower()
    if text.startswith(("yes", "y")):
        context.user_data["log_snacked"] = True
        await update.message.reply_text(
            "What did you eat? (or tap Skip)",
            reply_markup=ReplyKeyboardMarkup([[_SKIP]], one_time_keyboard=True, resize_keyboard=True),
        )
        return LOG_DETAILS
    if text.startswith(("no", "n")):
        context.user_data["log_snacked"] = False
        await update.message.reply_text("How are you feeling?", reply_markup=_mood_keyboard())
        return LOG_MOOD

    await update.message.reply_text("Please answer Yes or No.")
    return LOG_SNACKED


async def log_details(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive snack details, ask for mood."""
    text = update.message.text.strip()
    context.user_data["log_details"] = "" if text.lower() == _SKIP.lower() else text
    await update.message.reply_text("How are you feeling?", reply_markup=_mood_keyboard())
    return LOG_MOOD


async def log_mood(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive mood, ask for notes."""
    mood = _parse_mood(update.message.text)
    if mood is None:
        await update.message.reply_text(
            f"Pick one of: {', '.join(MOODS)} — or Skip.",
            reply_markup=_mood_keyboard(),
        )
        return LOG_MOOD
    context.user_data["log_mood"] = mood
    await update.message.reply_text(
        "Any notes about today? (or tap Skip)",
        reply_markup=ReplyKeyboardMarkup([[_SKIP]], one_time_keyboard=True, resize_keyboard=True),
    )
    return LOG_NOTES


async def log_notes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Receive notes and save the whole entry."""
    text = update.message.text.strip()
    notes = "" if text.lower() == _SKIP.lower() else text

    response = _tracker(context).save_daily_entry(
        context.user_data["log_date"],
        snacked=context.user_data["log_snacked"],
        snack_details=context.user_data.get("log_details"),
        mood=context.user_data.get("log_mood", ""),
        notes=notes,
    )
    await update.message.reply_text(_format_response(response), reply_markup=ReplyKeyboardRemove())
    _clear_log_data(context)
    return ConversationHandler.END


async def log_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Cancel /log."""
    _clear_log_data(context)
    await update.message.reply_text("Log cancelled.", reply_markup=ReplyKeyboardRemove())
    return ConversationHandler.END


# ---------------------------------------------------------------------------
# Weight commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_weight(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /weight <kg> [date] — log a measurement, or show status."""
    tracker = _tracker(context)
    args = context.args or []
    if not args:
        summary = tracker.dashboard()
        await update.message.reply_text("\n".join(_format_weight_lines(summary)))
        return

    day = _resolve_day(tracker, args[1:])
    if day is None:
        await update.message.reply_text("Dates look like 2026-01-31, or use 'yesterday'.")
        return

    if args[1:] and tracker.has_weight(day):
        response = tracker.edit_weight(day, args[0])
    else:
        response = tracker.log_weight(args[0], day)
    if response.kind == ResponseKind.INVALID_INPUT:
        # Not accepted; just remind the format
        await update.message.reply_text("Usage: /weight 61.4 [YYYY-MM-DD]")
        return
    await _reply(update, response)


@authorized_only
async def cmd_weights(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /weights — weight history with delete buttons."""
    entries = _tracker(context).weight_history()[:_HISTORY_LIMIT]
    if not entries:
        await update.message.reply_text("No weight records yet.")
        return

    keyboard = [
        [InlineKeyboardButton(f"🗑 {e.date} · {e.weight:g} kg", callback_data=f"delweight:{e.date}")]
        for e in entries
    ]
    await update.message.reply_text(
        "Weight history (tap to delete):",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


@authorized_only
async def cmd_progress(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /progress — plan vs. actual, one line per chart point."""
    tracker = _tracker(context)
    points = tracker.chart()
    today = tracker.today()

    lines = ["Plan vs. actual:"]
    for p in points:
        target = f"{p.target:.1f}" if p.target is not None else "—"
        actual = f"{p.actual:.1f}" if p.actual is not None else ""
        marker = "◀ today" if p.date == today else ""
        lines.append(f"{p.date}  target {target}  {actual}  {marker}".rstrip())
    await update.message.reply_text("\n".join(lines))


async def _handle_delete_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle inline delete buttons from /history and /weights."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return

    kind, _, day = query.data.partition(":")
    tracker = _tracker(context)
    if kind == "dellog":
        response = tracker.delete_daily_entry(day)
    else:
        response = tracker.delete_weight(day)
    await query.edit_message_text(_format_response(response))


async def _handle_checkin_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the clean/snacked buttons on the nightly check-in."""
    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return

    answer = query.data.removeprefix(CHECKIN_CALLBACK_PREFIX)
    response = _tracker(context).quick_log(answer == CHECKIN_SNACKED)
    if isinstance(response, DetailsPromptResponse):
        context.user_data["awaiting_snack_details"] = response.date

    # One answer per check-in
    await query.edit_message_reply_markup(reply_markup=None)
    await query.message.reply_text(_format_response(response))


# ---------------------------------------------------------------------------
# Settings commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_goal(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /goal <days> — set the streak goal (positive integer)."""
    args = context.args or []
    if not args:
        goal = _tracker(context).get_settings().streak_goal
        await update.message.reply_text(f"Your streak goal is {goal} days. Change it with /goal <days>.")
        return

    response = _tracker(context).set_streak_goal(args[0])
    if response.kind == ResponseKind.INVALID_INPUT:
        await update.message.reply_text("Usage: /goal 14")
        return
    await _reply(update, response)


@authorized_only
async def cmd_settings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings — show the current settings."""
    s = _tracker(context).get_settings()
    await update.message.reply_text(
        "Settings:\n"
        f"name: {s.name}\n"
        f"start_date: {s.start_date}\n"
        f"start_weight: {s.start_weight:g} kg\n"
        f"goal_weight: {s.goal_weight:g} kg\n"
        f"monthly_loss_target: {s.monthly_loss_target:g} kg\n"
        f"streak_goal: {s.streak_goal} days\n\n"
        "Change one with /set <key> <value>"
    )


@authorized_only
async def cmd_set(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /set <key> <value>."""
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("Usage: /set <key> <value>, e.g. /set goal_weight 55")
        return
    response = _tracker(context).update_setting(args[0], " ".join(args[1:]))
    await _reply(update, response)


# ---------------------------------------------------------------------------
# Backup commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_export(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export — send the backup as a JSON document."""
    backup = _tracker(context).export_backup()
    await update.message.reply_document(
        document=io.BytesIO(backup.content.encode("utf-8")),
        filename=backup.filename,
        caption=backup.message,
    )


@authorized_only
async def cmd_import(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /import — wait for a backup file."""
    context.user_data["awaiting_backup"] = True
    await update.message.reply_text(
        "Send me your backup .json file. It will replace the data sections it contains."
    )


@authorized_only
async def handle_document(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Restore a backup file sent after /import."""
    if not context.user_data.pop("awaiting_backup", False):
        await update.message.reply_text("To restore a backup, send /import first.")
        return

    try:
        tg_file = await context.bot.get_file(update.message.document.file_id)
        data = await tg_file.download_as_bytearray()
    except Exception as exc:
        logger.error("Backup download error: %s", exc)
        await update.message.reply_text("Couldn't download that file. Please try again.")
        return

    response = _tracker(context).import_backup(bytes(data))
    await _reply(update, response)


# ---------------------------------------------------------------------------
# Coach
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_sos(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /sos — craving emergency."""
    reply = await _coach(context).sos()
    await update.message.reply_text(reply.text)


@authorized_only
async def cmd_resetchat(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /resetchat — start the coach conversation over."""
    history = _coach(context).reset()
    await update.message.reply_text(history[0].text)


@authorized_only
async def cmd_coach(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /coach — show the latest coach message."""
    history = _coach(context).load_history()
    await update.message.reply_text(history[-1].text)


@authorized_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Plain text: snack details if we just asked for them, otherwise the coach."""
    text = update.message.text

    pending_day = context.user_data.pop("awaiting_snack_details", None)
    if pending_day:
        response = _tracker(context).set_snack_details(pending_day, text)
        await _reply(update, response)
        return

    await context.bot.send_chat_action(chat_id=update.effective_chat.id, action="typing")
    reply = await _coach(context).send(text)
    if reply is not None:
        await update.message.reply_text(reply.text)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    tracker: TrackerService | None = None,
    coach: CoachService | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        tracker: Tracker service. Defaults to one over the configured storage.
        coach: Coach service. Defaults to one sharing the tracker's stores.
        notifier: Notification port implementation. Defaults to TelegramNotifier.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if tracker is None:
        from src.core.tracker_service import TrackerService
        from src.data.db import TrackerDB
        tracker = TrackerService(TrackerDB())

    if coach is None:
        from src.core.coach import CoachService
        coach = CoachService(
            tracker.db.chat_history,
            tracker.db.settings,
            window=settings.COACH_HISTORY_WINDOW,
        )

    if notifier is None:
        from src.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    app.bot_data["tracker"] = tracker
    app.bot_data["coach"] = coach
    app.bot_data["notifier"] = notifier

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("clean", cmd_clean))
    app.add_handler(CommandHandler("snacked", cmd_snacked))
    app.add_handler(CommandHandler("history", cmd_history))
    app.add_handler(CommandHandler("weight", cmd_weight))
    app.add_handler(CommandHandler("weights", cmd_weights))
    app.add_handler(CommandHandler("progress", cmd_progress))
    app.add_handler(CommandHandler("goal", cmd_goal))
    app.add_handler(CommandHandler("settings", cmd_settings))
    app.add_handler(CommandHandler("set", cmd_set))
    app.add_handler(CommandHandler("export", cmd_export))
    app.add_handler(CommandHandler("import", cmd_import))
    app.add_handler(CommandHandler("sos", cmd_sos))
    app.add_handler(CommandHandler("coach", cmd_coach))
    app.add_handler(CommandHandler("resetchat", cmd_resetchat))
    app.add_handler(CallbackQueryHandler(
        _handle_delete_callback, pattern=r"^(dellog|delweight):\d{4}-\d{2}-\d{2}$",
    ))
    app.add_handler(CallbackQueryHandler(
        _handle_checkin_callback,
        pattern=rf"^{CHECKIN_CALLBACK_PREFIX}({CHECKIN_CLEAN}|{CHECKIN_SNACKED})$",
    ))

    # /log conversation handler
    _text = filters.TEXT & ~filters.COMMAND
    log_conv = ConversationHandler(
        entry_points=[CommandHandler("log", cmd_log)],
        states={
            LOG_SNACKED: [MessageHandler(_text, log_snacked)],
            LOG_DETAILS: [MessageHandler(_text, log_details)],
            LOG_MOOD: [MessageHandler(_text, log_mood)],
            LOG_NOTES: [MessageHandler(_text, log_notes)],
        },
        fallbacks=[CommandHandler("cancel", log_cancel)],
    )
    app.add_handler(log_conv)

    # Backup files
    app.add_handler(MessageHandler(filters.Document.ALL, handle_document))

    # Text messages (non-command) → coach
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))

    _setup_nightly_checkin(app, tracker, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_nightly_checkin(
    app: Application,
    tracker: TrackerService,
    notifier: NotificationPort,
) -> None:
    """Register the daily evening check-in job."""
    from src.core.scheduler import send_nightly_checkin

    tz = ZoneInfo(settings.TIMEZONE)
    checkin_time = dt_time(hour=settings.MOTIVATION_HOUR, minute=0, tzinfo=tz)

    async def _checkin_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await send_nightly_checkin(tracker, notifier)

    app.job_queue.run_daily(
        _checkin_job_callback,
        time=checkin_time,
        name="nightly_checkin",
    )

    logger.info(
        "Nightly check-in scheduled at %02d:00 %s",
        settings.MOTIVATION_HOUR,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting BingeBreaker bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
