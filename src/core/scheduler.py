"""
BingeBreaker — Nightly Check-in.

An evening push at MOTIVATION_HOUR (local TIMEZONE), when night-time
snacking urges start: a one-line LLM motivation quote plus today's status
(streak, whether today is logged yet).

Provider-agnostic: depends on the NotificationPort protocol, not on
Telegram.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.config import settings
from src.core.coach import get_motivation

if TYPE_CHECKING:
    from src.core.tracker_service import DashboardSummary, TrackerService
    from src.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)


async def send_nightly_checkin(
    tracker: TrackerService,
    notifier: NotificationPort,
    user_ids: list[int] | None = None,
) -> None:
    """Send the evening check-in to every allowed user.

    One failed delivery doesn't stop the others.
    """
    if user_ids is None:
        user_ids = settings.ALLOWED_USER_IDS

    message = await build_checkin_message(tracker)
    for chat_id in user_ids:
        try:
            await notifier.send_checkin(chat_id, message)
            logger.info("Nightly check-in sent to user %d", chat_id)
        except Exception as exc:
            logger.error("Failed to send nightly check-in to %d: %s", chat_id, exc)


async def build_checkin_message(tracker: TrackerService) -> str:
    """Motivation quote + streak status. Degrades to the quote alone."""
    quote = await get_motivation()

    try:
        summary = tracker.dashboard()
    except Exception as exc:
        logger.warning("Nightly check-in: dashboard unavailable: %s", exc)
        return f"🌙 \"{quote}\""

    return f"🌙 \"{quote}\"\n\n{_format_status(summary)}"


def _format_status(summary: DashboardSummary) -> str:
    progress = summary.progress
    lines = [f"Clean streak: {progress.streak}/{progress.goal} days"]

    entry = summary.today_entry
    if entry is None:
        lines.append("Today isn't logged yet. Tap a button below before bed.")
    elif entry.snacked:
        lines.append("Today had a slip. Tomorrow is a fresh start.")
    else:
        lines.append("Today is logged clean. Keep the kitchen closed!")
    return "\n".join(lines)
