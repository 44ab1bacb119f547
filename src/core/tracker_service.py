"""
BingeBreaker — UI-Agnostic Tracker Service.

Orchestrates everything the user does with their logs: quick clean/snacked
check-ins, full daily entries, weight measurements, settings edits, the
dashboard summary and backup export/import. Returns structured response
objects; each UI adapter renders them its own way.

Invalid input is rejected here, before any store is touched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from src.core.metrics import (
    DayStatus,
    StreakProgress,
    WeeklyTrend,
    WeightStatus,
    calculate_streak,
    chart_series,
    streak_progress,
    week_preview,
    weekly_trend,
    weight_status,
)
from src.data.backup import InvalidBackupError, export_json, parse_backup, restore_data
from src.data.models import MOODS, DailyEntry, UserSettings, WeightEntry
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.core.metrics import ChartPoint
    from src.data.backup import RestoreResult
    from src.data.db import TrackerDB

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"^\d*\.?\d*$")


# ---------------------------------------------------------------------------
# Response types
# ---------------------------------------------------------------------------


class ResponseKind(Enum):
    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    DETAILS_PROMPT = "details_prompt"
    ERROR = "error"


# Celebration banners
CELEBRATE_CLEAN_STREAK = "Clean Streak!"
CELEBRATE_CLEAN_DAY = "Clean Day!"
CELEBRATE_WEIGHT_DOWN = "Weight Down!"
CELEBRATE_FIRST_STEP = "First Step!"


@dataclass
class ServiceResponse:
    kind: ResponseKind
    message: str


@dataclass
class SuccessResponse(ServiceResponse):
    celebration: str | None = None


@dataclass
class InvalidInputResponse(ServiceResponse):
    pass


@dataclass
class NotFoundResponse(ServiceResponse):
    pass


@dataclass
class ErrorResponse(ServiceResponse):
    pass


@dataclass
class DetailsPromptResponse(ServiceResponse):
    """A lapse was logged; the UI should ask what was eaten."""

    date: str = ""


@dataclass
class BackupResponse(ServiceResponse):
    filename: str = ""
    content: str = ""


@dataclass
class RestoreResponse(ServiceResponse):
    result: RestoreResult | None = None


@dataclass
class DashboardSummary:
    today: str
    settings: UserSettings
    progress: StreakProgress
    today_entry: DailyEntry | None
    week: list[DayStatus] = field(default_factory=list)
    weight: WeightStatus | None = None
    trend: WeeklyTrend | None = None


def _invalid(message: str) -> InvalidInputResponse:
    return InvalidInputResponse(kind=ResponseKind.INVALID_INPUT, message=message)


def _storage_error(exc: StorageError) -> ErrorResponse:
    logger.error("Storage write failed: %s", exc)
    return ErrorResponse(
        kind=ResponseKind.ERROR,
        message="Couldn't save that right now. Please try again.",
    )


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def parse_weight(raw: str) -> float | None:
    """Parse a positive decimal weight ("61.4", "61,4", "61.4kg"). None if invalid."""
    text = raw.strip().lower().removesuffix("kg").strip().replace(",", ".")
    if not text or not _DECIMAL_RE.match(text) or not any(c.isdigit() for c in text):
        return None
    value = float(text)
    return value if value > 0 else None


def parse_positive_int(raw: str) -> int | None:
    text = raw.strip()
    if not text.isdigit():
        return None
    value = int(text)
    return value if value > 0 else None


def parse_iso_date(raw: str) -> str | None:
    text = raw.strip()
    if len(text) != 10:
        return None
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        return None


def _parse_name(raw: str) -> str | None:
    return raw.strip() or None


# setting attribute → parser for raw user text
_SETTING_PARSERS = {
    "start_date": parse_iso_date,
    "start_weight": parse_weight,
    "goal_weight": parse_weight,
    "monthly_loss_target": parse_weight,
    "name": _parse_name,
    "streak_goal": parse_positive_int,
}


# ---------------------------------------------------------------------------
# TrackerService
# ---------------------------------------------------------------------------


class TrackerService:
    """Business logic over the four data stores. Never sends messages."""

    def __init__(self, db: TrackerDB, timezone: str | None = None) -> None:
        if timezone is None:
            from src.config import settings
            timezone = settings.TIMEZONE

        self._db = db
        self._tz = ZoneInfo(timezone)

    @property
    def db(self) -> TrackerDB:
        return self._db

    def today(self) -> str:
        """Today's date in the configured timezone, as YYYY-MM-DD."""
        return datetime.now(self._tz).date().isoformat()

    # ------------------------------------------------------------------
    # Daily logs
    # ------------------------------------------------------------------

    def quick_log(self, snacked: bool, day: str | None = None) -> ServiceResponse:
        """One-tap check-in that keeps mood, notes and snack details already logged."""
        day = day or self.today()
        existing = self._db.daily_logs.get(day)
        entry = DailyEntry(
            date=day,
            snacked=snacked,
            mood=existing.mood if existing else "",
            notes=existing.notes if existing else "",
            snack_details=existing.snack_details if existing else None,
        )
        try:
            self._db.daily_logs.upsert(entry)
        except StorageError as exc:
            return _storage_error(exc)

        if snacked:
            return DetailsPromptResponse(
                kind=ResponseKind.DETAILS_PROMPT,
                message="Logged. No guilt, just data. What did you snack on?",
                date=day,
            )
        streak = calculate_streak(self._db.daily_logs.list_all())
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Clean day logged for {day}. Streak: {streak} day(s).",
            celebration=CELEBRATE_CLEAN_STREAK,
        )

    def save_daily_entry(
        self,
        day: str,
        snacked: bool,
        snack_details: str | None = None,
        mood: str = "",
        notes: str = "",
    ) -> ServiceResponse:
        """Save a full entry for a day, replacing whatever was there."""
        parsed_day = parse_iso_date(day)
        if parsed_day is None:
            return _invalid("Dates look like 2026-01-31.")
        if mood and mood not in MOODS:
            return _invalid(f"Mood must be one of: {', '.join(MOODS)}.")

        details = (snack_details or "").strip() or None
        entry = DailyEntry(
            date=parsed_day,
            snacked=snacked,
            mood=mood,
            notes=notes.strip(),
            snack_details=details if snacked else None,
        )
        try:
            self._db.daily_logs.upsert(entry)
        except StorageError as exc:
            return _storage_error(exc)

        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Entry saved for {parsed_day}.",
            celebration=None if snacked else CELEBRATE_CLEAN_DAY,
        )

    def set_snack_details(self, day: str, details: str) -> ServiceResponse:
        """Attach a description to an existing lapse entry."""
        entry = self._db.daily_logs.get(day)
        if entry is None or not entry.snacked:
            return NotFoundResponse(
                kind=ResponseKind.NOT_FOUND,
                message=f"No snack logged on {day}.",
            )
        try:
            self._db.daily_logs.upsert(replace(entry, snack_details=details.strip() or None))
        except StorageError as exc:
            return _storage_error(exc)
        return SuccessResponse(kind=ResponseKind.SUCCESS, message="Got it, noted.")

    def delete_daily_entry(self, day: str) -> ServiceResponse:
        try:
            deleted = self._db.daily_logs.delete(day)
        except StorageError as exc:
            return _storage_error(exc)
        if not deleted:
            return NotFoundResponse(kind=ResponseKind.NOT_FOUND, message=f"Nothing logged on {day}.")
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"Entry for {day} deleted.")

    def daily_history(self) -> list[DailyEntry]:
        """All daily entries, newest first."""
        return sorted(self._db.daily_logs.list_all(), key=lambda e: e.date, reverse=True)

    # ------------------------------------------------------------------
    # Weight
    # ------------------------------------------------------------------

    def log_weight(self, raw: str, day: str | None = None) -> ServiceResponse:
        """Record a measurement; non-numeric or non-positive input is rejected."""
        value = parse_weight(raw)
        if value is None:
            return _invalid("Send your weight as a number, e.g. 61.4")
        day = day or self.today()
        if parse_iso_date(day) is None:
            return _invalid("Dates look like 2026-01-31.")

        previous = self._db.weight_logs.latest()
        try:
            self._db.weight_logs.upsert(WeightEntry(date=day, weight=value))
        except StorageError as exc:
            return _storage_error(exc)

        celebration = None
        if previous is None:
            celebration = CELEBRATE_FIRST_STEP
        elif value < previous.weight:
            celebration = CELEBRATE_WEIGHT_DOWN
        return SuccessResponse(
            kind=ResponseKind.SUCCESS,
            message=f"Weight saved: {value:g} kg on {day}.",
            celebration=celebration,
        )

    def edit_weight(self, day: str, raw: str) -> ServiceResponse:
        """Correct the value of an existing measurement. No celebration."""
        value = parse_weight(raw)
        if value is None:
            return _invalid("Send your weight as a number, e.g. 61.4")
        if not self.has_weight(day):
            return NotFoundResponse(kind=ResponseKind.NOT_FOUND, message=f"No weight on {day}.")
        try:
            self._db.weight_logs.upsert(WeightEntry(date=day, weight=value))
        except StorageError as exc:
            return _storage_error(exc)
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"Weight for {day} updated to {value:g} kg.")

    def has_weight(self, day: str) -> bool:
        return any(e.date == day for e in self._db.weight_logs.list_all())

    def delete_weight(self, day: str) -> ServiceResponse:
        try:
            deleted = self._db.weight_logs.delete(day)
        except StorageError as exc:
            return _storage_error(exc)
        if not deleted:
            return NotFoundResponse(kind=ResponseKind.NOT_FOUND, message=f"No weight on {day}.")
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"Weight for {day} deleted.")

    def weight_history(self) -> list[WeightEntry]:
        """All measurements, newest first."""
        return list(reversed(self._db.weight_logs.list_all()))

    def chart(self) -> list[ChartPoint]:
        return chart_series(self._db.settings.get(), self._db.weight_logs.list_all())

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_streak_goal(self, raw: str) -> ServiceResponse:
        return self.update_setting("streak_goal", raw)

    def update_setting(self, key: str, raw: str) -> ServiceResponse:
        """Parse raw text for one settings field and store it."""
        attr = key.strip().lower()
        parser = _SETTING_PARSERS.get(attr)
        if parser is None:
            return _invalid(f"Unknown setting. Choose one of: {', '.join(_SETTING_PARSERS)}.")
        value = parser(raw)
        if value is None:
            return _invalid(f"That isn't a valid value for {attr}.")
        try:
            self._db.settings.update(attr, value)
        except StorageError as exc:
            return _storage_error(exc)
        return SuccessResponse(kind=ResponseKind.SUCCESS, message=f"{attr} set to {value}.")

    def get_settings(self) -> UserSettings:
        return self._db.settings.get()

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def dashboard(self, today: str | None = None) -> DashboardSummary:
        today = today or self.today()
        settings = self._db.settings.get()
        logs = self._db.daily_logs.list_all()
        weights = self._db.weight_logs.list_all()

        return DashboardSummary(
            today=today,
            settings=settings,
            progress=streak_progress(calculate_streak(logs), settings.streak_goal),
            today_entry=next((e for e in logs if e.date == today), None),
            week=week_preview(logs, today),
            weight=weight_status(settings, weights, today),
            trend=weekly_trend(weights, today),
        )

    # ------------------------------------------------------------------
    # Backup
    # ------------------------------------------------------------------

    def export_backup(self) -> BackupResponse:
        return BackupResponse(
            kind=ResponseKind.SUCCESS,
            message="Here is your backup.",
            filename=f"bingebreaker_backup_{self.today()}.json",
            content=export_json(self._db),
        )

    def import_backup(self, text: str | bytes) -> ServiceResponse:
        """Restore from backup file contents. Invalid files change nothing."""
        try:
            result = restore_data(self._db, parse_backup(text))
        except InvalidBackupError as exc:
            logger.warning("Backup import rejected: %s", exc)
            return _invalid("Invalid file. That doesn't look like a BingeBreaker backup.")
        except StorageError as exc:
            return _storage_error(exc)

        if not result.restored:
            return _invalid("Invalid file. None of its sections could be read.")

        message = f"Restored: {', '.join(result.restored)}."
        if result.rejected:
            message += f" Skipped (invalid): {', '.join(result.rejected)}."
        return RestoreResponse(kind=ResponseKind.SUCCESS, message=message, result=result)


def days_ago(today: str, n: int) -> str:
    """ISO date n days before today."""
    return (date.fromisoformat(today) - timedelta(days=n)).isoformat()
