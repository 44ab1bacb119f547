"""
BingeBreaker — Backup export and restore.

A backup is one JSON document with four top-level sections:
`dailyLogs`, `weightLogs`, `settings`, `chatHistory`, each in the persisted
record layout. Restore validates every present section against the record
shapes before anything is written. Sections that fail validation are
skipped and reported; the valid ones are applied.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from src.data.records import (
    ChatMessageRecord,
    DailyEntryRecord,
    UserSettingsRecord,
    WeightEntryRecord,
)

if TYPE_CHECKING:
    from src.data.db import TrackerDB

logger = logging.getLogger(__name__)

DAILY_LOGS = "dailyLogs"
WEIGHT_LOGS = "weightLogs"
SETTINGS = "settings"
CHAT_HISTORY = "chatHistory"
SECTIONS = (DAILY_LOGS, WEIGHT_LOGS, SETTINGS, CHAT_HISTORY)

_DAILY_ADAPTER = TypeAdapter(list[DailyEntryRecord])
_WEIGHT_ADAPTER = TypeAdapter(list[WeightEntryRecord])
_CHAT_ADAPTER = TypeAdapter(list[ChatMessageRecord])


class InvalidBackupError(Exception):
    """Raised when a document is not recognizable as a backup."""


@dataclass
class RestoreResult:
    restored: list[str] = field(default_factory=list)
    rejected: dict[str, str] = field(default_factory=dict)   # section → reason


def get_all_data(db: TrackerDB) -> dict:
    """Dump all four stores in the backup layout."""
    return {
        DAILY_LOGS: [DailyEntryRecord.from_model(e).dump() for e in db.daily_logs.list_all()],
        WEIGHT_LOGS: [WeightEntryRecord.from_model(e).dump() for e in db.weight_logs.list_all()],
        SETTINGS: UserSettingsRecord.from_model(db.settings.get()).dump(),
        CHAT_HISTORY: [ChatMessageRecord.from_model(m).dump() for m in db.chat_history.get()],
    }


def export_json(db: TrackerDB) -> str:
    return json.dumps(get_all_data(db), ensure_ascii=False, indent=2)


def parse_backup(text: str | bytes) -> dict:
    """Decode backup file contents. Raises InvalidBackupError."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidBackupError(f"Not valid JSON: {exc}") from exc
    _check_shape(document)
    return document


def _check_shape(document: Any) -> None:
    if not isinstance(document, dict):
        raise InvalidBackupError("Backup must be a JSON object")
    if document.get(SETTINGS) is None and document.get(DAILY_LOGS) is None:
        raise InvalidBackupError("Backup has neither settings nor dailyLogs")


def _last_per_date(records: list) -> list:
    """Keep one record per date; a later duplicate wins, first-seen order kept."""
    by_date: dict[str, Any] = {}
    for r in records:
        by_date[r.date] = r
    return list(by_date.values())


def restore_data(db: TrackerDB, document: Any) -> RestoreResult:
    """Validate then apply every section present in document.

    Raises InvalidBackupError if the document has neither `settings` nor
    `dailyLogs`. Absent sections leave their store untouched.
    """
    _check_shape(document)

    result = RestoreResult()
    validated: dict[str, Any] = {}
    for section, validate in (
        (DAILY_LOGS, lambda v: _last_per_date(_DAILY_ADAPTER.validate_python(v))),
        (WEIGHT_LOGS, lambda v: _last_per_date(_WEIGHT_ADAPTER.validate_python(v))),
        (SETTINGS, UserSettingsRecord.model_validate),
        (CHAT_HISTORY, _CHAT_ADAPTER.validate_python),
    ):
        raw = document.get(section)
        if raw is None:
            continue
        try:
            validated[section] = validate(raw)
        except ValidationError as exc:
            logger.warning("Backup section %s rejected: %s", section, exc)
            result.rejected[section] = f"{exc.error_count()} invalid field(s)"

    if DAILY_LOGS in validated:
        db.daily_logs.replace_all([r.to_model() for r in validated[DAILY_LOGS]])
    if WEIGHT_LOGS in validated:
        db.weight_logs.replace_all([r.to_model() for r in validated[WEIGHT_LOGS]])
    if SETTINGS in validated:
        db.settings.set(validated[SETTINGS].to_model())
    if CHAT_HISTORY in validated:
        db.chat_history.set([r.to_model() for r in validated[CHAT_HISTORY]])

    result.restored = [s for s in SECTIONS if s in validated]
    logger.info(
        "Backup restored: %s (rejected: %s)",
        ", ".join(result.restored) or "nothing",
        ", ".join(result.rejected) or "none",
    )
    return result
