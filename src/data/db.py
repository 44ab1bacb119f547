"""
BingeBreaker — Data Stores.

Four independent flat collections, each kept as one JSON document under its
own key in a StoragePort: daily logs, weight logs, settings and chat history.
Every read re-parses the whole collection and every write re-serializes it.
That is fine for one person's yearly logs.

Reads never fail: missing keys, malformed JSON and invalid records all
degrade to "nothing persisted" (with a logged warning).
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields, replace
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from src.data.models import ChatMessage, DailyEntry, UserSettings, WeightEntry
from src.data.records import (
    ChatMessageRecord,
    DailyEntryRecord,
    UserSettingsRecord,
    WeightEntryRecord,
)
from src.ports.storage_port import StorageError

if TYPE_CHECKING:
    from src.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)

DAILY_LOGS_KEY = "bb_daily_logs"
WEIGHT_LOGS_KEY = "bb_weight_logs"
SETTINGS_KEY = "bb_settings"
CHAT_HISTORY_KEY = "bb_chat_history"


class _JsonStore:
    """Shared JSON codec over a StoragePort."""

    def __init__(self, storage: StoragePort | None = None) -> None:
        if storage is None:
            from src.adapters.storage_factory import create_storage
            storage = create_storage()
        self._storage = storage

    def _read(self, key: str) -> Any | None:
        """Return the decoded JSON value under key, or None."""
        try:
            raw = self._storage.get_item(key)
        except StorageError as exc:
            logger.error("Storage read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Malformed JSON under %s, treating as empty: %s", key, exc)
            return None

    def _write(self, key: str, data: Any) -> None:
        self._storage.set_item(key, json.dumps(data, ensure_ascii=False))

    def _read_list(self, key: str, record_cls: type) -> list:
        return self._read_records(key, record_cls)[0]

    def _read_records(self, key: str, record_cls: type) -> tuple[list, list]:
        """Return (decoded models, raw items that failed validation)."""
        data = self._read(key)
        if data is None:
            return [], []
        if not isinstance(data, list):
            logger.warning("Expected a JSON array under %s, got %s", key, type(data).__name__)
            return [], []

        items, invalid = [], []
        for i, raw in enumerate(data):
            try:
                items.append(record_cls.model_validate(raw).to_model())
            except ValidationError as exc:
                logger.warning("Skipping invalid record #%d under %s: %s", i, key, exc)
                invalid.append(raw)
        return items, invalid

    def _write_records(self, key: str, records: list[dict], invalid: list) -> None:
        """Persist records, carrying undecodable raw items along unchanged."""
        if invalid:
            logger.warning(
                "Keeping %d undecodable record(s) under %s as stored: %s",
                len(invalid), key, json.dumps(invalid, ensure_ascii=False),
            )
        self._write(key, records + invalid)


def _without_date(invalid: list, date: str) -> list:
    """Drop raw items for date; a fresh write for that day replaces them."""
    return [r for r in invalid if not (isinstance(r, dict) and r.get("date") == date)]


class DailyLogDB(_JsonStore):
    """One DailyEntry per calendar date."""

    def list_all(self) -> list[DailyEntry]:
        """Return all entries in persisted order (callers sort as needed)."""
        return self._read_list(DAILY_LOGS_KEY, DailyEntryRecord)

    def get(self, date: str) -> DailyEntry | None:
        for entry in self.list_all():
            if entry.date == date:
                return entry
        return None

    def upsert(self, entry: DailyEntry) -> None:
        """Replace the entry with the same date entirely, or append it.

        No field-level merge: callers that change one field must
        read-modify-write themselves.
        """
        logs, invalid = self._read_records(DAILY_LOGS_KEY, DailyEntryRecord)
        for i, existing in enumerate(logs):
            if existing.date == entry.date:
                logs[i] = entry
                break
        else:
            logs.append(entry)
        self._save(logs, _without_date(invalid, entry.date))
        logger.info("Daily log saved for %s (snacked=%s)", entry.date, entry.snacked)

    def delete(self, date: str) -> bool:
        """Remove the entry for date. Returns False (and writes nothing) if absent."""
        logs, invalid = self._read_records(DAILY_LOGS_KEY, DailyEntryRecord)
        remaining = [e for e in logs if e.date != date]
        if len(remaining) == len(logs):
            return False
        self._save(remaining, invalid)
        logger.info("Daily log deleted for %s", date)
        return True

    def replace_all(self, entries: list[DailyEntry]) -> None:
        """Overwrite the whole collection (backup restore)."""
        self._save(entries)

    def _save(self, logs: list[DailyEntry], invalid: list | None = None) -> None:
        self._write_records(
            DAILY_LOGS_KEY,
            [DailyEntryRecord.from_model(e).dump() for e in logs],
            invalid or [],
        )


class WeightLogDB(_JsonStore):
    """One WeightEntry per calendar date, always stored sorted ascending."""

    def list_all(self) -> list[WeightEntry]:
        """Return all entries, ascending by date (sorted on write, not here)."""
        return self._read_list(WEIGHT_LOGS_KEY, WeightEntryRecord)

    def latest(self) -> WeightEntry | None:
        logs = self.list_all()
        return logs[-1] if logs else None

    def upsert(self, entry: WeightEntry) -> None:
        """Replace any entry for the same date (last write wins), then re-sort."""
        logs, invalid = self._read_records(WEIGHT_LOGS_KEY, WeightEntryRecord)
        logs = [e for e in logs if e.date != entry.date]
        logs.append(entry)
        self._save(logs, _without_date(invalid, entry.date))
        logger.info("Weight saved for %s: %.1f kg", entry.date, entry.weight)

    def delete(self, date: str) -> bool:
        logs, invalid = self._read_records(WEIGHT_LOGS_KEY, WeightEntryRecord)
        remaining = [e for e in logs if e.date != date]
        if len(remaining) == len(logs):
            return False
        self._save(remaining, invalid)
        logger.info("Weight deleted for %s", date)
        return True

    def replace_all(self, entries: list[WeightEntry]) -> None:
        self._save(entries)

    def _save(self, logs: list[WeightEntry], invalid: list | None = None) -> None:
        # Undecodable items have no trusted date; they trail the sorted ones
        ordered = sorted(logs, key=lambda e: e.date)
        self._write_records(
            WEIGHT_LOGS_KEY,
            [WeightEntryRecord.from_model(e).dump() for e in ordered],
            invalid or [],
        )


# camelCase wire name for every UserSettings attribute
_SETTINGS_ALIASES = {
    name: (info.alias or name) for name, info in UserSettingsRecord.model_fields.items()
}


class SettingsDB(_JsonStore):
    """The singleton UserSettings record."""

    def get(self) -> UserSettings:
        """Return persisted settings, or the defaults if none are stored.

        Fields are checked one at a time: a field that fails validation
        falls back to its default while the others keep their stored values.
        """
        data = self._read(SETTINGS_KEY)
        if data is None:
            return UserSettings()
        if not isinstance(data, dict):
            logger.warning("Expected a JSON object under %s, using defaults", SETTINGS_KEY)
            return UserSettings()

        valid: dict[str, Any] = {}
        for alias in _SETTINGS_ALIASES.values():
            if alias not in data:
                continue
            try:
                UserSettingsRecord.model_validate({alias: data[alias]})
            except ValidationError as exc:
                logger.warning("Invalid setting %s=%r, using default: %s", alias, data[alias], exc)
                continue
            valid[alias] = data[alias]
        return UserSettingsRecord.model_validate(valid).to_model()

    def set(self, settings: UserSettings) -> None:
        """Replace the whole record. Values are stored as given."""
        self._write(
            SETTINGS_KEY,
            {alias: getattr(settings, name) for name, alias in _SETTINGS_ALIASES.items()},
        )
        logger.info("Settings saved")

    def update(self, key: str, value: Any) -> UserSettings:
        """Read-modify-write a single field. No validation of the value.

        Accepts the attribute name ("streak_goal") or the wire name
        ("streakGoal"). Raises KeyError for an unknown field.
        """
        attr = _attribute_for(key)
        updated = replace(self.get(), **{attr: value})
        self.set(updated)
        return updated


def _attribute_for(key: str) -> str:
    names = {f.name for f in fields(UserSettings)}
    if key in names:
        return key
    for name, alias in _SETTINGS_ALIASES.items():
        if alias == key:
            return name
    raise KeyError(f"Unknown setting: {key!r}")


class ChatHistoryDB(_JsonStore):
    """Coach conversation, oldest turn first. Persisted wholesale."""

    def get(self) -> list[ChatMessage]:
        return self._read_list(CHAT_HISTORY_KEY, ChatMessageRecord)

    def set(self, history: list[ChatMessage]) -> None:
        self._write(CHAT_HISTORY_KEY, [ChatMessageRecord.from_model(m).dump() for m in history])

    def append(self, message: ChatMessage) -> list[ChatMessage]:
        """Add one turn, keeping any undecodable stored turns. Returns the readable history."""
        history, invalid = self._read_records(CHAT_HISTORY_KEY, ChatMessageRecord)
        history.append(message)
        self._write_records(
            CHAT_HISTORY_KEY,
            [ChatMessageRecord.from_model(m).dump() for m in history],
            invalid,
        )
        return history

    def clear(self) -> None:
        self._storage.remove_item(CHAT_HISTORY_KEY)
        logger.info("Chat history cleared")


class TrackerDB:
    """All four stores over one shared StoragePort."""

    def __init__(self, storage: StoragePort | None = None) -> None:
        if storage is None:
            from src.adapters.storage_factory import create_storage
            storage = create_storage()

        self.storage = storage
        self.daily_logs = DailyLogDB(storage)
        self.weight_logs = WeightLogDB(storage)
        self.settings = SettingsDB(storage)
        self.chat_history = ChatHistoryDB(storage)


if __name__ == "__main__":
    from src.adapters.memory_storage import MemoryStorage

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    db = TrackerDB(MemoryStorage())
    db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False, mood="Happy"))
    db.daily_logs.upsert(DailyEntry(date="2026-01-03", snacked=True, snack_details="chips"))
    db.weight_logs.upsert(WeightEntry(date="2026-01-03", weight=61.2))
    db.weight_logs.upsert(WeightEntry(date="2026-01-01", weight=62.0))

    print(f"Daily logs: {db.daily_logs.list_all()}")
    print(f"Weights: {db.weight_logs.list_all()}")
    print(f"Settings: {db.settings.get()}")
