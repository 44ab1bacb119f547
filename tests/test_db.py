"""Tests for src.data.db — the four JSON-backed stores."""

import json
import logging

import pytest
from unittest.mock import MagicMock

from src.adapters.memory_storage import MemoryStorage
from src.data.db import (
    CHAT_HISTORY_KEY,
    DAILY_LOGS_KEY,
    SETTINGS_KEY,
    WEIGHT_LOGS_KEY,
    TrackerDB,
)
from src.data.models import ChatMessage, DailyEntry, UserSettings, WeightEntry
from src.ports.storage_port import StorageError


# ---------------------------------------------------------------------------
# Daily logs
# ---------------------------------------------------------------------------


class TestDailyLogDB:
    def test_empty_store_lists_nothing(self, tracker_db):
        assert tracker_db.daily_logs.list_all() == []
        assert tracker_db.daily_logs.get("2026-01-01") is None

    def test_upsert_appends_new_dates(self, tracker_db):
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False))
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-01", snacked=True))
        dates = [e.date for e in tracker_db.daily_logs.list_all()]
        assert dates == ["2026-01-02", "2026-01-01"]

    def test_upsert_replaces_same_date(self, tracker_db):
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False, mood="Happy"))
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=True))
        logs = tracker_db.daily_logs.list_all()
        assert len(logs) == 1
        assert logs[0].snacked is True
        # whole-record replace, no merge
        assert logs[0].mood == ""

    def test_upsert_is_idempotent(self, tracker_db, memory_storage):
        entry = DailyEntry(date="2026-01-02", snacked=False, notes="ok")
        tracker_db.daily_logs.upsert(entry)
        first = memory_storage.get_item(DAILY_LOGS_KEY)
        tracker_db.daily_logs.upsert(entry)
        assert memory_storage.get_item(DAILY_LOGS_KEY) == first

    def test_stored_as_camel_case_json(self, tracker_db, memory_storage):
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=True, snack_details="chips"))
        raw = json.loads(memory_storage.get_item(DAILY_LOGS_KEY))
        assert raw == [{"date": "2026-01-02", "snacked": True, "snackDetails": "chips", "mood": "", "notes": ""}]

    def test_delete_existing(self, tracker_db):
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False))
        assert tracker_db.daily_logs.delete("2026-01-02") is True
        assert tracker_db.daily_logs.list_all() == []

    def test_delete_absent_writes_nothing(self, tracker_db, memory_storage):
        assert tracker_db.daily_logs.delete("2026-01-02") is False
        assert memory_storage.get_item(DAILY_LOGS_KEY) is None

    def test_malformed_json_reads_as_empty(self):
        db = TrackerDB(MemoryStorage({DAILY_LOGS_KEY: "{not json"}))
        assert db.daily_logs.list_all() == []

    def test_non_array_reads_as_empty(self):
        db = TrackerDB(MemoryStorage({DAILY_LOGS_KEY: '{"date": "2026-01-01"}'}))
        assert db.daily_logs.list_all() == []

    def test_invalid_records_skipped(self):
        raw = json.dumps([
            {"date": "bad", "snacked": True},
            {"date": "2026-01-02", "snacked": False},
        ])
        db = TrackerDB(MemoryStorage({DAILY_LOGS_KEY: raw}))
        assert [e.date for e in db.daily_logs.list_all()] == ["2026-01-02"]

    def test_storage_read_error_reads_as_empty(self):
        storage = MagicMock()
        storage.get_item.side_effect = StorageError("disk gone")
        db = TrackerDB(storage)
        assert db.daily_logs.list_all() == []

    def test_unrelated_upsert_keeps_invalid_record(self, memory_storage):
        memory_storage.set_item(DAILY_LOGS_KEY, json.dumps([
            {"date": "2026-01-02", "snacked": False},
            {"date": "2026-01-03", "snacked": "maybe"},
        ]))
        db = TrackerDB(memory_storage)

        db.daily_logs.upsert(DailyEntry(date="2026-01-04", snacked=False))

        raw = json.loads(memory_storage.get_item(DAILY_LOGS_KEY))
        assert {"date": "2026-01-03", "snacked": "maybe"} in raw
        assert [e.date for e in db.daily_logs.list_all()] == ["2026-01-02", "2026-01-04"]

    def test_kept_invalid_record_is_logged_on_write(self, memory_storage, caplog):
        memory_storage.set_item(DAILY_LOGS_KEY, json.dumps([{"date": "2026-01-03", "snacked": "maybe"}]))
        db = TrackerDB(memory_storage)

        with caplog.at_level(logging.WARNING, logger="src.data.db"):
            db.daily_logs.upsert(DailyEntry(date="2026-01-04", snacked=False))

        assert "undecodable" in caplog.text
        assert "2026-01-03" in caplog.text

    def test_delete_keeps_invalid_record(self, memory_storage):
        memory_storage.set_item(DAILY_LOGS_KEY, json.dumps([
            {"date": "2026-01-02", "snacked": False},
            {"date": "2026-01-03", "snacked": "maybe"},
        ]))
        db = TrackerDB(memory_storage)

        assert db.daily_logs.delete("2026-01-02") is True
        assert json.loads(memory_storage.get_item(DAILY_LOGS_KEY)) == [
            {"date": "2026-01-03", "snacked": "maybe"},
        ]

    def test_upsert_same_date_replaces_invalid_record(self, memory_storage):
        memory_storage.set_item(DAILY_LOGS_KEY, json.dumps([{"date": "2026-01-03", "snacked": "maybe"}]))
        db = TrackerDB(memory_storage)

        db.daily_logs.upsert(DailyEntry(date="2026-01-03", snacked=True))

        raw = json.loads(memory_storage.get_item(DAILY_LOGS_KEY))
        assert len(raw) == 1
        assert raw[0]["snacked"] is True


# ---------------------------------------------------------------------------
# Weight logs
# ---------------------------------------------------------------------------


class TestWeightLogDB:
    def test_kept_sorted_ascending(self, tracker_db):
        for d, w in [("2026-01-03", 61.0), ("2026-01-01", 62.0), ("2026-01-02", 61.5)]:
            tracker_db.weight_logs.upsert(WeightEntry(date=d, weight=w))
        assert [e.date for e in tracker_db.weight_logs.list_all()] == [
            "2026-01-01", "2026-01-02", "2026-01-03",
        ]

    def test_same_date_last_write_wins(self, tracker_db):
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-01", weight=62.0))
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-01", weight=61.8))
        logs = tracker_db.weight_logs.list_all()
        assert len(logs) == 1
        assert logs[0].weight == 61.8

    def test_latest(self, tracker_db):
        assert tracker_db.weight_logs.latest() is None
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-05", weight=60.0))
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-01", weight=62.0))
        assert tracker_db.weight_logs.latest().date == "2026-01-05"

    def test_replace_all_sorts(self, tracker_db):
        tracker_db.weight_logs.replace_all([
            WeightEntry(date="2026-02-01", weight=60.0),
            WeightEntry(date="2026-01-01", weight=62.0),
        ])
        assert tracker_db.weight_logs.list_all()[0].date == "2026-01-01"

    def test_delete(self, tracker_db):
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-01", weight=62.0))
        assert tracker_db.weight_logs.delete("2026-01-02") is False
        assert tracker_db.weight_logs.delete("2026-01-01") is True
        assert tracker_db.weight_logs.list_all() == []

    def test_upsert_keeps_invalid_record(self, memory_storage):
        memory_storage.set_item(WEIGHT_LOGS_KEY, json.dumps([
            {"date": "2026-01-01", "weight": 62.0},
            {"date": "2026-01-02", "weight": -1},
        ]))
        db = TrackerDB(memory_storage)

        db.weight_logs.upsert(WeightEntry(date="2026-01-05", weight=61.0))

        raw = json.loads(memory_storage.get_item(WEIGHT_LOGS_KEY))
        assert {"date": "2026-01-02", "weight": -1} in raw
        assert [e.date for e in db.weight_logs.list_all()] == ["2026-01-01", "2026-01-05"]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettingsDB:
    def test_defaults_when_missing(self, tracker_db):
        assert tracker_db.settings.get() == UserSettings()

    def test_defaults_when_malformed(self):
        db = TrackerDB(MemoryStorage({SETTINGS_KEY: "[[["}))
        assert db.settings.get() == UserSettings()

    def test_set_and_get(self, tracker_db, memory_storage):
        tracker_db.settings.set(UserSettings(name="Dana", goal_weight=55.0))
        assert tracker_db.settings.get().name == "Dana"
        raw = json.loads(memory_storage.get_item(SETTINGS_KEY))
        assert raw["goalWeight"] == 55.0

    def test_update_by_attribute(self, tracker_db):
        updated = tracker_db.settings.update("streak_goal", 14)
        assert updated.streak_goal == 14
        assert tracker_db.settings.get().streak_goal == 14

    def test_update_by_wire_name(self, tracker_db):
        tracker_db.settings.update("goalWeight", 50.0)
        assert tracker_db.settings.get().goal_weight == 50.0

    def test_update_unknown_key_raises(self, tracker_db):
        with pytest.raises(KeyError):
            tracker_db.settings.update("favouriteSnack", "chips")

    def test_update_keeps_other_fields(self, tracker_db):
        tracker_db.settings.update("name", "Dana")
        tracker_db.settings.update("streak_goal", 10)
        s = tracker_db.settings.get()
        assert s.name == "Dana"
        assert s.streak_goal == 10

    def test_invalid_field_falls_back_alone(self, tracker_db):
        tracker_db.settings.update("name", "Rita")
        tracker_db.settings.update("goalWeight", 55.0)
        tracker_db.settings.update("streakGoal", 10.5)
        s = tracker_db.settings.get()
        assert s.name == "Rita"
        assert s.goal_weight == 55.0
        assert s.streak_goal == 7

    def test_bad_stored_date_keeps_other_fields(self):
        raw = json.dumps({"startDate": "someday", "name": "Noa", "startWeight": 70})
        s = TrackerDB(MemoryStorage({SETTINGS_KEY: raw})).settings.get()
        assert s.start_date == "2026-01-01"
        assert s.name == "Noa"
        assert s.start_weight == 70.0

    def test_non_object_gives_defaults(self):
        db = TrackerDB(MemoryStorage({SETTINGS_KEY: "[1, 2]"}))
        assert db.settings.get() == UserSettings()


# ---------------------------------------------------------------------------
# Chat history
# ---------------------------------------------------------------------------


class TestChatHistoryDB:
    def test_append_and_clear(self, tracker_db):
        msg = ChatMessage(id="1", role="user", text="help", timestamp=1)
        tracker_db.chat_history.append(msg)
        assert tracker_db.chat_history.get() == [msg]
        tracker_db.chat_history.clear()
        assert tracker_db.chat_history.get() == []

    def test_model_role_read_as_assistant(self):
        raw = json.dumps([{"id": "1", "role": "model", "text": "Hi", "timestamp": 1}])
        db = TrackerDB(MemoryStorage({CHAT_HISTORY_KEY: raw}))
        assert db.chat_history.get()[0].role == "assistant"

    def test_append_keeps_invalid_turn(self, memory_storage):
        bad = {"id": "0", "role": "system", "text": "x", "timestamp": 0}
        memory_storage.set_item(CHAT_HISTORY_KEY, json.dumps([bad]))
        db = TrackerDB(memory_storage)

        db.chat_history.append(ChatMessage(id="1", role="user", text="help", timestamp=1))

        assert bad in json.loads(memory_storage.get_item(CHAT_HISTORY_KEY))
        assert len(db.chat_history.get()) == 1

    def test_clear_removes_key(self, tracker_db, memory_storage):
        tracker_db.chat_history.append(ChatMessage(id="1", role="user", text="help", timestamp=1))
        tracker_db.chat_history.clear()
        assert memory_storage.get_item(CHAT_HISTORY_KEY) is None


# ---------------------------------------------------------------------------
# Persistence across instances
# ---------------------------------------------------------------------------


class TestTrackerDBPersistence:
    def test_sqlite_survives_reopen(self, tmp_path):
        from src.adapters.sqlite_storage import SQLiteStorage

        path = str(tmp_path / "bb.db")
        db = TrackerDB(SQLiteStorage(db_path=path))
        db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False))
        db.weight_logs.upsert(WeightEntry(date="2026-01-02", weight=61.0))

        reopened = TrackerDB(SQLiteStorage(db_path=path))
        assert reopened.daily_logs.get("2026-01-02") is not None
        assert reopened.weight_logs.latest().weight == 61.0

    def test_keys_are_independent(self, tracker_db, memory_storage):
        tracker_db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False))
        tracker_db.weight_logs.upsert(WeightEntry(date="2026-01-02", weight=61.0))
        assert json.loads(memory_storage.get_item(DAILY_LOGS_KEY))[0]["date"] == "2026-01-02"
        assert json.loads(memory_storage.get_item(WEIGHT_LOGS_KEY))[0]["weight"] == 61.0
        assert memory_storage.get_item(SETTINGS_KEY) is None
