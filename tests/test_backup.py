"""Tests for src.data.backup — export and validated restore."""

import json

import pytest

from src.adapters.memory_storage import MemoryStorage
from src.data.backup import (
    InvalidBackupError,
    export_json,
    get_all_data,
    parse_backup,
    restore_data,
)
from src.data.db import TrackerDB
from src.data.models import ChatMessage, DailyEntry, UserSettings, WeightEntry


def _populated_db():
    db = TrackerDB(MemoryStorage())
    db.daily_logs.upsert(DailyEntry(date="2026-01-02", snacked=False, mood="Happy"))
    db.daily_logs.upsert(DailyEntry(date="2026-01-03", snacked=True, snack_details="chips"))
    db.weight_logs.upsert(WeightEntry(date="2026-01-03", weight=61.2))
    db.settings.set(UserSettings(name="Dana", streak_goal=10))
    db.chat_history.set([ChatMessage(id="m1", role="assistant", text="Hi!", timestamp=1)])
    return db


class TestExport:
    def test_has_all_sections(self):
        data = get_all_data(_populated_db())
        assert set(data) == {"dailyLogs", "weightLogs", "settings", "chatHistory"}
        assert data["settings"]["streakGoal"] == 10

    def test_export_is_json(self):
        doc = json.loads(export_json(_populated_db()))
        assert doc["dailyLogs"][1]["snackDetails"] == "chips"


class TestRoundTrip:
    def test_restore_reproduces_every_store(self):
        source = _populated_db()
        target = TrackerDB(MemoryStorage())

        result = restore_data(target, parse_backup(export_json(source)))

        assert result.rejected == {}
        assert target.daily_logs.list_all() == source.daily_logs.list_all()
        assert target.weight_logs.list_all() == source.weight_logs.list_all()
        assert target.settings.get() == source.settings.get()
        assert target.chat_history.get() == source.chat_history.get()


class TestParseBackup:
    def test_bad_json(self):
        with pytest.raises(InvalidBackupError):
            parse_backup("{oops")

    def test_not_an_object(self):
        with pytest.raises(InvalidBackupError):
            parse_backup("[1, 2]")

    def test_needs_settings_or_daily_logs(self):
        with pytest.raises(InvalidBackupError):
            parse_backup('{"weightLogs": []}')

    def test_accepts_bytes(self):
        assert parse_backup(b'{"settings": {}}') == {"settings": {}}


class TestRestore:
    def test_absent_sections_untouched(self):
        db = _populated_db()
        restore_data(db, {"settings": {"name": "Noa"}})
        assert db.settings.get().name == "Noa"
        assert len(db.daily_logs.list_all()) == 2
        assert len(db.chat_history.get()) == 1

    def test_invalid_section_rejected_others_applied(self):
        db = _populated_db()
        result = restore_data(db, {
            "dailyLogs": [{"date": "not-a-date", "snacked": True}],
            "settings": {"name": "Noa"},
        })
        assert "dailyLogs" in result.rejected
        assert result.restored == ["settings"]
        assert len(db.daily_logs.list_all()) == 2
        assert db.settings.get().name == "Noa"

    def test_bad_weight_rejects_whole_section(self):
        db = _populated_db()
        result = restore_data(db, {
            "settings": {},
            "weightLogs": [
                {"date": "2026-02-01", "weight": 60.0},
                {"date": "2026-02-02", "weight": -1},
            ],
        })
        assert "weightLogs" in result.rejected
        assert db.weight_logs.list_all() == [WeightEntry(date="2026-01-03", weight=61.2)]

    def test_duplicate_dates_last_wins(self):
        db = TrackerDB(MemoryStorage())
        restore_data(db, {"dailyLogs": [
            {"date": "2026-01-02", "snacked": False},
            {"date": "2026-01-02", "snacked": True},
        ]})
        logs = db.daily_logs.list_all()
        assert len(logs) == 1
        assert logs[0].snacked is True

    def test_model_role_restored_as_assistant(self):
        db = TrackerDB(MemoryStorage())
        restore_data(db, {
            "settings": {},
            "chatHistory": [{"id": 1767225600000, "role": "model", "text": "Hi", "timestamp": 1}],
        })
        msg = db.chat_history.get()[0]
        assert msg.role == "assistant"
        assert msg.id == "1767225600000"

    def test_null_daily_logs_with_settings_is_fine(self):
        db = _populated_db()
        result = restore_data(db, {"dailyLogs": None, "settings": {"name": "Noa"}})
        assert result.restored == ["settings"]
        assert len(db.daily_logs.list_all()) == 2

    def test_invalid_document_changes_nothing(self):
        db = _populated_db()
        with pytest.raises(InvalidBackupError):
            restore_data(db, {"chatHistory": []})
        assert len(db.chat_history.get()) == 1
