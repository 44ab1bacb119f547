"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like in-memory and temp-file stores.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "fake-token-for-tests")
os.environ.setdefault("LLM_API_KEY", "fake-llm-key-for-tests")
os.environ.setdefault("LLM_PROVIDER", "gemini")
os.environ.setdefault("ALLOWED_USER_IDS", "12345")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("TIMEZONE", "Asia/Jerusalem")

import pytest


@pytest.fixture
def memory_storage():
    """Return an empty in-memory StoragePort."""
    from src.adapters.memory_storage import MemoryStorage
    return MemoryStorage()


@pytest.fixture
def sqlite_storage(tmp_path):
    """Return a SQLiteStorage backed by a temp file."""
    from src.adapters.sqlite_storage import SQLiteStorage
    return SQLiteStorage(db_path=str(tmp_path / "test_bingebreaker.db"))


@pytest.fixture
def tracker_db(memory_storage):
    """Return a TrackerDB over in-memory storage."""
    from src.data.db import TrackerDB
    return TrackerDB(memory_storage)


@pytest.fixture
def tracker_service(tracker_db):
    """Return a TrackerService with a fixed timezone."""
    from src.core.tracker_service import TrackerService
    return TrackerService(tracker_db, timezone="Asia/Jerusalem")
