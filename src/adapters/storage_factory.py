"""Storage adapter factory — creates the right backend based on config."""

from __future__ import annotations

from src.config import settings
from src.ports.storage_port import StoragePort


def create_storage(location: str | None = None) -> StoragePort:
    """Return the storage adapter matching the STORAGE_BACKEND setting.

    Args:
        location: Overrides DATABASE_PATH (sqlite) or DATA_DIR (json).
            Ignored by the memory backend.
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "sqlite":
        from src.adapters.sqlite_storage import SQLiteStorage

        return SQLiteStorage(db_path=location)

    if backend == "json":
        from src.adapters.json_file_storage import JsonFileStorage

        return JsonFileStorage(data_dir=location)

    if backend == "memory":
        from src.adapters.memory_storage import MemoryStorage

        return MemoryStorage()

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
