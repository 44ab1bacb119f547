"""In-memory storage adapter — implements StoragePort.

Nothing survives the process. Used by tests and by STORAGE_BACKEND=memory.
"""

from __future__ import annotations


class MemoryStorage:
    """Dict-backed implementation of StoragePort."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
