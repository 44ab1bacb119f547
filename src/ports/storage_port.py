"""Storage port — abstract key-value interface behind every data store.

Stores depend on this protocol, never on a specific backend. Values are
JSON text; decoding and validation happen in src.data.db.
"""

from __future__ import annotations

from typing import Protocol


class StorageError(Exception):
    """Raised when a storage backend cannot read or write a key."""


class StoragePort(Protocol):
    """Flat string key → string value storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...
