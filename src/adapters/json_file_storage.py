"""JSON-file storage adapter — implements StoragePort.

Each key is a `<key>.json` file inside a data directory, so a user can read
or hand-edit their logs. Writes go to a temp file first and are moved into
place with os.replace, so a crash never leaves a half-written file.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from src.ports.storage_port import StorageError

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class JsonFileStorage:
    """Directory-of-files implementation of StoragePort."""

    def __init__(self, data_dir: str | None = None) -> None:
        if data_dir is None:
            from src.config import settings
            data_dir = settings.DATA_DIR

        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._dir / f"{key}{_SUFFIX}"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            fd, tmp = tempfile.mkstemp(prefix=".tmp_", dir=str(self._dir), text=True)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp, str(path))
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc
        logger.debug("Wrote %s (%d bytes)", path, len(value))

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete {path}: {exc}") from exc
