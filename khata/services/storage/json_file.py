"""
JSON File Storage Implementation

Each key is stored as `<directory>/<key>.json`. Writes go to a temporary
file in the same directory and are moved into place, so a crash mid-write
leaves the previous value intact.

An optional quota caps the total size of all stored values.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

from khata.config import get_settings
from khata.services.storage.interface import (
    CorruptValueError,
    KeyValueStorageInterface,
    StorageQuotaExceededError,
    StorageUnavailableError,
)


_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


def encode_value(value: Any) -> str:
    """Serialize a value the way every backend stores it."""
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise StorageUnavailableError(f"Value is not JSON-serializable: {e}")


def validate_key(key: str) -> str:
    if not key or not _VALID_KEY.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class JsonFileStorage(KeyValueStorageInterface):
    """
    Local directory storage.

    One file per key; values are UTF-8 JSON.
    """

    def __init__(
        self,
        directory: Optional[Path] = None,
        quota_bytes: Optional[int] = None,
    ):
        settings = get_settings().storage
        self._directory = Path(directory) if directory is not None else settings.directory
        self._quota_bytes = quota_bytes if quota_bytes is not None else settings.quota_bytes

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{validate_key(key)}.json"

    def _ensure_directory(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create storage directory {self._directory}: {e}"
            )

    def _used_bytes(self, excluding: Path) -> int:
        total = 0
        for path in self._directory.glob("*.json"):
            if path != excluding:
                total += path.stat().st_size
        return total

    def load(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError(f"Cannot read {path}: {e}")
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptValueError(key, str(e))

    def save(self, key: str, value: Any) -> bool:
        path = self._path_for(key)
        encoded = encode_value(value).encode("utf-8")
        self._ensure_directory()

        if self._quota_bytes is not None:
            used = self._used_bytes(excluding=path)
            if used + len(encoded) > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Saving '{key}' needs {len(encoded)} bytes; "
                    f"{max(self._quota_bytes - used, 0)} of {self._quota_bytes} left"
                )

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._directory, prefix=f".{key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as handle:
                handle.write(encoded)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageUnavailableError(f"Cannot write {path}: {e}")

        return True

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageUnavailableError(f"Cannot delete {path}: {e}")
        return True

    def keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        return sorted(path.stem for path in self._directory.glob("*.json"))
