"""
In-Memory Storage Implementation

Values are kept as encoded JSON strings, so what comes back from `load` is
always a fresh copy and anything that could not be written to disk is
rejected here too.
"""

import json
from typing import Any, Optional

from khata.services.storage.interface import (
    KeyValueStorageInterface,
    StorageQuotaExceededError,
)
from khata.services.storage.json_file import encode_value, validate_key


class InMemoryStorage(KeyValueStorageInterface):
    """Dictionary-backed storage for tests and throwaway sessions."""

    def __init__(
        self,
        initial: Optional[dict[str, Any]] = None,
        quota_bytes: Optional[int] = None,
    ):
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes
        for key, value in (initial or {}).items():
            self._data[validate_key(key)] = encode_value(value)

    def load(self, key: str) -> Optional[Any]:
        raw = self._data.get(validate_key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def save(self, key: str, value: Any) -> bool:
        validate_key(key)
        encoded = encode_value(value)

        if self._quota_bytes is not None:
            used = sum(
                len(v.encode("utf-8")) for k, v in self._data.items() if k != key
            )
            if used + len(encoded.encode("utf-8")) > self._quota_bytes:
                raise StorageQuotaExceededError(
                    f"Saving '{key}' would exceed the {self._quota_bytes} byte quota"
                )

        self._data[key] = encoded
        return True

    def delete(self, key: str) -> bool:
        return self._data.pop(validate_key(key), None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)
