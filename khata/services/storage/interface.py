"""
Abstract Storage Interface

The ledger persists through a small synchronous key/value contract:
`load(key)` returns the stored JSON value or None, `save(key, value)`
writes it. Values are JSON-serializable documents (lists, dicts, strings).

Implementations:
1. JsonFileStorage - one JSON file per key in a local directory
2. InMemoryStorage - for tests and throwaway sessions
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def load(self, key: str) -> Optional[Any]:
        """
        Load the value stored under a key.

        Args:
            key: Storage key (e.g. 'khata_customers')

        Returns:
            The decoded JSON value, or None if nothing is stored

        Raises:
            CorruptValueError: If the stored bytes are not valid JSON
            StorageUnavailableError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: str, value: Any) -> bool:
        """
        Store a JSON-serializable value under a key.

        Args:
            key: Storage key
            value: JSON-serializable value

        Returns:
            True if saved successfully

        Raises:
            StorageQuotaExceededError: If the write would exceed the quota
            StorageUnavailableError: If the backend cannot be written
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List stored keys, sorted."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageUnavailableError(StorageError):
    """The storage backend cannot be read or written."""
    pass


class StorageQuotaExceededError(StorageError):
    """A write would exceed the configured storage quota."""
    pass


class CorruptValueError(StorageError):
    """A stored value could not be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Stored value for '{key}' is corrupt: {reason}")
