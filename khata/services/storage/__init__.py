"""
Storage Services Package

Provides the key/value persistence contract and its implementations.
"""

from khata.services.storage.interface import (
    CorruptValueError,
    KeyValueStorageInterface,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
)
from khata.services.storage.json_file import JsonFileStorage
from khata.services.storage.memory import InMemoryStorage

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "CorruptValueError",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
]
