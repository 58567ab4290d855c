"""Services package."""

from khata.services.remote import (
    DocumentTooLargeError,
    RemoteDocumentFetcher,
)
from khata.services.storage import (
    CorruptValueError,
    InMemoryStorage,
    JsonFileStorage,
    KeyValueStorageInterface,
    StorageError,
    StorageQuotaExceededError,
    StorageUnavailableError,
)

__all__ = [
    # Remote services
    "DocumentTooLargeError",
    "RemoteDocumentFetcher",
    # Storage services
    "CorruptValueError",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorageInterface",
    "StorageError",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
]
