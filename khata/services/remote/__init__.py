"""Remote import services."""

from khata.services.remote.fetcher import (
    DocumentTooLargeError,
    RemoteDocumentFetcher,
)

__all__ = [
    "DocumentTooLargeError",
    "RemoteDocumentFetcher",
]
