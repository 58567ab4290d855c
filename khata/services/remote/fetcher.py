"""
Remote JSON Document Fetcher

Downloads an import document from a URL. Transient network failures are
retried with exponential backoff; anything that still fails, and anything
that comes back but is not JSON, is raised as NetworkFailureError.

The blocking download runs in a worker thread so the caller's event loop
stays responsive while an import is pending.
"""

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any, Optional

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from khata.config import get_settings
from khata.errors import NetworkFailureError


USER_AGENT = "khata-ledger/1.0"


def _is_transient(error: BaseException) -> bool:
    """Client errors (4xx) are final; other network failures are retried."""
    if isinstance(error, urllib.error.HTTPError):
        return error.code >= 500
    return isinstance(error, (urllib.error.URLError, TimeoutError, ConnectionError))


class DocumentTooLargeError(NetworkFailureError):
    """The remote document exceeds the configured size limit."""
    pass


class RemoteDocumentFetcher:
    """
    Fetches and decodes JSON documents over HTTP(S).

    Only http and https URLs are accepted.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        max_attempts: Optional[int] = None,
        max_document_bytes: Optional[int] = None,
    ):
        settings = get_settings().imports
        self._timeout = timeout_seconds or settings.timeout_seconds
        self._max_attempts = max_attempts or settings.max_attempts
        self._max_bytes = max_document_bytes or settings.max_document_bytes

    def _download(self, url: str) -> bytes:
        """Single blocking download attempt."""
        request = urllib.request.Request(
            url,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )
        with urllib.request.urlopen(request, timeout=self._timeout) as response:
            body = response.read(self._max_bytes + 1)
        if len(body) > self._max_bytes:
            raise DocumentTooLargeError(
                f"Document is larger than {self._max_bytes} bytes", url=url
            )
        return body

    def _download_with_retry(self, url: str) -> bytes:
        retrying = retry(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        return retrying(self._download)(url)

    def fetch_bytes(self, url: str) -> bytes:
        """
        Download a document, retrying transient failures.

        Raises:
            NetworkFailureError: On any network, HTTP or size failure
        """
        if not url.lower().startswith(("http://", "https://")):
            raise NetworkFailureError(f"Unsupported URL: {url}", url=url)

        try:
            return self._download_with_retry(url)
        except NetworkFailureError:
            raise
        except urllib.error.HTTPError as e:
            raise NetworkFailureError(
                f"Error loading data: HTTP {e.code} {e.reason}", url=url
            )
        except urllib.error.URLError as e:
            raise NetworkFailureError(f"Error loading data: {e.reason}", url=url)
        except (TimeoutError, ConnectionError, OSError) as e:
            raise NetworkFailureError(f"Error loading data: {e}", url=url)

    def fetch_json(self, url: str) -> Any:
        """
        Download and decode a JSON document.

        Raises:
            NetworkFailureError: If the download fails or the body is not JSON
        """
        body = self.fetch_bytes(url)
        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise NetworkFailureError(f"Error loading data: {e}", url=url)

    async def fetch_json_async(self, url: str) -> Any:
        """Same as fetch_json, without blocking the event loop."""
        return await asyncio.to_thread(self.fetch_json, url)
