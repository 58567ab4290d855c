"""
Main Orchestrator for Khata Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Import (URL / file / bytes -> decode -> reconcile -> swap -> persist)
2. Export (snapshot -> dated JSON backup)

DESIGN DECISION: The orchestrator enforces the boundaries:
- An import is all-or-nothing; a rejected document changes nothing
- Only one import runs at a time
- Every step is audited under one correlation id

The views themselves are served by LedgerQueries; the flows here only
move whole documents in and out of the store.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union
from uuid import UUID

import structlog

from khata.audit import AuditLogger, create_correlation_id
from khata.config import get_settings
from khata.errors import (
    ImportInProgressError,
    InvalidFormatError,
    KhataError,
    NetworkFailureError,
    ValidationFailureError,
)
from khata.models.audit import AuditEventBuilder
from khata.models.ledger import utc_now
from khata.models.results import ExportBundle, ImportSummary
from khata.queries import LedgerQueries
from khata.services.remote import RemoteDocumentFetcher
from khata.services.storage import JsonFileStorage, KeyValueStorageInterface
from khata.store import LedgerStore


logger = structlog.get_logger("khata.orchestrator")

EXPORT_FILENAME = "khata_backup_{date}.json"


def decode_document(raw: Union[bytes, str]) -> Any:
    """
    Parse an import document.

    Raises:
        InvalidFormatError: If the content is not valid JSON
    """
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidFormatError(f"Invalid JSON format: {e}")


def read_document_file(path: Path) -> bytes:
    """
    Read a backup file from disk.

    Raises:
        NetworkFailureError: If the file is missing or unreadable
    """
    try:
        return path.read_bytes()
    except OSError as e:
        raise NetworkFailureError(
            f"Error loading data: cannot read {path}: {e.strerror or e}", url=str(path)
        )


class ImportFlow:
    """
    Orchestrates importing a ledger document.

    Flow:
    1. Start -> refuse if another import is still pending
    2. Fetch -> download (URL) or read (file, bytes) the document
    3. Reconcile -> validate and flatten legacy data into a new state
    4. Swap -> replace the store's state and persist it

    Failures at any step are audited and re-raised; the ledger is left
    exactly as it was.
    """

    def __init__(
        self,
        store: LedgerStore,
        fetcher: Optional[RemoteDocumentFetcher] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._fetcher = fetcher or RemoteDocumentFetcher()
        self._audit_logger = audit_logger
        self._in_flight = False

    @property
    def in_progress(self) -> bool:
        return self._in_flight

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _begin(self, source: str) -> UUID:
        if self._in_flight:
            raise ImportInProgressError()
        self._in_flight = True
        correlation_id = create_correlation_id()
        self._audit(AuditEventBuilder.import_started(source, correlation_id))
        logger.info("import_started", source=source, correlation_id=str(correlation_id))
        return correlation_id

    def _fail(self, source: str, error: KhataError, correlation_id: UUID) -> None:
        logger.warning(
            "import_failed",
            source=source,
            error=error.user_message,
            correlation_id=str(correlation_id),
        )
        self._audit(AuditEventBuilder.import_failed(
            source=source,
            error_code=type(error).__name__,
            error_message=error.user_message,
            correlation_id=correlation_id,
        ))

    def _apply(self, document: Any, source: str, correlation_id: UUID) -> ImportSummary:
        summary = self._store.apply_import(
            document, source=source, correlation_id=correlation_id
        )
        logger.info(
            "import_completed",
            source=source,
            customers=summary.customer_count,
            transactions=summary.transaction_count,
            correlation_id=str(correlation_id),
        )
        return summary

    async def import_from_url(self, url: str) -> ImportSummary:
        """
        Fetch a JSON document over HTTP(S) and replace the ledger with it.

        Raises:
            ValidationFailureError: If the URL is blank
            ImportInProgressError: If another import has not finished
            NetworkFailureError: If the document cannot be downloaded
            InvalidFormatError: If the document is not a ledger document
        """
        url = (url or "").strip()
        if not url:
            raise ValidationFailureError("Please enter a valid URL")

        correlation_id = self._begin(url)
        try:
            document = await self._fetcher.fetch_json_async(url)
            return self._apply(document, url, correlation_id)
        except KhataError as e:
            self._fail(url, e, correlation_id)
            raise
        finally:
            self._in_flight = False

    def import_from_bytes(self, raw: Union[bytes, str], source: str = "inline") -> ImportSummary:
        """
        Replace the ledger with an uploaded JSON document.

        Raises:
            ImportInProgressError: If another import has not finished
            InvalidFormatError: If the content is not a ledger document
        """
        return self._import_local(source, lambda: raw)

    def import_from_file(self, path: Union[str, Path]) -> ImportSummary:
        """
        Replace the ledger with a JSON backup file.

        Raises:
            ImportInProgressError: If another import has not finished
            NetworkFailureError: If the file is missing or unreadable
            InvalidFormatError: If the content is not a ledger document
        """
        path = Path(path)
        return self._import_local(str(path), lambda: read_document_file(path))

    def _import_local(
        self,
        source: str,
        read: Callable[[], Union[bytes, str]],
    ) -> ImportSummary:
        correlation_id = self._begin(source)
        try:
            return self._apply(decode_document(read()), source, correlation_id)
        except KhataError as e:
            self._fail(source, e, correlation_id)
            raise
        finally:
            self._in_flight = False


class ExportFlow:
    """Produces the downloadable backup of the whole ledger."""

    def __init__(
        self,
        store: LedgerStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._clock = clock or utc_now

    def export(self) -> ExportBundle:
        """
        Serialize the ledger to the backup document.

        The file is named after the UTC date of the export,
        e.g. `khata_backup_2024-03-31.json`.
        """
        exported_at = self._clock()
        document = self._store.snapshot()
        content = json.dumps(document, indent=2, ensure_ascii=False).encode("utf-8")

        bundle = ExportBundle(
            filename=EXPORT_FILENAME.format(date=exported_at.date().isoformat()),
            content=content,
            exported_at=exported_at,
            customer_count=len(document["customers"]),
            transaction_count=len(document["transactions"]),
        )
        if self._audit_logger:
            self._audit_logger.log(
                AuditEventBuilder.export_created(bundle.filename, bundle.size_bytes)
            )
        return bundle

    def write_to(self, directory: Union[str, Path]) -> Path:
        """Export and write the backup into `directory`. Returns the file path."""
        bundle = self.export()
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / bundle.filename
        path.write_bytes(bundle.content)
        logger.info("export_written", path=str(path), size_bytes=bundle.size_bytes)
        return path


@dataclass
class AppComponents:
    """Everything a presentation layer needs, wired together."""

    store: LedgerStore
    queries: LedgerQueries
    import_flow: ImportFlow
    export_flow: ExportFlow
    audit_logger: AuditLogger


def create_app_components(
    storage: Optional[KeyValueStorageInterface] = None,
    fetcher: Optional[RemoteDocumentFetcher] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Persistence to use. Defaults to a JsonFileStorage in the
                 configured directory.
        fetcher: Remote fetcher for URL imports.

    Raises:
        StorageUnavailableError: If the storage cannot be read
    """
    settings = get_settings()
    audit_logger = AuditLogger(history_size=settings.app.audit_history_size)
    storage = storage or JsonFileStorage()

    store = LedgerStore.open(storage, audit_logger=audit_logger, settings=settings)

    return AppComponents(
        store=store,
        queries=LedgerQueries(lambda: store.state, settings=settings),
        import_flow=ImportFlow(store, fetcher=fetcher, audit_logger=audit_logger),
        export_flow=ExportFlow(store, audit_logger=audit_logger),
        audit_logger=audit_logger,
    )
