"""Shared fixtures for the ledger tests."""

from datetime import datetime, timezone

import pytest

from khata.audit import AuditLogger
from khata.config import get_settings
from khata.services.storage import InMemoryStorage
from khata.store import LedgerStore


NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Run every test against default settings and a throwaway data directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KHATA_STORAGE_DIRECTORY", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def store(storage, audit_logger, clock):
    return LedgerStore.open(storage, audit_logger=audit_logger, clock=clock)
