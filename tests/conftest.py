"""Shared fixtures for the ledger data access layer tests."""
import pytest

from ldpos_dal.config import LedgerSettings
from ldpos_dal.core.database import StorageEngine
from ldpos_dal.dal import LedgerDAL


@pytest.fixture
def store():
    """A fresh in-memory SQLite store with every table created."""
    engine = StorageEngine("sqlite://")
    engine.migrate_latest()
    yield engine
    engine.close()


@pytest.fixture
def dal(store):
    return LedgerDAL(LedgerSettings(DATABASE_URL="sqlite://"), store=store)
