"""Pytest configuration and fixtures."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

import config
from config import Settings
from main import app
from services.fx_service import get_default_rate_cache
from store import get_store
from tests.fixtures import (
    ASSET_LOG_DB,
    ASSET_LOG_SCHEMA,
    HOLDINGS_DB,
    SNAPSHOTS_DB,
    SNAPSHOTS_SCHEMA,
    TRANSACTIONS_DB,
    TRANSACTIONS_SCHEMA,
)
from tests.fixtures.mocks import InMemoryDocumentStore

DB_IDS = {
    "NOTION_HOLDINGS_DB_ID": HOLDINGS_DB,
    "NOTION_SNAPSHOTS_DB_ID": SNAPSHOTS_DB,
    "NOTION_TRANSACTIONS_DB_ID": TRANSACTIONS_DB,
    "NOTION_ASSET_LOG_DB_ID": ASSET_LOG_DB,
}


@pytest.fixture(autouse=True)
def no_keychain():
    """Keep tests from reading the developer's real keychain."""
    with patch("config.get_credential", return_value=None):
        yield


@pytest.fixture(autouse=True)
def clear_rate_cache():
    get_default_rate_cache().invalidate()
    yield
    get_default_rate_cache().invalidate()


@pytest.fixture(name="test_settings")
def test_settings_fixture():
    """Settings with every table configured and no secrets."""
    return Settings(_env_file=None, NOTION_TOKEN="secret-token", **DB_IDS)


@pytest.fixture(name="store")
def store_fixture():
    """An empty in-memory store with the snapshot, transaction and log schemas."""
    return InMemoryDocumentStore(
        schemas={
            SNAPSHOTS_DB: SNAPSHOTS_SCHEMA,
            TRANSACTIONS_DB: TRANSACTIONS_SCHEMA,
            ASSET_LOG_DB: ASSET_LOG_SCHEMA,
        }
    )


@pytest.fixture(name="configured")
def configured_fixture(monkeypatch):
    """Point the process-wide settings at the in-memory tables."""
    for name, value in DB_IDS.items():
        monkeypatch.setattr(config.settings, name, value)
    monkeypatch.setattr(config.settings, "NOTION_TOKEN", "secret-token")
    for name in ("WRITE_SECRET", "CRON_SECRET", "WEBHOOK_SECRET"):
        monkeypatch.setattr(config.settings, name, "")
    return config.settings


@pytest.fixture(name="client")
def client_fixture(store, configured):
    """Create a test client backed by the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
