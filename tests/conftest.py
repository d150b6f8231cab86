"""
Shared pytest fixtures for the notification store tests.

Every test gets its own store, so tests never see each other's writes.
"""

import pytest
from pathlib import Path
from fastapi.testclient import TestClient

from api.main import create_app
from notification_client.delivery import LocalAlerts
from notification_client.json_service import NotificationClient
from notification_store.config import Settings
from notification_store.data_store import NotificationStore


@pytest.fixture
def data_dir() -> Path:
    """Path to the sample data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def store() -> NotificationStore:
    """In-memory store holding the two seed notifications."""
    return NotificationStore(db_path=None, seed=True)


@pytest.fixture
def empty_store() -> NotificationStore:
    """In-memory store with no notifications."""
    return NotificationStore(db_path=None, seed=False)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Database file location inside a per-test temporary directory."""
    return tmp_path / "db.json"


@pytest.fixture
def file_store(db_path: Path) -> NotificationStore:
    """Seeded store backed by a temporary JSON file."""
    return NotificationStore(db_path=db_path, seed=True)


@pytest.fixture
def settings() -> Settings:
    return Settings.in_memory()


@pytest.fixture
def api_client(store: NotificationStore, settings: Settings) -> TestClient:
    """HTTP client for an app serving the seeded in-memory store."""
    return TestClient(create_app(store=store, settings=settings))


@pytest.fixture
def empty_api_client(empty_store: NotificationStore, settings: Settings) -> TestClient:
    """HTTP client for an app serving an empty store."""
    return TestClient(create_app(store=empty_store, settings=settings))


@pytest.fixture
def notification_client(api_client: TestClient) -> NotificationClient:
    """NotificationClient talking to the seeded app through the TestClient."""
    return NotificationClient(base_url=str(api_client.base_url), http=api_client)


@pytest.fixture
def alerts() -> LocalAlerts:
    """Fresh mock alert channel for each test."""
    return LocalAlerts()


# =============================================================================
# Seed data
# =============================================================================

@pytest.fixture
def welcome_id() -> str:
    """Seed notification 'Welcome' (local, not notified)."""
    return "1"


@pytest.fixture
def meeting_id() -> str:
    """Seed notification 'Meeting Reminder' (scheduled, not notified)."""
    return "2"
