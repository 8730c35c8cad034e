"""Shared fixtures: every test gets its own log file under tmp_path."""

import pytest
from fastapi.testclient import TestClient

from logdeck.config import get_settings
from logdeck.core.storage import JsonLogStore
from logdeck.deps import reset_log_stores
from logdeck.observability import get_metrics_store


@pytest.fixture
def log_path(tmp_path):
    return tmp_path / "data" / "logs.json"


@pytest.fixture
def store(log_path):
    """Store bound to a fresh file that does not exist yet."""
    return JsonLogStore(log_path)


@pytest.fixture
def settings_env(monkeypatch, log_path):
    """Point the application settings at the temporary log file."""
    monkeypatch.setenv("STORAGE_PATH", str(log_path))
    get_settings.cache_clear()
    reset_log_stores()
    get_metrics_store().reset()
    yield monkeypatch
    get_settings.cache_clear()
    reset_log_stores()


@pytest.fixture
def client(settings_env):
    """Test client wired to the temporary log file."""
    from logdeck.main import app

    return TestClient(app)
