"""
Pytest fixtures for the Task API tests.

Provides a temporary database path, a connected ``TaskStore``, and a
``TestClient`` whose app runs its lifespan (so the store is connected) for
the duration of each test.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from task_api.config import AppConfig  # noqa: E402
from task_api.database import TaskStore  # noqa: E402


@pytest.fixture()
def db_path(tmp_path):
    """Path to a not-yet-created SQLite file."""
    return tmp_path / "tasks.sqlite"


@pytest.fixture()
def store(db_path):
    """A connected TaskStore over an empty database."""
    s = TaskStore(db_path)
    s.connect()
    yield s
    s.close()


@pytest.fixture()
def app_config(monkeypatch):
    """AppConfig built from a clean environment (no .env lookup)."""
    for var in ("APP_DB_PATH", "APP_HOST", "APP_PORT", "APP_LOG_FORMAT", "APP_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    return AppConfig()


@pytest.fixture()
def client(db_path, app_config):
    """TestClient for an app wired to the temporary database."""
    from fastapi.testclient import TestClient

    from task_api.app import create_app

    app = create_app(db_path=db_path, config=app_config)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
