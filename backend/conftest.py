"""Shared fixtures for backend tests: a throwaway SQLite database per test."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend import config, db


@pytest.fixture
def database(tmp_path, monkeypatch):
    """Fresh SQLite file database, engine opened for the duration of the test."""
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'inspections.db'}")
    monkeypatch.setattr(config, "DB_NAME", "")
    engine = db.init_engine()
    yield engine
    db.dispose_engine()


@pytest.fixture
def client(database):
    """FastAPI test client running the app lifespan against the test database."""
    from backend.main import app

    with TestClient(app) as test_client:
        yield test_client
