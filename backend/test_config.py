"""
backend/test_config.py

Database URL resolution and engine lifecycle.
"""

import pytest

from backend import config, db


class TestRequireDatabaseUrl:

    def test_missing_url_fails(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "")
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            config.require_database_url()

    def test_postgres_scheme_is_normalized(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "postgres://u:p@db.example.com:5432/main")
        monkeypatch.setattr(config, "DB_NAME", "")
        assert config.require_database_url() == "postgresql://u:p@db.example.com:5432/main"

    def test_db_name_overrides_database(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "postgresql://u:p@db.example.com/main")
        monkeypatch.setattr(config, "DB_NAME", "inspections")
        assert config.require_database_url() == "postgresql://u:p@db.example.com/inspections"

    def test_sqlite_url_passes_through(self, monkeypatch):
        monkeypatch.setattr(config, "DATABASE_URL", "sqlite:///./local.db")
        monkeypatch.setattr(config, "DB_NAME", "")
        assert config.require_database_url() == "sqlite:///./local.db"


class TestEngineLifecycle:

    def test_get_engine_before_init_fails(self):
        db.dispose_engine()
        with pytest.raises(db.DatabaseNotInitialized):
            db.get_engine()
        assert db.is_connected() is False

    def test_init_is_idempotent(self, database):
        assert db.init_engine() is database
        assert db.get_engine() is database

    def test_dispose_then_use_fails(self, database):
        db.dispose_engine()
        with pytest.raises(db.DatabaseNotInitialized):
            with db.get_db_connection():
                pass

    def test_init_without_url_fails(self, monkeypatch):
        db.dispose_engine()
        monkeypatch.setattr(config, "DATABASE_URL", "")
        with pytest.raises(RuntimeError):
            db.init_engine()
