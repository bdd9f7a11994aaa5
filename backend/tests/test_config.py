"""
TechNotes Backend - Settings Tests
===================================

What:  Environment variables map onto Settings, including the short
       deployment names (PORT, DB_CONNECTION_STRING).
"""

import pytest
from pydantic import ValidationError

from technotes.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("PORT", "BACKEND_PORT", "DATABASE_URL", "DB_CONNECTION_STRING", "STORAGE_BACKEND"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.port == 3500
        assert settings.storage_backend == "sql"
        assert settings.uses_sql_storage is True
        assert settings.database_url.startswith("postgresql+asyncpg://")

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        assert Settings(_env_file=None).port == 8080

    def test_connection_string_alias(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_CONNECTION_STRING", "sqlite+aiosqlite:///./alias.db")
        assert Settings(_env_file=None).database_url == "sqlite+aiosqlite:///./alias.db"

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "MEMORY")
        settings = Settings(_env_file=None)
        assert settings.storage_backend == "memory"
        assert settings.uses_sql_storage is False

    def test_unknown_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("STORAGE_BACKEND", "mongo")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_cors_origins_list(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "http://a.example, http://b.example,")
        assert Settings(_env_file=None).cors_origins_list == ["http://a.example", "http://b.example"]
