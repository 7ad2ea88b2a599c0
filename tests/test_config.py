"""
Configuration Tests
===================
Tests for settings and connection string handling.
"""

from token_usage.config import Settings, to_async_url


class TestDatabaseUrl:
    """Tests for DATABASE_URL normalization."""

    def test_postgres_scheme_uses_asyncpg(self):
        url = to_async_url("postgres://postgres:password@db:5432/postgres")
        assert url == "postgresql+asyncpg://postgres:password@db:5432/postgres"

    def test_sslmode_becomes_ssl(self):
        url = to_async_url("postgres://postgres:password@db:5432/postgres?sslmode=disable")
        assert url == "postgresql+asyncpg://postgres:password@db:5432/postgres?ssl=disable"

    def test_async_url_unchanged(self):
        url = "postgresql+asyncpg://user:pw@localhost/usage"
        assert to_async_url(url) == url

    def test_sqlite_uses_aiosqlite(self):
        assert to_async_url("sqlite:///usage.db") == "sqlite+aiosqlite:///usage.db"

    def test_settings_normalize_url(self):
        settings = Settings(database_url="postgresql://u:p@h/db")
        assert settings.database_url == "postgresql+asyncpg://u:p@h/db"

    def test_empty_url_is_unset(self):
        assert Settings(database_url="").database_url is None

    def test_defaults(self):
        settings = Settings(database_url=None)
        assert settings.app_port == 5001
        assert settings.database_connect_max_attempts == 5
        assert settings.database_connect_base_delay == 2.0
