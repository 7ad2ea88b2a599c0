"""
Test Configuration
==================
Pytest fixtures for token usage service tests.
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from token_usage.config import Settings
from token_usage.database import UsageStore, connect_store, get_session
from token_usage.main import create_app


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite file database, fresh for every test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'token_usage.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    return Settings(
        database_url=database_url,
        database_connect_max_attempts=1,
        metrics_enabled=False,
        log_format="console",
    )


@pytest.fixture
def client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """Test client whose lifespan connects to a fresh SQLite database."""
    app = create_app(settings=test_settings)

    with TestClient(app) as c:
        yield c


@pytest.fixture
def failing_session() -> MagicMock:
    """Session stand-in whose every query fails like a lost connection."""
    session = MagicMock(spec=AsyncSession)
    session.execute = AsyncMock(
        side_effect=OperationalError("SELECT 1", {}, Exception("connection lost"))
    )
    session.get_bind.return_value.dialect.name = "sqlite"
    return session


@pytest.fixture
def fake_session_client(
    test_settings: Settings,
    failing_session: MagicMock,
) -> Generator[TestClient, None, None]:
    """Test client with the session dependency replaced by failing_session."""
    app = create_app(settings=test_settings)

    async def override_get_session():
        yield failing_session

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
async def store(database_url: str) -> AsyncGenerator[UsageStore, None]:
    """Connected store with the schema in place."""
    store = await connect_store(database_url, max_attempts=1)
    yield store
    await store.close()


@pytest.fixture
async def session(store: UsageStore) -> AsyncGenerator[AsyncSession, None]:
    async with store.session() as session:
        yield session


@pytest.fixture
def sample_report() -> dict:
    """Sample usage report for testing."""
    return {
        "date": "2024-01-10",
        "model": "gpt-4",
        "total_tokens": 100,
    }
