"""
Pytest configuration and common fixtures for weather tracker tests.

This module provides shared fixtures for testing services, storage and the
application wiring. All fixtures follow camelCase naming convention.
"""

from pathlib import Path
from typing import Generator
from unittest.mock import Mock

import pytest

from internal.database.state_store import WeatherStateStore
from internal.database.wrapper import DatabaseWrapper
from tests.utils import FakeWeatherClient

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def inMemoryDbPath() -> str:
    """
    Provide path for in-memory SQLite database.

    Returns:
        str: SQLite in-memory database path
    """
    return ":memory:"


@pytest.fixture
def testDatabase(inMemoryDbPath) -> Generator[DatabaseWrapper, None, None]:
    """
    Create a real in-memory database.

    Yields:
        DatabaseWrapper: Real database instance with in-memory storage

    Example:
        def testSettings(testDatabase):
            testDatabase.setSetting("units", "metric")
            assert testDatabase.getSetting("units") == "metric"
    """
    db = DatabaseWrapper(inMemoryDbPath)
    yield db
    db.close()


@pytest.fixture
def stateStore(testDatabase) -> WeatherStateStore:
    """Durable store on top of the in-memory database"""
    return WeatherStateStore(testDatabase)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def fakeClient() -> FakeWeatherClient:
    """In-memory OpenWeatherMap client double"""
    return FakeWeatherClient()


@pytest.fixture
def mockConfigManager():
    """
    Create a mock ConfigManager.

    Returns:
        Mock: Mocked ConfigManager instance

    Example:
        def testConfig(mockConfigManager):
            mockConfigManager.getTrackingConfig.return_value = {"batch-size": 5}
    """
    from internal.config.manager import ConfigManager

    mock = Mock(spec=ConfigManager)
    mock.getApiKey.return_value = "test_key"
    mock.getTrackingConfig.return_value = {"batch-size": 3, "batch-delay": 0.5}
    mock.getStorageConfig.return_value = {"path": ":memory:"}
    mock.getLoggingConfig.return_value = {"level": "WARNING"}

    return mock


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def configFile(tmp_path: Path) -> Path:
    """
    Write a minimal config.toml with storage inside tmp_path.

    Returns:
        Path: Path to the config file
    """
    path = tmp_path / "config.toml"
    path.write_text(
        f"""
[openweathermap]
api-key = "test_key"
base-url = "https://owm.test/data/2.5"
onecall-url = "https://owm.test/data/3.0/onecall"

[tracking]
batch-size = 3
batch-delay = 0

[storage]
path = "{(tmp_path / 'weather.db').as_posix()}"
""",
        encoding="utf-8",
    )
    return path
