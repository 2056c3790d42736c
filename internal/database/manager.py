"""Database manager: builds the wrapper and the state store from configuration."""

import logging
from typing import Any, Dict

from .state_store import WeatherStateStore
from .wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database initialization and configuration."""

    __slots__ = ("config", "db", "store")

    def __init__(self, config: Dict[str, Any]):
        """Initialize DatabaseManager with configuration.

        Args:
            config: ``[storage]`` config section (``path``)

        Raises:
            StorageError: If the database cannot be opened
        """
        self.config = config
        self.db = DatabaseWrapper(str(config.get("path", "weather.db")))
        self.store = WeatherStateStore(self.db)
        logger.info(f"Database initialized: {self.config}")

    def getDatabase(self) -> DatabaseWrapper:
        return self.db

    def getStateStore(self) -> WeatherStateStore:
        return self.store

    def close(self) -> None:
        self.db.close()
