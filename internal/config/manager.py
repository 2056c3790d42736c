"""
Configuration management for the weather tracker.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)

API_KEY_PLACEHOLDERS = ("", "YOUR_API_KEY_HERE")

# Section defaults, user values are merged on top
DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "openweathermap": {
        "base-url": "https://api.openweathermap.org/data/2.5",
        "onecall-url": "https://api.openweathermap.org/data/3.0/onecall",
        "units": "metric",
        "language": "en",
        "request-timeout": 10,
        "max-retries": 2,
        "retry-backoff-factor": 0.5,
        "max-backoff": 8.0,
        "forecast-mode": "3hour",
        "current-ttl": 300,  # 5 minutes
        "forecast-ttl": 1800,  # 30 minutes
        "cache-enabled": True,
    },
    "tracking": {
        "batch-size": 3,
        "batch-delay": 0.5,
    },
    "storage": {
        "path": "weather.db",
    },
    "geolocation": {
        "provider": "none",
        "timeout": 10,
        "maximum-age": 300,
        "enabled": True,
    },
    "ratelimiter": {
        "max-requests": 60,
        "window-seconds": 60,
    },
    "logging": {
        "level": "WARNING",
    },
}


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute ${VAR_NAME} placeholders in strings, dicts and lists."""
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


def mergeConfigs(baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge two configuration dictionaries, values from newConfig win."""
    merged = baseConfig.copy()

    for key, value in newConfig.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = mergeConfigs(merged[key], value)
        else:
            merged[key] = value

    return merged


class ConfigManager:
    """Manages configuration loading and validation for the weather tracker."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.config_path = configPath
        self.config_dirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = self._loadConfig()

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory"""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping")
            return tomlFiles

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)  # Sort for consistent ordering

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load configuration from a TOML file and optional configuration directories.

        Files found in config directories are merged on top of the main file in
        sorted order, then the result is merged on top of DEFAULT_CONFIG.

        Raises:
            SystemExit: If neither the main file nor config directories are given,
                        if the API key is missing, or if the main file is not valid TOML.
        """
        configFile = Path(self.config_path)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.config_dirs:
            logger.error(f"Configuration file {self.config_path} not found!")
            sys.exit(1)

        try:
            config: Dict[str, Any] = {}
            if hasConfigFile:
                with open(configFile, "rb") as f:
                    config = tomli.load(f)
                logger.info(f"Loaded main config from {self.config_path}")

            for configDir in self.config_dirs:
                tomlFiles = self._findTomlFilesRecursive(configDir)
                logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

                for tomlFile in tomlFiles:
                    try:
                        with open(tomlFile, "rb") as f:
                            dirConfig = tomli.load(f)
                        config = mergeConfigs(config, dirConfig)
                        logger.info(f"Merged config from {tomlFile}")
                    except (OSError, tomli.TOMLDecodeError) as e:
                        logger.error(f"Failed to load config file {tomlFile}: {e}")
                        # Continue with other files instead of exiting

        except (OSError, tomli.TOMLDecodeError) as e:
            logger.error(f"Failed to load configuration: {e}")
            sys.exit(1)

        config = substituteEnvVars(mergeConfigs(DEFAULT_CONFIG, config))

        apiKey = str(config.get("openweathermap", {}).get("api-key", "")).strip()
        if apiKey in API_KEY_PLACEHOLDERS:
            logger.error("OpenWeatherMap API key not found in configuration!")
            sys.exit(1)

        logger.info("Configuration loaded and merged successfully")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getOpenWeatherMapConfig(self) -> Dict[str, Any]:
        """
        Get OpenWeatherMap configuration

        Returns:
            Dict with api-key, base-url, units, language, retries and ttls
        """
        return self.get("openweathermap", {})

    def getApiKey(self) -> str:
        """Get OpenWeatherMap API key"""
        return str(self.getOpenWeatherMapConfig()["api-key"]).strip()

    def getTrackingConfig(self) -> Dict[str, Any]:
        """Get batch refresh configuration (batch-size, batch-delay)."""
        return self.get("tracking", {})

    def getStorageConfig(self) -> Dict[str, Any]:
        """Get durable store configuration (path)."""
        return self.get("storage", {})

    def getGeolocationConfig(self) -> Dict[str, Any]:
        """Get geolocation provider configuration."""
        return self.get("geolocation", {})

    def getRateLimiterConfig(self) -> Dict[str, Any]:
        """Get ratelimiter-specific configuration."""
        return self.get("ratelimiter", {})

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})
