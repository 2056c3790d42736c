"""
Weather tracker - current weather, forecasts and multi-city tracking on top
of OpenWeatherMap, with TOML configuration and SQLite storage.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

from internal.application import WeatherApplication, buildArgumentParser
from internal.config.manager import ConfigManager
from lib.logging_utils import initLogging

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)


def parseArguments() -> argparse.Namespace:
    """Parse command line arguments."""
    args = buildArgumentParser().parse_args()
    args.config = os.path.abspath(args.config)

    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    return args


def prettyPrintConfig(configManager: ConfigManager) -> None:
    """Pretty-print the loaded configuration, API key masked"""
    print("=== Weather Tracker Configuration ===")
    print()

    config = json.loads(json.dumps(configManager.config))
    if "api-key" in config.get("openweathermap", {}):
        config["openweathermap"]["api-key"] = "***"

    print(json.dumps(config, indent=2, ensure_ascii=False, sort_keys=True))
    print()
    print("=== Configuration loaded successfully ===")


def main():
    """Main entry point."""
    args = parseArguments()
    parser = buildArgumentParser()

    try:
        configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir, dotEnvFile=args.dotenv_file)

        if args.print_config:
            prettyPrintConfig(configManager)
            sys.exit(0)

        if args.command is None:
            parser.print_help()
            sys.exit(2)

        initLogging(configManager.getLoggingConfig())

        app = WeatherApplication(configManager)
        sys.exit(asyncio.run(app.run(args)))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except Exception as e:
        logger.error(f"Weather tracker crashed: {e}")
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
