"""
Weather tracker application: wires components from configuration and runs
CLI commands.
"""

import argparse
import datetime
import logging
import sys
from typing import Any, List, Optional

import httpx

from internal.config.manager import ConfigManager
from internal.database.exceptions import StorageError
from internal.database.manager import DatabaseManager
from internal.database.models import TrackedCityDict
from internal.services.tracking import BatchRefreshEngine, RefreshProgress, RefreshResult, TrackingService
from internal.services.weather import CacheKind, RequestCache, WeatherService, WeatherServiceError
from lib.cache import CacheInterface, DictCache, NullCache, StringKeyGenerator
from lib.geolocation import GeolocationError, GeolocationResolver, createGeolocationProvider
from lib.openweathermap import (
    ForecastMode,
    ForecastSeries,
    OpenWeatherMapClient,
    Units,
    WeatherSnapshot,
    selectDailyEntries,
)
from lib.rate_limiter import QueueConfig, SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

UNIT_SYMBOLS = {
    Units.METRIC: ("°C", "m/s"),
    Units.IMPERIAL: ("°F", "mph"),
}


def formatTime(timestamp: int, offset: int) -> str:
    """Local HH:MM of a unix timestamp"""
    localTime = datetime.datetime.fromtimestamp(timestamp + offset, tz=datetime.timezone.utc)
    return localTime.strftime("%H:%M")


def formatWeather(weather: WeatherSnapshot) -> str:
    tempUnit, speedUnit = UNIT_SYMBOLS.get(Units(weather["units"]), ("", ""))
    location = f"{weather['name']}, {weather['country']}" if weather["country"] else weather["name"]
    offset = weather["timezone_offset"]
    return "\n".join(
        [
            f"{location} ({weather['lat']:.4f}, {weather['lon']:.4f})",
            f"  {weather['weather_description'].capitalize()}",
            f"  Temperature: {weather['temp']:.1f}{tempUnit} (feels like {weather['feels_like']:.1f}{tempUnit}), "
            f"min {weather['temp_min']:.1f}{tempUnit}, max {weather['temp_max']:.1f}{tempUnit}",
            f"  Humidity: {weather['humidity']}%, pressure: {weather['pressure']} hPa",
            f"  Wind: {weather['wind_speed']:.1f} {speedUnit}, {weather['wind_deg']}°",
            f"  Visibility: {weather['visibility'] / 1000:.1f} km",
            f"  Sunrise: {formatTime(weather['sunrise'], offset)}, sunset: {formatTime(weather['sunset'], offset)}",
        ]
    )


def formatForecast(forecast: ForecastSeries, daily: bool = True) -> str:
    tempUnit, _ = UNIT_SYMBOLS.get(Units(forecast["units"]), ("", ""))
    entries = selectDailyEntries(forecast) if daily and forecast["mode"] != ForecastMode.DAILY else forecast["entries"]
    lines = []
    for entry in entries:
        localTime = datetime.datetime.fromtimestamp(entry["dt"] + forecast["timezone_offset"], tz=datetime.timezone.utc)
        lines.append(
            f"{localTime.strftime('%a %d %b %H:%M')}  {entry['temp']:5.1f}{tempUnit}  "
            f"{entry['temp_min']:.0f}..{entry['temp_max']:.0f}{tempUnit}  "
            f"rain {entry['pop'] * 100:.0f}%  {entry['weather_description']}"
        )
    return "\n".join(lines)


def formatCity(city: TrackedCityDict) -> str:
    updated = datetime.datetime.fromtimestamp(city["last_updated"] / 1000).strftime("%Y-%m-%d %H:%M:%S")
    weather = city["weather"]
    if weather is None:
        summary = "no data"
    else:
        tempUnit, _ = UNIT_SYMBOLS.get(Units(weather["units"]), ("", ""))
        summary = f"{weather['temp']:.1f}{tempUnit}, {weather['weather_description']}"
    return f"[{city['id']}] {city['name']}, {city['country']}: {summary} (updated {updated})"


def formatRefreshResult(result: RefreshResult) -> str:
    lines = [formatCity(city) for city in result.cities]
    lines.append(f"Refreshed {result.refreshed} of {len(result.cities)} cities")
    for cityId, error in result.failures.items():
        lines.append(f"  Failed [{cityId}]: {error}")
    return "\n".join(lines)


class WeatherApplication:
    """
    Builds all components from configuration.

    Example:
        >>> app = WeatherApplication(ConfigManager("config.toml"))
        >>> print(await app.runCommand(args))
    """

    def __init__(
        self,
        configManager: ConfigManager,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            configManager: Loaded configuration
            transport: Optional httpx transport for the weather API (tests)

        Raises:
            StorageError: If the store cannot be opened
        """
        self.configManager = configManager
        owmConfig = configManager.getOpenWeatherMapConfig()

        rateLimiterConfig = configManager.getRateLimiterConfig()
        self.rateLimiter = SlidingWindowRateLimiter(
            QueueConfig(
                maxRequests=int(rateLimiterConfig["max-requests"]),
                windowSeconds=float(rateLimiterConfig["window-seconds"]),
            )
        )

        self.client = OpenWeatherMapClient(
            apiKey=configManager.getApiKey(),
            baseUrl=owmConfig["base-url"],
            onecallUrl=owmConfig["onecall-url"],
            requestTimeout=float(owmConfig["request-timeout"]),
            maxRetries=int(owmConfig["max-retries"]),
            retryBackoffFactor=float(owmConfig["retry-backoff-factor"]),
            maxBackoff=float(owmConfig["max-backoff"]),
            forecastMode=ForecastMode(owmConfig["forecast-mode"]),
            rateLimiter=self.rateLimiter,
            transport=transport,
        )

        cache: CacheInterface[str, Any] = (
            DictCache[str, Any](keyGenerator=StringKeyGenerator())
            if owmConfig.get("cache-enabled", True)
            else NullCache[str, Any]()
        )
        self.requestCache = RequestCache(
            cache,
            ttls={
                CacheKind.CURRENT: int(owmConfig["current-ttl"]),
                CacheKind.FORECAST: int(owmConfig["forecast-ttl"]),
            },
        )

        self.databaseManager = DatabaseManager(configManager.getStorageConfig())
        self.store = self.databaseManager.getStateStore()

        geoConfig = configManager.getGeolocationConfig()
        self.geolocation = GeolocationResolver(
            createGeolocationProvider(geoConfig),
            timeout=float(geoConfig["timeout"]),
            maximumAge=float(geoConfig["maximum-age"]),
        )

        self.weatherService = WeatherService(
            self.client,
            self.requestCache,
            self.store,
            self.geolocation,
            defaultUnits=owmConfig["units"],
            defaultLanguage=owmConfig["language"],
        )

        trackingConfig = configManager.getTrackingConfig()
        self.trackingService = TrackingService(
            self.weatherService,
            self.store,
            BatchRefreshEngine(
                batchSize=int(trackingConfig["batch-size"]),
                batchDelay=float(trackingConfig["batch-delay"]),
            ),
        )

    def _printProgress(self, progress: RefreshProgress) -> None:
        if progress.isRunning:
            print(f"Refreshing tracked cities: {progress.completed}/{progress.total}", file=sys.stderr)

    async def runCommand(self, args: argparse.Namespace) -> str:
        """
        Run one CLI command.

        Returns:
            Text to print

        Raises:
            WeatherServiceError, GeolocationError, StorageError: Reported by the caller
        """
        units: Optional[str] = getattr(args, "units", None)
        language: Optional[str] = getattr(args, "lang", None)
        logger.debug(f"Running command {args.command} (units={units}, language={language})")

        match args.command:
            case "current":
                weather = await self.weatherService.fetchByCity(" ".join(args.city), units, language)
                return formatWeather(weather)
            case "coords":
                weather = await self.weatherService.fetchByCoordinate(args.lat, args.lon, units, language)
                return formatWeather(weather)
            case "here":
                weather = await self.weatherService.fetchCurrentLocation(units, language)
                return formatWeather(weather)
            case "last":
                snapshot = self.weatherService.restoreLastSnapshot()
                return formatWeather(snapshot) if snapshot is not None else "No weather fetched yet"
            case "forecast":
                weather = await self.weatherService.fetchByCity(" ".join(args.city), units, language)
                forecast = await self.weatherService.fetchForecast(weather["lat"], weather["lon"], units, language)
                return formatWeather(weather) + "\n\n" + formatForecast(forecast, daily=not args.hourly)
            case "track":
                return await self._runTrackCommand(args, units, language)
            case "units":
                self.store.setUnits(args.value)
                return f"Units set to {args.value}"
            case "language":
                self.store.setLanguage(args.value)
                return f"Language set to {args.value.strip().lower()}"
            case "reset":
                self.store.clear()
                self.requestCache.clear()
                self.trackingService.reload()
                return "All stored data removed"
            case _:
                raise ValueError(f"Unknown command: {args.command}")

    async def _runTrackCommand(self, args: argparse.Namespace, units: Optional[str], language: Optional[str]) -> str:
        match args.track_command:
            case "add":
                city = await self.trackingService.addCity(" ".join(args.city), units, language)
                return f"Tracking {formatCity(city)}"
            case "remove":
                city = self.trackingService.removeCity(args.id)
                return f"Removed {city['name']}, {city['country']}"
            case "list":
                cities = self.trackingService.listCities()
                if not cities:
                    return "No tracked cities"
                return "\n".join(formatCity(city) for city in cities)
            case "refresh":
                if args.id is not None:
                    city = await self.trackingService.refreshCity(args.id, units, language)
                    return formatCity(city)
                result = await self.trackingService.refreshAll(self._printProgress, units, language)
                return formatRefreshResult(result)
            case _:
                raise ValueError(f"Unknown track command: {args.track_command}")

    async def run(self, args: argparse.Namespace) -> int:
        """Run command, print its output, return exit code"""
        try:
            print(await self.runCommand(args))
            return 0
        except (WeatherServiceError, GeolocationError, StorageError, ValueError) as e:
            print(f"Error: {e}")
            return 1
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        await self.weatherService.shutdown()
        self.databaseManager.close()


def buildArgumentParser() -> argparse.ArgumentParser:
    """CLI arguments, shared by main.py and tests"""
    parser = argparse.ArgumentParser(description="Weather lookup and multi-city tracking")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--dotenv-file",
        default=".env",
        help="Path to .env file with environment variables (default: .env)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )
    parser.add_argument("-u", "--units", choices=[str(units) for units in Units], help="Unit system for this call")
    parser.add_argument("-l", "--lang", help="Language code for this call (e.g. en, tr)")

    commands = parser.add_subparsers(dest="command")

    current = commands.add_parser("current", help="Current weather for a city")
    current.add_argument("city", nargs="+")

    coords = commands.add_parser("coords", help="Current weather for a coordinate")
    coords.add_argument("lat", type=float)
    coords.add_argument("lon", type=float)

    commands.add_parser("here", help="Current weather for your location")
    commands.add_parser("last", help="Last fetched weather")

    forecast = commands.add_parser("forecast", help="Forecast for a city")
    forecast.add_argument("city", nargs="+")
    forecast.add_argument("--hourly", action="store_true", help="Show every forecast slot instead of one per day")

    track = commands.add_parser("track", help="Manage tracked cities")
    trackCommands = track.add_subparsers(dest="track_command", required=True)
    trackAdd = trackCommands.add_parser("add", help="Start tracking a city")
    trackAdd.add_argument("city", nargs="+")
    trackRemove = trackCommands.add_parser("remove", help="Stop tracking a city")
    trackRemove.add_argument("id", type=int)
    trackCommands.add_parser("list", help="List tracked cities")
    trackRefresh = trackCommands.add_parser("refresh", help="Refresh one or all tracked cities")
    trackRefresh.add_argument("id", type=int, nargs="?")

    unitsCommand = commands.add_parser("units", help="Set preferred unit system")
    unitsCommand.add_argument("value", choices=[str(units) for units in Units])

    languageCommand = commands.add_parser("language", help="Set preferred language")
    languageCommand.add_argument("value")

    commands.add_parser("reset", help="Remove all stored data")

    return parser


def parseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    return buildArgumentParser().parse_args(argv)
