"""
Weather service: single-location fetches over the request cache, the
"active" weather state and last-snapshot persistence.
"""

import asyncio
import logging
from typing import Any, Awaitable, MutableSet, Optional, Tuple, TypeVar

from internal.database.state_store import WeatherStateStore
from lib.geolocation import GeolocationError, GeolocationResolver, GeolocationUnsupportedError, Position
from lib.openweathermap import (
    ForecastSeries,
    LocationNotFoundError,
    OpenWeatherMapClient,
    Units,
    WeatherApiError,
    WeatherSnapshot,
)

from . import cache_keys
from .exceptions import WeatherFetchError, WeatherValidationError
from .request_cache import RequestCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


def validateCityName(name: Any) -> str:
    """
    Raises:
        WeatherValidationError: If name is not a non-empty string
    """
    if not isinstance(name, str) or not name.strip():
        raise WeatherValidationError("City name cannot be empty")
    return name.strip()


def validateCoordinate(lat: Any, lon: Any) -> Tuple[float, float]:
    """
    Raises:
        WeatherValidationError: If lat is not in [-90, 90] or lon is not in [-180, 180]
    """
    try:
        latValue = float(lat)
        lonValue = float(lon)
    except (TypeError, ValueError):
        raise WeatherValidationError(f"Invalid coordinate: {lat}, {lon}")

    if not -90 <= latValue <= 90:
        raise WeatherValidationError(f"Latitude must be between -90 and 90, got {latValue}")
    if not -180 <= lonValue <= 180:
        raise WeatherValidationError(f"Longitude must be between -180 and 180, got {lonValue}")
    return latValue, lonValue


def validateUnits(units: Any) -> Units:
    try:
        return Units(str(units).lower())
    except ValueError:
        raise WeatherValidationError(f"Units must be one of: {', '.join(Units)}; got {units}")


def describeApiError(error: WeatherApiError, location: str) -> str:
    """User facing message for a gateway failure"""
    if isinstance(error, LocationNotFoundError):
        return f"Location not found: {location}"
    return f"Failed to fetch weather for {location}: {error}"


class WeatherService:
    """
    Fetch orchestrator for single locations.

    State:
        activeWeather: Last successfully fetched current weather (or restored snapshot)
        activeForecast: Last successfully fetched forecast
        isLoading: True while any single fetch is in flight
        lastError: Message of the last failed fetch, cleared when a fetch starts

    Example:
        >>> service = WeatherService(client, RequestCache(), store, geolocation)
        >>> weather = await service.fetchByCity("Istanbul")
        >>> forecast = await service.fetchForecast(weather["lat"], weather["lon"])
    """

    def __init__(
        self,
        client: OpenWeatherMapClient,
        requestCache: RequestCache,
        store: WeatherStateStore,
        geolocation: Optional[GeolocationResolver] = None,
        *,
        defaultUnits: Units | str = Units.METRIC,
        defaultLanguage: str = "en",
        prewarmForecast: bool = True,
    ):
        self.client = client
        self.requestCache = requestCache
        self.store = store
        self.geolocation = geolocation
        self.defaultUnits = validateUnits(defaultUnits)
        self.defaultLanguage = defaultLanguage
        self.prewarmForecast = prewarmForecast

        self.activeWeather: Optional[WeatherSnapshot] = None
        self.activeForecast: Optional[ForecastSeries] = None
        self.lastError: Optional[str] = None
        self._loadingCount = 0
        self.backgroundTasks: MutableSet[asyncio.Task] = set[asyncio.Task]()

    @property
    def isLoading(self) -> bool:
        return self._loadingCount > 0

    ###
    # Preferences
    ###

    def resolveUnits(self, units: Optional[Units | str] = None) -> Units:
        """Passed units, else stored preference, else configured default"""
        if units is not None:
            return validateUnits(units)
        return self.store.getUnits(default=self.defaultUnits)

    def resolveLanguage(self, language: Optional[str] = None) -> str:
        if language is not None:
            if not language.strip():
                raise WeatherValidationError("Language cannot be empty")
            return language.strip().lower()
        return self.store.getLanguage(default=self.defaultLanguage)

    ###
    # Cached gateway calls, no state changes
    ###

    async def getCityWeather(
        self, name: str, units: Units | str, language: str, force: bool = False
    ) -> WeatherSnapshot:
        """Current weather by city name via the request cache"""
        city = validateCityName(name)
        key = cache_keys.currentByCityKey(city, units, language)
        return await self.requestCache.fetch(
            key, lambda: self.client.getCurrentByCity(city, units, language), force=force
        )

    async def getCoordinateWeather(
        self, lat: float, lon: float, units: Units | str, language: str, force: bool = False
    ) -> WeatherSnapshot:
        """Current weather by coordinate via the request cache"""
        latValue, lonValue = validateCoordinate(lat, lon)
        key = cache_keys.currentByCoordinateKey(latValue, lonValue, units, language)
        return await self.requestCache.fetch(
            key, lambda: self.client.getCurrentByCoordinates(latValue, lonValue, units, language), force=force
        )

    async def getForecast(
        self, lat: float, lon: float, units: Units | str, language: str, force: bool = False
    ) -> ForecastSeries:
        """Forecast by coordinate via the request cache"""
        latValue, lonValue = validateCoordinate(lat, lon)
        key = cache_keys.forecastKey(latValue, lonValue, units, language)
        return await self.requestCache.fetch(
            key, lambda: self.client.getForecast(latValue, lonValue, units, language), force=force
        )

    ###
    # Single fetches updating the active state
    ###

    async def fetchByCity(
        self, name: str, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> WeatherSnapshot:
        """
        Fetch current weather by city name and make it active.

        Raises:
            WeatherValidationError: Empty name or bad units, before any network call
            WeatherFetchError: Gateway failure, state is left untouched
        """
        city = validateCityName(name)
        resolvedUnits = self.resolveUnits(units)
        resolvedLanguage = self.resolveLanguage(language)

        weather = await self._runFetch(city, self.getCityWeather(city, resolvedUnits, resolvedLanguage))
        self._activate(weather, resolvedUnits, resolvedLanguage)
        return weather

    async def fetchByCoordinate(
        self, lat: float, lon: float, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> WeatherSnapshot:
        """
        Fetch current weather by coordinate and make it active.

        Raises:
            WeatherValidationError: Coordinate out of range or bad units
            WeatherFetchError: Gateway failure, state is left untouched
        """
        latValue, lonValue = validateCoordinate(lat, lon)
        resolvedUnits = self.resolveUnits(units)
        resolvedLanguage = self.resolveLanguage(language)

        location = f"{latValue}, {lonValue}"
        weather = await self._runFetch(
            location, self.getCoordinateWeather(latValue, lonValue, resolvedUnits, resolvedLanguage)
        )
        self._activate(weather, resolvedUnits, resolvedLanguage)
        return weather

    async def fetchForecast(
        self, lat: float, lon: float, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> ForecastSeries:
        """Fetch forecast by coordinate and make it the active forecast"""
        latValue, lonValue = validateCoordinate(lat, lon)
        resolvedUnits = self.resolveUnits(units)
        resolvedLanguage = self.resolveLanguage(language)

        forecast = await self._runFetch(
            f"{latValue}, {lonValue}", self.getForecast(latValue, lonValue, resolvedUnits, resolvedLanguage)
        )
        self.activeForecast = forecast
        return forecast

    async def resolveCurrentLocation(self, forceFresh: bool = False) -> Position:
        """
        Ask the geolocation provider for the current position.

        Raises:
            GeolocationError: With the failure reason (permission, unavailable, timeout, unsupported)
        """
        if self.geolocation is None:
            raise GeolocationUnsupportedError()
        return await self.geolocation.getCurrentPosition(forceFresh=forceFresh)

    async def fetchCurrentLocation(
        self, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> WeatherSnapshot:
        """Resolve current position and fetch its weather"""
        self.lastError = None
        try:
            position = await self.resolveCurrentLocation()
        except GeolocationError as e:
            self.lastError = e.message
            raise
        return await self.fetchByCoordinate(position["lat"], position["lon"], units, language)

    async def _runFetch(self, location: str, fetch: Awaitable[T]) -> T:
        """Await fetch coroutine maintaining isLoading and lastError"""
        self.lastError = None
        self._loadingCount += 1
        try:
            return await fetch
        except WeatherApiError as e:
            message = describeApiError(e, location)
            self.lastError = message
            logger.warning(message)
            raise WeatherFetchError(message, location, e) from e
        finally:
            self._loadingCount -= 1

    def _activate(self, weather: WeatherSnapshot, units: Units, language: str) -> None:
        if self.activeWeather is None or (weather["lat"], weather["lon"]) != (
            self.activeWeather["lat"],
            self.activeWeather["lon"],
        ):
            self.activeForecast = None
        self.activeWeather = weather
        self.store.saveLastSnapshot(weather)

        if self.prewarmForecast:
            self._startPrewarm(weather["lat"], weather["lon"], units, language)

    ###
    # Forecast prewarm
    ###

    def _startPrewarm(self, lat: float, lon: float, units: Units, language: str) -> None:
        task = asyncio.create_task(self._prewarm(lat, lon, units, language))
        self.backgroundTasks.add(task)
        task.add_done_callback(self.backgroundTasks.discard)

    async def _prewarm(self, lat: float, lon: float, units: Units, language: str) -> None:
        try:
            await self.getForecast(lat, lon, units, language)
            logger.debug(f"Prewarmed forecast for {lat}, {lon}")
        except (WeatherApiError, WeatherValidationError) as e:
            logger.warning(f"Forecast prewarm for {lat}, {lon} failed: {e}")

    async def waitBackgroundTasks(self) -> None:
        """Wait for outstanding prewarm tasks"""
        if self.backgroundTasks:
            await asyncio.gather(*list(self.backgroundTasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding prewarm tasks"""
        tasks = list(self.backgroundTasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug(f"Weather service stopped, cancelled {len(tasks)} background tasks")

    ###
    # Persistence
    ###

    def restoreLastSnapshot(self) -> Optional[WeatherSnapshot]:
        """Make the stored last snapshot active, unless something is active already"""
        if self.activeWeather is not None:
            return self.activeWeather
        snapshot = self.store.loadLastSnapshot()
        if snapshot is not None:
            self.activeWeather = snapshot
            logger.debug(f"Restored last weather snapshot for {snapshot['name']}")
        return snapshot
