"""
Tracking service: the user's list of tracked cities and its refreshes.
"""

import asyncio
import copy
import logging
from typing import List, Optional

import lib.utils as utils
from internal.database.models import TrackedCityDict
from internal.database.state_store import WeatherStateStore
from internal.services.weather import cache_keys
from internal.services.weather.cache_keys import CacheKind
from internal.services.weather.exceptions import (
    CityNotFoundError,
    DuplicateCityError,
    WeatherFetchError,
)
from internal.services.weather.service import WeatherService, describeApiError, validateCityName
from lib.openweathermap import Units, WeatherApiError, WeatherSnapshot

from .batch_refresh import BatchRefreshEngine
from .models import ProgressCallback, RefreshProgress, RefreshResult

logger = logging.getLogger(__name__)


def _sameCity(city: TrackedCityDict, name: str, country: str) -> bool:
    return city["name"].casefold() == name.casefold() and city["country"].casefold() == country.casefold()


class TrackingService:
    """
    Tracked cities: add, remove, list and refresh.

    No two tracked cities share (name, country) case-insensitively. Ids are
    creation timestamps in ms and strictly increase. A refresh never changes
    the set of cities, only their weather and ``last_updated``.

    Example:
        >>> tracking = TrackingService(weatherService, store, BatchRefreshEngine())
        >>> city = await tracking.addCity("Istanbul")
        >>> result = await tracking.refreshAll(onProgress=print)
    """

    def __init__(
        self,
        weatherService: WeatherService,
        store: WeatherStateStore,
        engine: Optional[BatchRefreshEngine] = None,
    ):
        self.weatherService = weatherService
        self.store = store
        self.engine = engine if engine is not None else BatchRefreshEngine()
        self._cities: Optional[List[TrackedCityDict]] = None
        self._refreshTask: Optional[asyncio.Task[RefreshResult]] = None

    @property
    def progress(self) -> RefreshProgress:
        return self.engine.progress

    def _getCities(self) -> List[TrackedCityDict]:
        """Collection, loaded from the store on first use"""
        if self._cities is None:
            self._cities = self.store.loadEntities()
            logger.debug(f"Loaded {len(self._cities)} tracked cities")
        return self._cities

    def _save(self) -> None:
        self.store.saveEntities(self._getCities())

    def _findIndex(self, cityId: int) -> int:
        for index, city in enumerate(self._getCities()):
            if city["id"] == cityId:
                return index
        raise CityNotFoundError(cityId)

    def listCities(self) -> List[TrackedCityDict]:
        return copy.deepcopy(self._getCities())

    def getCity(self, cityId: int) -> TrackedCityDict:
        """
        Raises:
            CityNotFoundError: Unknown id
        """
        return copy.deepcopy(self._getCities()[self._findIndex(cityId)])

    def reload(self) -> None:
        """Drop in-memory collection, next access reads the store"""
        self._cities = None

    async def _fetchCityWeather(
        self, name: str, units: Units, language: str, force: bool
    ) -> WeatherSnapshot:
        try:
            return await self.weatherService.getCityWeather(name, units, language, force=force)
        except WeatherApiError as e:
            message = describeApiError(e, name)
            raise WeatherFetchError(message, name, e) from e

    async def addCity(
        self, name: str, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> TrackedCityDict:
        """
        Start tracking a city.

        Raises:
            WeatherValidationError: Empty name, before any network call
            DuplicateCityError: Resolved (name, country) is tracked already
            WeatherFetchError: City could not be fetched, collection is unchanged
        """
        cityName = validateCityName(name)
        resolvedUnits = self.weatherService.resolveUnits(units)
        resolvedLanguage = self.weatherService.resolveLanguage(language)

        # Pair known from a "name,country" query, no lookup needed
        queryName, _, queryCountry = (part.strip() for part in cityName.partition(","))
        if queryCountry and any(_sameCity(city, queryName, queryCountry) for city in self._getCities()):
            raise DuplicateCityError(queryName, queryCountry)

        weather = await self._fetchCityWeather(cityName, resolvedUnits, resolvedLanguage, force=False)

        # Collection may have changed while fetching
        cities = self._getCities()
        resolvedName = weather["name"] or cityName
        if any(_sameCity(city, resolvedName, weather["country"]) for city in cities):
            raise DuplicateCityError(resolvedName, weather["country"])

        lastId = max((city["id"] for city in cities), default=None)
        newCity: TrackedCityDict = {
            "id": utils.nextMonotonicMs(lastId),
            "name": resolvedName,
            "country": weather["country"],
            "lat": weather["lat"],
            "lon": weather["lon"],
            "last_updated": utils.nowMs(),
            "weather": weather,
        }
        cities.append(newCity)
        self._save()
        logger.info(f"Tracking {resolvedName}, {weather['country']} (id {newCity['id']})")
        return copy.deepcopy(newCity)

    def removeCity(self, cityId: int) -> TrackedCityDict:
        """
        Stop tracking a city and drop its cached weather.

        Raises:
            CityNotFoundError: Unknown id
        """
        cities = self._getCities()
        removed = cities.pop(self._findIndex(cityId))
        self._save()

        requestCache = self.weatherService.requestCache
        requestCache.invalidate(cache_keys.locationPrefix(CacheKind.CURRENT, cache_keys.cityLocation(removed["name"])))
        requestCache.invalidate(
            cache_keys.locationPrefix(CacheKind.CURRENT, cache_keys.coordinateLocation(removed["lat"], removed["lon"]))
        )
        requestCache.invalidate(cache_keys.kindPrefix(CacheKind.FORECAST))

        logger.info(f"Stopped tracking {removed['name']}, {removed['country']} (id {cityId})")
        return removed

    def _applyWeather(self, city: TrackedCityDict, weather: WeatherSnapshot) -> TrackedCityDict:
        updated = copy.deepcopy(city)
        updated["weather"] = weather
        updated["last_updated"] = utils.nextMonotonicMs(city["last_updated"])
        return updated

    async def refreshCity(
        self, cityId: int, units: Optional[Units | str] = None, language: Optional[str] = None
    ) -> TrackedCityDict:
        """
        Refresh one city bypassing cache freshness.

        Raises:
            CityNotFoundError: Unknown id (also if removed while fetching)
            WeatherFetchError: Fetch failed, city keeps its previous data
        """
        city = self._getCities()[self._findIndex(cityId)]
        resolvedUnits = self.weatherService.resolveUnits(units)
        resolvedLanguage = self.weatherService.resolveLanguage(language)

        weather = await self._fetchCityWeather(city["name"], resolvedUnits, resolvedLanguage, force=True)

        index = self._findIndex(cityId)
        cities = self._getCities()
        cities[index] = self._applyWeather(cities[index], weather)
        self._save()
        return copy.deepcopy(cities[index])

    async def refreshAll(
        self,
        onProgress: Optional[ProgressCallback] = None,
        units: Optional[Units | str] = None,
        language: Optional[str] = None,
    ) -> RefreshResult:
        """
        Refresh all tracked cities with the batch engine.

        A call made while a refresh is running joins it instead of starting
        another one (its onProgress is not attached).

        Raises:
            StorageError: If the collection cannot be loaded or saved
        """
        if self._refreshTask is not None and not self._refreshTask.done():
            logger.debug("Refresh already running, joining it")
            return await asyncio.shield(self._refreshTask)

        resolvedUnits = self.weatherService.resolveUnits(units)
        resolvedLanguage = self.weatherService.resolveLanguage(language)
        self._refreshTask = asyncio.ensure_future(self._refreshAll(onProgress, resolvedUnits, resolvedLanguage))
        return await asyncio.shield(self._refreshTask)

    async def _refreshAll(
        self, onProgress: Optional[ProgressCallback], units: Units, language: str
    ) -> RefreshResult:
        snapshot = list(self._getCities())
        applied: set[int] = set()

        async def refreshOne(city: TrackedCityDict) -> TrackedCityDict:
            weather = await self._fetchCityWeather(city["name"], units, language, force=True)
            # Applied as each fetch completes, so a later refreshCity result is kept
            cities = self._getCities()
            index = next((i for i, current in enumerate(cities) if current["id"] == city["id"]), None)
            if index is None:
                logger.debug(f"City {city['id']} was removed during refresh, dropping its result")
                return city
            cities[index] = self._applyWeather(cities[index], weather)
            applied.add(city["id"])
            return cities[index]

        outcome = await self.engine.run(snapshot, refreshOne, onProgress)

        failures = {snapshot[index]["id"]: str(error) for index, error in outcome.errors.items()}
        self._save()

        return RefreshResult(
            cities=copy.deepcopy(self._getCities()),
            refreshed=len(applied),
            failures=failures,
        )
