"""
Durable state of the weather tracker: tracked cities, last seen weather and
unit/language preferences.

Stored data that cannot be parsed is treated as absent. Only a store that
cannot be read or written at all raises StorageError.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import lib.utils as utils
from lib.openweathermap import Units, WeatherSnapshot

from .models import StorageKey, TrackedCityDict
from .wrapper import DatabaseWrapper

logger = logging.getLogger(__name__)

SNAPSHOT_REQUIRED_FIELDS: Dict[str, type | tuple[type, ...]] = {
    "name": str,
    "lat": (int, float),
    "lon": (int, float),
    "dt": int,
    "temp": (int, float),
    "units": str,
}

TRACKED_CITY_REQUIRED_FIELDS: Dict[str, type | tuple[type, ...]] = {
    "id": int,
    "name": str,
    "country": str,
    "lat": (int, float),
    "lon": (int, float),
    "last_updated": int,
}


def _hasRequiredFields(data: Any, requiredFields: Dict[str, type | tuple[type, ...]]) -> bool:
    if not isinstance(data, dict):
        return False
    for field, expectedType in requiredFields.items():
        value = data.get(field)
        # bool is an int subclass, reject it explicitly
        if isinstance(value, bool) or not isinstance(value, expectedType):
            return False
    return True


class WeatherStateStore:
    """
    Key-value adapter over the ``settings`` table.

    Example:
        >>> store = WeatherStateStore(DatabaseWrapper("weather.db"))
        >>> cities = store.loadEntities()
        >>> store.saveEntities(cities)
    """

    def __init__(self, db: DatabaseWrapper):
        self.db = db

    def _loadJson(self, key: str) -> Optional[Any]:
        raw = self.db.getSetting(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored value for '{key}' is not valid JSON, ignoring it: {e}")
            return None

    def _validateDictIsWeatherSnapshot(self, data: Any) -> Optional[WeatherSnapshot]:
        if not _hasRequiredFields(data, SNAPSHOT_REQUIRED_FIELDS):
            logger.warning(f"Stored weather snapshot has wrong shape, ignoring it: {data!r:.200}")
            return None
        return data  # type: ignore[return-value]

    def _validateDictIsTrackedCityDict(self, data: Any) -> Optional[TrackedCityDict]:
        if not _hasRequiredFields(data, TRACKED_CITY_REQUIRED_FIELDS):
            logger.warning(f"Stored tracked city has wrong shape, dropping it: {data!r:.200}")
            return None

        weather = data.get("weather")
        if weather is not None:
            weather = self._validateDictIsWeatherSnapshot(weather)

        return {
            "id": data["id"],
            "name": data["name"],
            "country": data["country"],
            "lat": float(data["lat"]),
            "lon": float(data["lon"]),
            "last_updated": data["last_updated"],
            "weather": weather,
        }

    ###
    # Tracked cities
    ###

    def loadEntities(self) -> List[TrackedCityDict]:
        """
        Load tracked cities in stored order.

        Returns:
            Collection, empty if nothing (valid) is stored
        """
        data = self._loadJson(StorageKey.TRACKED_CITIES)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Stored tracked cities is {type(data).__name__}, not a list, ignoring it")
            return []

        ret: List[TrackedCityDict] = []
        seenIds = set()
        for item in data:
            city = self._validateDictIsTrackedCityDict(item)
            if city is None:
                continue
            if city["id"] in seenIds:
                logger.warning(f"Duplicate tracked city id {city['id']}, dropping it")
                continue
            seenIds.add(city["id"])
            ret.append(city)
        return ret

    def saveEntities(self, collection: List[TrackedCityDict]) -> None:
        """Replace stored collection"""
        self.db.setSetting(StorageKey.TRACKED_CITIES, utils.jsonDumps(list(collection)))
        logger.debug(f"Saved {len(collection)} tracked cities")

    ###
    # Last seen weather
    ###

    def loadLastSnapshot(self) -> Optional[WeatherSnapshot]:
        data = self._loadJson(StorageKey.LAST_WEATHER)
        if data is None:
            return None
        return self._validateDictIsWeatherSnapshot(data)

    def saveLastSnapshot(self, snapshot: Optional[WeatherSnapshot]) -> None:
        """Store snapshot, None removes it"""
        if snapshot is None:
            self.db.unsetSetting(StorageKey.LAST_WEATHER)
            return
        self.db.setSetting(StorageKey.LAST_WEATHER, utils.jsonDumps(snapshot))

    ###
    # Preferences
    ###

    def getUnits(self, default: Units = Units.METRIC) -> Units:
        value = self.db.getSetting(StorageKey.UNITS)
        if value is None:
            return default
        try:
            return Units(value)
        except ValueError:
            logger.warning(f"Stored units '{value}' are invalid, using {default}")
            return default

    def setUnits(self, units: Units | str) -> None:
        self.db.setSetting(StorageKey.UNITS, str(Units(units)))

    def getLanguage(self, default: str = "en") -> str:
        value = self.db.getSetting(StorageKey.LANGUAGE)
        if not value or not value.strip():
            return default
        return value.strip()

    def setLanguage(self, language: str) -> None:
        if not language or not language.strip():
            raise ValueError("Language cannot be empty")
        self.db.setSetting(StorageKey.LANGUAGE, language.strip().lower())

    def clear(self) -> None:
        """Remove all persisted state"""
        for key in StorageKey.ALL:
            self.db.unsetSetting(key)
        logger.info("Cleared persisted weather state")
