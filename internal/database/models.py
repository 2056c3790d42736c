"""
Persisted models of the weather tracker
"""

from typing import Optional, TypedDict

from lib.openweathermap import WeatherSnapshot


class TrackedCityDict(TypedDict):
    # Creation time in ms, strictly increasing within a collection
    id: int
    name: str
    country: str
    lat: float
    lon: float
    # Last successful refresh time in ms
    last_updated: int
    # None until the first successful fetch
    weather: Optional[WeatherSnapshot]


class StorageKey:
    """Keys in the settings table"""

    TRACKED_CITIES = "tracked-cities"
    LAST_WEATHER = "last-weather"
    UNITS = "units"
    LANGUAGE = "language"

    ALL = (TRACKED_CITIES, LAST_WEATHER, UNITS, LANGUAGE)
