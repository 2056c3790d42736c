"""
Test utility functions and helpers.

This module provides builders for weather records and an in-memory fake of
the OpenWeatherMap client for testing the services without HTTP.
"""

import asyncio
from typing import Any, Dict, List, Optional, Set, Tuple

from lib.openweathermap import LocationNotFoundError, NetworkError, Units, WeatherApiError

# ============================================================================
# Record builders
# ============================================================================

# name -> (country, lat, lon, base temperature)
KNOWN_CITIES: Dict[str, Tuple[str, float, float, float]] = {
    "istanbul": ("TR", 41.0138, 28.9497, 15.0),
    "ankara": ("TR", 39.9334, 32.8597, 9.0),
    "izmir": ("TR", 38.4237, 27.1428, 20.0),
    "london": ("GB", 51.5085, -0.1257, 11.0),
    "paris": ("FR", 48.8534, 2.3488, 13.0),
    "berlin": ("DE", 52.5244, 13.4105, 8.0),
    "madrid": ("ES", 40.4165, -3.7026, 19.0),
    "rome": ("IT", 41.8947, 12.4839, 18.0),
}


def createSnapshot(
    name: str = "Istanbul",
    country: str = "TR",
    lat: float = 41.0138,
    lon: float = 28.9497,
    temp: float = 15.0,
    units: str = "metric",
    language: str = "en",
    dt: int = 1697644800,
) -> Dict[str, Any]:
    """
    Create a WeatherSnapshot dict with realistic defaults.

    Example:
        snapshot = createSnapshot(name="Ankara", temp=9.0)
    """
    return {
        "name": name,
        "country": country,
        "lat": lat,
        "lon": lon,
        "dt": dt,
        "timezone_offset": 10800,
        "temp": temp,
        "feels_like": temp - 1,
        "temp_min": temp - 2,
        "temp_max": temp + 2,
        "pressure": 1013,
        "humidity": 65,
        "visibility": 10000,
        "wind_speed": 3.5,
        "wind_deg": 180,
        "sunrise": 1697601000,
        "sunset": 1697640600,
        "weather_id": 802,
        "weather_main": "Clouds",
        "weather_description": "scattered clouds",
        "icon": "03d",
        "units": units,
        "language": language,
    }


def createForecast(lat: float, lon: float, units: str = "metric", language: str = "en", slots: int = 4) -> Dict[str, Any]:
    """Create a 3-hour ForecastSeries dict with ``slots`` entries"""
    base = 1697652000
    entries = []
    for i in range(slots):
        entries.append(
            {
                "dt": base + i * 10800,
                "dt_txt": "",
                "temp": 10.0 + i,
                "feels_like": 9.0 + i,
                "temp_min": 9.0 + i,
                "temp_max": 11.0 + i,
                "pressure": 1013,
                "humidity": 60,
                "visibility": 10000,
                "wind_speed": 3.0,
                "wind_deg": 90,
                "pop": 0.1 * i,
                "weather_id": 800,
                "weather_main": "Clear",
                "weather_description": "clear sky",
                "icon": "01d",
            }
        )
    return {
        "name": "",
        "country": "",
        "lat": lat,
        "lon": lon,
        "timezone_offset": 10800,
        "mode": "3hour",
        "units": units,
        "language": language,
        "entries": entries,
    }


# ============================================================================
# Fake gateway
# ============================================================================


class FakeWeatherClient:
    """
    In-memory stand-in for OpenWeatherMapClient.

    Knows the cities from KNOWN_CITIES, unknown names raise
    LocationNotFoundError. Every call is recorded in ``calls``.

    Attributes:
        failingCities: Lower-cased names whose lookups raise NetworkError
        failingForecast: Make getForecast raise NetworkError
        gate: If set, every call waits for it before answering
        temperatureShift: Added to temperatures, to tell refreshed data from old
    """

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self.failingCities: Set[str] = set()
        self.failingForecast = False
        self.gate: Optional[asyncio.Event] = None
        self.temperatureShift = 0.0
        self.inFlight = 0
        self.maxInFlight = 0

    def callsOf(self, method: str) -> List[Any]:
        return [args for name, args in self.calls if name == method]

    async def _enter(self, method: str, args: Any) -> None:
        self.calls.append((method, args))
        self.inFlight += 1
        self.maxInFlight = max(self.maxInFlight, self.inFlight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
        finally:
            self.inFlight -= 1

    async def getCurrentByCity(self, city: str, units: Units | str, language: str) -> Dict[str, Any]:
        await self._enter("getCurrentByCity", (city, str(units), language))
        # "name,country" queries pin the country
        name, _, countryCode = city.partition(",")
        key = name.strip().lower()
        if key in self.failingCities:
            raise NetworkError(f"Network error for {city}")
        if key not in KNOWN_CITIES:
            raise LocationNotFoundError("city not found")
        country, lat, lon, temp = KNOWN_CITIES[key]
        if countryCode.strip():
            country = countryCode.strip().upper()
        return createSnapshot(
            name=name.strip().title(),
            country=country,
            lat=lat,
            lon=lon,
            temp=temp + self.temperatureShift,
            units=str(units),
            language=language,
        )

    async def getCurrentByCoordinates(self, lat: float, lon: float, units: Units | str, language: str) -> Dict[str, Any]:
        await self._enter("getCurrentByCoordinates", (lat, lon, str(units), language))
        for name, (country, cityLat, cityLon, temp) in KNOWN_CITIES.items():
            if abs(cityLat - lat) < 0.01 and abs(cityLon - lon) < 0.01:
                return createSnapshot(name.title(), country, cityLat, cityLon, temp + self.temperatureShift, str(units), language)
        return createSnapshot("Somewhere", "", lat, lon, 0.0 + self.temperatureShift, str(units), language)

    async def getForecast(self, lat: float, lon: float, units: Units | str, language: str) -> Dict[str, Any]:
        await self._enter("getForecast", (lat, lon, str(units), language))
        if self.failingForecast:
            raise WeatherApiError("Forecast failed", 500)
        return createForecast(lat, lon, str(units), language)
