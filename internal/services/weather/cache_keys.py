"""
Request cache keys: ``<kind>:<location>:<units>:<language>``

``<location>`` is the lower-cased city name or ``<lat>,<lon>`` rounded to
4 decimal places.
"""

from enum import StrEnum

import lib.utils as utils
from lib.openweathermap import Units


class CacheKind(StrEnum):
    CURRENT = "current"
    FORECAST = "forecast"


def cityLocation(name: str) -> str:
    return name.strip().lower()


def coordinateLocation(lat: float, lon: float) -> str:
    return f"{utils.roundCoordinate(lat)},{utils.roundCoordinate(lon)}"


def makeKey(kind: CacheKind, location: str, units: Units | str, language: str) -> str:
    return f"{kind}:{location}:{units}:{language.lower()}"


def currentByCityKey(name: str, units: Units | str, language: str) -> str:
    return makeKey(CacheKind.CURRENT, cityLocation(name), units, language)


def currentByCoordinateKey(lat: float, lon: float, units: Units | str, language: str) -> str:
    return makeKey(CacheKind.CURRENT, coordinateLocation(lat, lon), units, language)


def forecastKey(lat: float, lon: float, units: Units | str, language: str) -> str:
    return makeKey(CacheKind.FORECAST, coordinateLocation(lat, lon), units, language)


def locationPrefix(kind: CacheKind, location: str) -> str:
    """Prefix matching every units/language variant of one location"""
    return f"{kind}:{location}:"


def kindPrefix(kind: CacheKind) -> str:
    return f"{kind}:"


def kindOf(key: str) -> CacheKind:
    """
    Operation kind of a generated key.

    Raises:
        ValueError: Unknown kind
    """
    return CacheKind(key.split(":", 1)[0])
