"""
Weather service exceptions

Validation errors are raised before any network call. WeatherFetchError wraps
gateway and geolocation failures with a message naming the location.
"""

from typing import Optional


class WeatherServiceError(Exception):
    """Base exception class for the weather and tracking services

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class WeatherValidationError(WeatherServiceError):
    """Invalid input: empty city name, unknown units, coordinate out of range"""


class DuplicateCityError(WeatherValidationError):
    """City is already tracked"""

    def __init__(self, name: str, country: str = "") -> None:
        location = f"{name}, {country}" if country else name
        super().__init__(f"City is already tracked: {location}")
        self.name = name
        self.country = country


class CityNotFoundError(WeatherServiceError):
    """No tracked city with the given id"""

    def __init__(self, cityId: int) -> None:
        super().__init__(f"Tracked city not found: {cityId}")
        self.cityId = cityId


class WeatherFetchError(WeatherServiceError):
    """Fetching weather for a location failed

    The original exception is available as ``cause`` and ``__cause__``.
    """

    def __init__(self, message: str, location: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.location = location
        self.cause = cause
