"""
Weather service: request cache and single-location fetch orchestration
"""

from .cache_keys import CacheKind
from .exceptions import (
    CityNotFoundError,
    DuplicateCityError,
    WeatherFetchError,
    WeatherServiceError,
    WeatherValidationError,
)
from .request_cache import DEFAULT_TTLS, RequestCache
from .service import WeatherService

__all__ = [
    "CacheKind",
    "RequestCache",
    "DEFAULT_TTLS",
    "WeatherService",
    "WeatherServiceError",
    "WeatherValidationError",
    "DuplicateCityError",
    "CityNotFoundError",
    "WeatherFetchError",
]
