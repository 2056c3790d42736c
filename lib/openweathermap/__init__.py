"""
OpenWeatherMap Async Client Library

This module provides an async client for the OpenWeatherMap API. Current
conditions are available by city name or coordinates, forecasts by
coordinates (3-hour slots or daily).

Example usage:
    from lib.openweathermap import OpenWeatherMapClient, Units

    client = OpenWeatherMapClient(apiKey="your_api_key")

    weather = await client.getCurrentByCity("Moscow", Units.METRIC, "ru")
    print(f"Temperature: {weather['temp']}°C")

    forecast = await client.getForecast(weather["lat"], weather["lon"], Units.METRIC, "ru")
"""

from .client import OpenWeatherMapClient
from .exceptions import (
    AuthenticationError,
    LocationNotFoundError,
    NetworkError,
    RateLimitError,
    ServiceUnavailableError,
    WeatherApiError,
    parseApiError,
)
from .forecast import selectDailyEntries
from .models import Coordinates, ForecastEntry, ForecastMode, ForecastSeries, Units, WeatherSnapshot

__all__ = [
    "OpenWeatherMapClient",
    # Models
    "Units",
    "ForecastMode",
    "WeatherSnapshot",
    "ForecastEntry",
    "ForecastSeries",
    "Coordinates",
    # Exceptions
    "WeatherApiError",
    "AuthenticationError",
    "LocationNotFoundError",
    "RateLimitError",
    "ServiceUnavailableError",
    "NetworkError",
    "parseApiError",
    # Helpers
    "selectDailyEntries",
]
