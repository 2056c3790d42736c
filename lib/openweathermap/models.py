"""
Data models for OpenWeatherMap API client

This module defines TypedDict records produced by the client. Records are
plain JSON-serializable dicts; they are never mutated after creation, only
replaced by newer ones.
"""

from enum import StrEnum
from typing import List, Optional, TypedDict


class Units(StrEnum):
    """Unit system of returned values"""

    METRIC = "metric"  # Celsius, m/s
    IMPERIAL = "imperial"  # Fahrenheit, mph


class ForecastMode(StrEnum):
    """Forecast granularity"""

    THREE_HOUR = "3hour"  # /data/2.5/forecast, 5 days in 3-hour slots
    DAILY = "daily"  # /data/3.0/onecall, up to 8 days


class WeatherSnapshot(TypedDict):
    """Current conditions for one location at one observation time"""

    # https://openweathermap.org/current#fields_json

    name: str  # Location name as resolved by the API
    country: str  # Country code (e.g., "TR")
    lat: float  # Latitude
    lon: float  # Longitude

    dt: int  # Observation time (Unix timestamp)
    timezone_offset: int  # Shift in seconds from UTC

    temp: float  # Temperature
    feels_like: float  # Feels like temperature
    temp_min: float  # Min temperature at the moment (within the city)
    temp_max: float  # Max temperature at the moment (within the city)

    pressure: int  # Atmospheric pressure (hPa)
    humidity: int  # Humidity percentage
    visibility: int  # Visibility (meters) max 10Km

    wind_speed: float  # Wind speed (m/s or mph depending on units)
    wind_deg: int  # Wind direction (degrees)

    sunrise: int  # Sunrise time (Unix timestamp)
    sunset: int  # Sunset time (Unix timestamp)

    # https://openweathermap.org/weather-conditions#Weather-Condition-Codes-2
    weather_id: int  # Weather condition ID
    weather_main: str  # Weather group (Rain, Snow, Clear, etc.)
    weather_description: str  # Weather description (in requested language)
    icon: str  # Icon identifier (e.g., "10d")

    units: str  # Units the values are in
    language: str  # Language of descriptions


class ForecastEntry(TypedDict):
    """Single forecast period (3-hour slot or whole day)"""

    dt: int  # Period start (Unix timestamp)
    dt_txt: str  # Period start as "YYYY-MM-DD HH:MM:SS" (UTC)

    temp: float  # Temperature (day temperature in daily mode)
    feels_like: float  # Feels like temperature
    temp_min: float  # Min temperature
    temp_max: float  # Max temperature

    pressure: int  # Atmospheric pressure (hPa)
    humidity: int  # Humidity percentage
    visibility: int  # Visibility (meters), 0 if not reported

    wind_speed: float  # Wind speed
    wind_deg: int  # Wind direction (degrees)

    pop: float  # Probability of precipitation (0-1)

    weather_id: int  # Weather condition ID
    weather_main: str  # Weather group
    weather_description: str  # Weather description
    icon: str  # Icon identifier


class ForecastSeries(TypedDict):
    """Ordered (by dt ascending) forecast for one location"""

    name: str  # Location name (empty in daily mode)
    country: str  # Country code (empty in daily mode)
    lat: float  # Latitude
    lon: float  # Longitude
    timezone_offset: int  # Shift in seconds from UTC
    mode: str  # ForecastMode value
    units: str  # Units the values are in
    language: str  # Language of descriptions
    entries: List[ForecastEntry]  # Periods, ascending by dt


class Coordinates(TypedDict):
    """Geographic position"""

    lat: float
    lon: float


class ApiErrorBody(TypedDict, total=False):
    """Error body returned by the API"""

    cod: str | int
    message: Optional[str]
