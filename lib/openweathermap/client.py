"""
OpenWeatherMap Async Client

This module provides the OpenWeatherMapClient class: current conditions by
city name or coordinates and forecasts by coordinates, with retries for
transient failures and optional rate limiting. Caching is done by callers.
"""

import asyncio
import datetime
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from lib.rate_limiter import RateLimiterInterface

from .exceptions import LocationNotFoundError, NetworkError, WeatherApiError, parseApiError
from .models import ForecastEntry, ForecastMode, ForecastSeries, Units, WeatherSnapshot

logger = logging.getLogger(__name__)


def _firstWeather(item: Dict[str, Any]) -> Dict[str, Any]:
    weatherList = item.get("weather") or [{}]
    return weatherList[0]


def _formatDtTxt(dt: int) -> str:
    return datetime.datetime.fromtimestamp(dt, tz=datetime.timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class OpenWeatherMapClient:
    """
    Async client for OpenWeatherMap API

    Creates a new HTTP session for each request to support proper concurrent requests.

    Example usage:
        client = OpenWeatherMapClient(
            apiKey="your_key",
            maxRetries=2,
            rateLimiter=SlidingWindowRateLimiter(QueueConfig(maxRequests=60, windowSeconds=60)),
        )

        weather = await client.getCurrentByCity("Istanbul", Units.METRIC, "tr")
        forecast = await client.getForecast(weather["lat"], weather["lon"], Units.METRIC, "tr")
    """

    API_BASE_URL = "https://api.openweathermap.org/data/2.5"
    ONECALL_API = "https://api.openweathermap.org/data/3.0/onecall"

    def __init__(
        self,
        apiKey: str,
        *,
        baseUrl: str = API_BASE_URL,
        onecallUrl: str = ONECALL_API,
        requestTimeout: float = 10,
        maxRetries: int = 2,
        retryBackoffFactor: float = 0.5,
        maxBackoff: float = 8.0,
        forecastMode: ForecastMode = ForecastMode.THREE_HOUR,
        rateLimiter: Optional[RateLimiterInterface] = None,
        rateLimiterQueue: str = "openweathermap",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize OpenWeatherMap client

        Args:
            apiKey: OpenWeatherMap API key, sent as ``appid`` query parameter
            baseUrl: Base URL of the 2.5 API (``/weather``, ``/forecast``)
            onecallUrl: One Call 3.0 endpoint, used for daily forecasts
            requestTimeout: HTTP request timeout (seconds)
            maxRetries: Retries of transient failures (total attempts = maxRetries + 1)
            retryBackoffFactor: First retry delay, doubled on each next attempt
            maxBackoff: Ceiling for a single retry delay (seconds)
            forecastMode: 3-hour slots or daily forecast
            rateLimiter: Optional limiter applied before every HTTP attempt
            rateLimiterQueue: Queue name used with rateLimiter
            transport: Optional httpx transport (tests, proxies)
        """
        if not apiKey or not apiKey.strip():
            raise ValueError("OpenWeatherMap API key cannot be empty")

        self.apiKey = apiKey.strip()
        self.baseUrl = baseUrl.rstrip("/")
        self.onecallUrl = onecallUrl
        self.requestTimeout = requestTimeout
        self.maxRetries = maxRetries
        self.retryBackoffFactor = retryBackoffFactor
        self.maxBackoff = maxBackoff
        self.forecastMode = ForecastMode(forecastMode)
        self.rateLimiter = rateLimiter
        self.rateLimiterQueue = rateLimiterQueue
        self._transport = transport
        self._sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def getCurrentByCity(self, city: str, units: Units | str, language: str) -> WeatherSnapshot:
        """
        Get current weather by city name

        Uses: {baseUrl}/weather?q=<city>

        Raises:
            LocationNotFoundError: If the city is unknown
            WeatherApiError: On any other failure (after retries for transient ones)
        """
        params = {"q": city.strip(), "units": str(units), "lang": language}
        data = await self._makeRequest(f"{self.baseUrl}/weather", params)
        return self._parseCurrent(data, units, language)

    async def getCurrentByCoordinates(
        self, lat: float, lon: float, units: Units | str, language: str
    ) -> WeatherSnapshot:
        """
        Get current weather by coordinates

        Uses: {baseUrl}/weather?lat=<lat>&lon=<lon>
        """
        params = {"lat": lat, "lon": lon, "units": str(units), "lang": language}
        data = await self._makeRequest(f"{self.baseUrl}/weather", params)
        return self._parseCurrent(data, units, language)

    async def getForecast(self, lat: float, lon: float, units: Units | str, language: str) -> ForecastSeries:
        """
        Get forecast by coordinates

        Uses: {baseUrl}/forecast (3-hour mode) or One Call 3.0 daily data (daily mode)

        Returns:
            ForecastSeries with entries sorted by dt ascending
        """
        params: Dict[str, Any] = {"lat": lat, "lon": lon, "units": str(units), "lang": language}
        if self.forecastMode == ForecastMode.DAILY:
            params["exclude"] = "current,minutely,hourly,alerts"
            data = await self._makeRequest(self.onecallUrl, params)
            return self._parseDailyForecast(data, lat, lon, units, language)

        data = await self._makeRequest(f"{self.baseUrl}/forecast", params)
        return self._parseThreeHourForecast(data, lat, lon, units, language)

    def _parseCurrent(self, data: Dict[str, Any], units: Units | str, language: str) -> WeatherSnapshot:
        coord = data.get("coord", {})
        main = data.get("main", {})
        wind = data.get("wind", {})
        sys = data.get("sys", {})
        weatherInfo = _firstWeather(data)

        return {
            "name": data.get("name", ""),
            "country": sys.get("country", ""),
            "lat": float(coord.get("lat", 0)),
            "lon": float(coord.get("lon", 0)),
            "dt": int(data.get("dt", 0)),
            "timezone_offset": int(data.get("timezone", 0)),
            "temp": float(main.get("temp", 0)),
            "feels_like": float(main.get("feels_like", 0)),
            "temp_min": float(main.get("temp_min", 0)),
            "temp_max": float(main.get("temp_max", 0)),
            "pressure": int(main.get("pressure", 0)),
            "humidity": int(main.get("humidity", 0)),
            "visibility": int(data.get("visibility", 0)),
            "wind_speed": float(wind.get("speed", 0)),
            "wind_deg": int(wind.get("deg", 0)),
            "sunrise": int(sys.get("sunrise", 0)),
            "sunset": int(sys.get("sunset", 0)),
            "weather_id": int(weatherInfo.get("id", 0)),
            "weather_main": weatherInfo.get("main", ""),
            "weather_description": weatherInfo.get("description", ""),
            "icon": weatherInfo.get("icon", ""),
            "units": str(units),
            "language": language,
        }

    def _parseThreeHourForecast(
        self, data: Dict[str, Any], lat: float, lon: float, units: Units | str, language: str
    ) -> ForecastSeries:
        city = data.get("city", {})
        coord = city.get("coord", {})
        entries: List[ForecastEntry] = []
        for item in data.get("list", []):
            main = item.get("main", {})
            wind = item.get("wind", {})
            weatherInfo = _firstWeather(item)
            dt = int(item.get("dt", 0))
            entries.append(
                {
                    "dt": dt,
                    "dt_txt": item.get("dt_txt") or _formatDtTxt(dt),
                    "temp": float(main.get("temp", 0)),
                    "feels_like": float(main.get("feels_like", 0)),
                    "temp_min": float(main.get("temp_min", 0)),
                    "temp_max": float(main.get("temp_max", 0)),
                    "pressure": int(main.get("pressure", 0)),
                    "humidity": int(main.get("humidity", 0)),
                    "visibility": int(item.get("visibility", 0)),
                    "wind_speed": float(wind.get("speed", 0)),
                    "wind_deg": int(wind.get("deg", 0)),
                    "pop": float(item.get("pop", 0)),
                    "weather_id": int(weatherInfo.get("id", 0)),
                    "weather_main": weatherInfo.get("main", ""),
                    "weather_description": weatherInfo.get("description", ""),
                    "icon": weatherInfo.get("icon", ""),
                }
            )
        entries.sort(key=lambda entry: entry["dt"])

        return {
            "name": city.get("name", ""),
            "country": city.get("country", ""),
            "lat": float(coord.get("lat", lat)),
            "lon": float(coord.get("lon", lon)),
            "timezone_offset": int(city.get("timezone", 0)),
            "mode": str(ForecastMode.THREE_HOUR),
            "units": str(units),
            "language": language,
            "entries": entries,
        }

    def _parseDailyForecast(
        self, data: Dict[str, Any], lat: float, lon: float, units: Units | str, language: str
    ) -> ForecastSeries:
        entries: List[ForecastEntry] = []
        for dailyItem in data.get("daily", [])[:8]:  # Max 8 days
            tempData = dailyItem.get("temp", {})
            feelsLikeData = dailyItem.get("feels_like", {})
            weatherInfo = _firstWeather(dailyItem)
            dt = int(dailyItem.get("dt", 0))
            entries.append(
                {
                    "dt": dt,
                    "dt_txt": _formatDtTxt(dt),
                    "temp": float(tempData.get("day", 0)),
                    "feels_like": float(feelsLikeData.get("day", 0)),
                    "temp_min": float(tempData.get("min", 0)),
                    "temp_max": float(tempData.get("max", 0)),
                    "pressure": int(dailyItem.get("pressure", 0)),
                    "humidity": int(dailyItem.get("humidity", 0)),
                    "visibility": int(dailyItem.get("visibility", 0)),
                    "wind_speed": float(dailyItem.get("wind_speed", 0)),
                    "wind_deg": int(dailyItem.get("wind_deg", 0)),
                    "pop": float(dailyItem.get("pop", 0)),
                    "weather_id": int(weatherInfo.get("id", 0)),
                    "weather_main": weatherInfo.get("main", ""),
                    "weather_description": weatherInfo.get("description", ""),
                    "icon": weatherInfo.get("icon", ""),
                }
            )
        entries.sort(key=lambda entry: entry["dt"])

        return {
            "name": "",
            "country": "",
            "lat": float(data.get("lat", lat)),
            "lon": float(data.get("lon", lon)),
            "timezone_offset": int(data.get("timezone_offset", 0)),
            "mode": str(ForecastMode.DAILY),
            "units": str(units),
            "language": language,
            "entries": entries,
        }

    def _getBackoffDelay(self, attempt: int) -> float:
        """Exponential backoff capped by maxBackoff"""
        return min(self.retryBackoffFactor * (2**attempt), self.maxBackoff)

    async def _makeRequest(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make HTTP GET request to OpenWeatherMap API with retries

        Creates a new session for each request to support proper concurrent requests.

        Args:
            url: API endpoint URL
            params: Query parameters (api key will be added automatically)

        Returns:
            Parsed JSON response

        Raises:
            WeatherApiError: Non-retryable error at once, last error once retries are exhausted
        """
        requestParams = dict(params)
        requestParams["appid"] = self.apiKey

        lastException: Optional[WeatherApiError] = None
        for attempt in range(self.maxRetries + 1):
            try:
                if self.rateLimiter is not None:
                    await self.rateLimiter.applyLimit(self.rateLimiterQueue)

                logger.debug(f"Making request to {url} with params: {params}")
                async with httpx.AsyncClient(timeout=self.requestTimeout, transport=self._transport) as session:
                    response = await session.get(url, params=requestParams)

                if response.status_code == 200:
                    data = response.json()
                    if not isinstance(data, dict):
                        raise WeatherApiError(f"Unexpected response type: {type(data).__name__}", 200)
                    logger.debug(f"API request successful: {response.status_code}")
                    return data

                try:
                    errorData = response.json()
                    if not isinstance(errorData, dict):
                        errorData = {"message": str(errorData)}
                except ValueError:
                    errorData = {"message": response.text or response.reason_phrase}
                raise parseApiError(response.status_code, errorData)

            except WeatherApiError as e:
                if not e.retryable:
                    if isinstance(e, LocationNotFoundError):
                        logger.info(f"Location not found: {params}")
                    else:
                        logger.error(f"API request failed: {e}")
                    raise
                lastException = e
            except httpx.TimeoutException as e:
                lastException = NetworkError(f"Request timeout: {type(e).__name__}")
            except httpx.RequestError as e:
                lastException = NetworkError(f"Network error: {type(e).__name__}#{e}")
            except json.JSONDecodeError as e:
                raise WeatherApiError(f"Failed to parse JSON response: {e}") from e

            logger.warning(f"Request to {url} failed on attempt {attempt + 1}: {lastException}")
            if attempt < self.maxRetries:
                delay = self._getBackoffDelay(attempt)
                logger.debug(f"Retrying in {delay} seconds...")
                await self._sleep(delay)

        logger.error(f"Request to {url} failed after {self.maxRetries + 1} attempts")
        raise lastException or WeatherApiError("Request failed after all retries")
