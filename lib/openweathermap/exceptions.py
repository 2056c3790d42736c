"""
OpenWeatherMap API Exceptions

Transient failures (network, rate limit, 5xx) are marked ``retryable`` and
retried by the client, everything else is raised to the caller at once.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class WeatherApiError(Exception):
    """Base exception class for all OpenWeatherMap API errors

    Attributes:
        message: Human-readable error message
        status: HTTP status code (if available)
        response: Parsed error body (if available)
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response
        logger.debug(f"WeatherApiError: {message} (status: {status})")

    def __str__(self) -> str:
        if self.status:
            return f"{self.message} (HTTP {self.status})"
        return self.message


class AuthenticationError(WeatherApiError):
    """Raised when the API key is invalid, blocked or missing"""

    def __init__(
        self,
        message: str = "Invalid API key.",
        status: Optional[int] = 401,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status, response)


class LocationNotFoundError(WeatherApiError):
    """Raised when the API does not know the requested city or coordinate"""

    def __init__(
        self,
        message: str = "Location not found.",
        status: Optional[int] = 404,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status, response)


class RateLimitError(WeatherApiError):
    """Raised when the API rate limit is exceeded"""

    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        status: Optional[int] = 429,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status, response)


class ServiceUnavailableError(WeatherApiError):
    """Raised on 5xx responses"""

    retryable = True

    def __init__(
        self,
        message: str = "Weather service temporarily unavailable.",
        status: Optional[int] = 503,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status, response)


class NetworkError(WeatherApiError):
    """Raised on connection failures, DNS errors and timeouts"""

    retryable = True

    def __init__(
        self,
        message: str = "Network error occurred.",
        status: Optional[int] = None,
        response: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, status, response)


def parseApiError(statusCode: int, responseData: Dict[str, Any]) -> WeatherApiError:
    """Map non-2xx response to the matching exception.

    Args:
        statusCode: HTTP status code
        responseData: Parsed JSON body (``{"cod": "404", "message": "city not found"}``)

    Returns:
        Exception instance, not raised
    """
    errorMessage = str(responseData.get("message") or "Unknown API error")

    if statusCode == 401:
        return AuthenticationError(errorMessage, statusCode, responseData)
    elif statusCode == 404:
        return LocationNotFoundError(errorMessage, statusCode, responseData)
    elif statusCode == 429:
        return RateLimitError(errorMessage, statusCode, responseData)
    elif 500 <= statusCode < 600:
        return ServiceUnavailableError(errorMessage, statusCode, responseData)

    return WeatherApiError(errorMessage, statusCode, responseData)
