"""
Geolocation exceptions

Every failure carries a ``reason`` so callers can tell a timeout from a
denied permission or a missing position source.
"""

from enum import StrEnum
from typing import Optional


class GeolocationErrorReason(StrEnum):
    """Cause of a failed position request"""

    PERMISSION_DENIED = "permission-denied"
    POSITION_UNAVAILABLE = "position-unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class GeolocationError(Exception):
    """Base exception class for geolocation failures

    Attributes:
        message: Human-readable error message
        reason: Failure cause
    """

    defaultMessage: str = "Could not determine your location."
    reason: GeolocationErrorReason = GeolocationErrorReason.POSITION_UNAVAILABLE

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.defaultMessage
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} [{self.reason}]"


class PermissionDeniedError(GeolocationError):
    """Location access is disabled"""

    defaultMessage = "Location access was denied. Enable it or search by city name instead."
    reason = GeolocationErrorReason.PERMISSION_DENIED


class PositionUnavailableError(GeolocationError):
    """Position source could not produce a fix"""

    defaultMessage = "Your position is currently unavailable. Try again later or search by city name."
    reason = GeolocationErrorReason.POSITION_UNAVAILABLE


class GeolocationTimeoutError(GeolocationError):
    """Position source did not answer in time"""

    defaultMessage = "Timed out while determining your location. Try again or search by city name."
    reason = GeolocationErrorReason.TIMEOUT


class GeolocationUnsupportedError(GeolocationError):
    """No position source is available"""

    defaultMessage = "Geolocation is not supported here. Search by city name instead."
    reason = GeolocationErrorReason.UNSUPPORTED
