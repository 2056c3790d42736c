"""
Geolocation Library

Position sources (static, IP-based, none) and a resolver adding a timeout
and a ``maximumAge`` position cache.

Example:
    >>> from lib.geolocation import GeolocationResolver, createGeolocationProvider
    >>>
    >>> resolver = GeolocationResolver(createGeolocationProvider({"provider": "ip"}))
    >>> position = await resolver.getCurrentPosition()
"""

from .exceptions import (
    GeolocationError,
    GeolocationErrorReason,
    GeolocationTimeoutError,
    GeolocationUnsupportedError,
    PermissionDeniedError,
    PositionUnavailableError,
)
from .models import Position
from .providers import (
    GeolocationProviderInterface,
    IpGeolocationProvider,
    NullGeolocationProvider,
    StaticGeolocationProvider,
    createGeolocationProvider,
)
from .resolver import GeolocationResolver

__all__ = [
    "Position",
    "GeolocationResolver",
    # Providers
    "GeolocationProviderInterface",
    "StaticGeolocationProvider",
    "IpGeolocationProvider",
    "NullGeolocationProvider",
    "createGeolocationProvider",
    # Exceptions
    "GeolocationError",
    "GeolocationErrorReason",
    "PermissionDeniedError",
    "PositionUnavailableError",
    "GeolocationTimeoutError",
    "GeolocationUnsupportedError",
]
