"""
Position providers

A provider answers "where am I" once, without caching or timeouts, those are
handled by GeolocationResolver.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from .exceptions import (
    GeolocationTimeoutError,
    GeolocationUnsupportedError,
    PermissionDeniedError,
    PositionUnavailableError,
)
from .models import Position

logger = logging.getLogger(__name__)


class GeolocationProviderInterface(ABC):
    """Host-environment position source"""

    @abstractmethod
    async def getPosition(self) -> Position:
        """
        Request the current position.

        Raises:
            GeolocationError: With the matching reason
        """
        pass


class StaticGeolocationProvider(GeolocationProviderInterface):
    """Position from configuration, ``enabled=False`` behaves as a denied permission"""

    def __init__(self, lat: Optional[float], lon: Optional[float], enabled: bool = True):
        self.lat = lat
        self.lon = lon
        self.enabled = enabled

    async def getPosition(self) -> Position:
        if not self.enabled:
            raise PermissionDeniedError()
        if self.lat is None or self.lon is None:
            raise PositionUnavailableError("No position configured. Set lat and lon or search by city name.")
        return {"lat": float(self.lat), "lon": float(self.lon)}


class IpGeolocationProvider(GeolocationProviderInterface):
    """Approximate position by public IP address (ip-api.com JSON API)"""

    API_URL = "http://ip-api.com/json/"

    def __init__(
        self,
        url: str = API_URL,
        requestTimeout: float = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.requestTimeout = requestTimeout
        self._transport = transport

    async def getPosition(self) -> Position:
        try:
            async with httpx.AsyncClient(timeout=self.requestTimeout, transport=self._transport) as session:
                response = await session.get(self.url, params={"fields": "status,message,lat,lon,city"})
        except httpx.TimeoutException as e:
            logger.warning(f"IP geolocation request timed out after {self.requestTimeout}s")
            raise GeolocationTimeoutError() from e
        except httpx.RequestError as e:
            logger.warning(f"IP geolocation request failed: {type(e).__name__}#{e}")
            raise PositionUnavailableError() from e

        if response.status_code != 200:
            logger.warning(f"IP geolocation returned HTTP {response.status_code}")
            raise PositionUnavailableError()

        try:
            data: Dict[str, Any] = response.json()
        except ValueError as e:
            logger.warning(f"IP geolocation returned invalid JSON: {e}")
            raise PositionUnavailableError() from e

        if data.get("status") != "success" or "lat" not in data or "lon" not in data:
            logger.warning(f"IP geolocation failed: {data.get('message', 'unknown error')}")
            raise PositionUnavailableError()

        logger.debug(f"IP geolocation resolved to {data.get('city', '?')} ({data['lat']}, {data['lon']})")
        return {"lat": float(data["lat"]), "lon": float(data["lon"])}


class NullGeolocationProvider(GeolocationProviderInterface):
    """No position source at all"""

    async def getPosition(self) -> Position:
        raise GeolocationUnsupportedError()


def createGeolocationProvider(config: Dict[str, Any]) -> GeolocationProviderInterface:
    """
    Build provider from the ``[geolocation]`` config section.

    Args:
        config: Section dict, ``provider`` is one of ``static``, ``ip``, ``none``.
            The ``ip`` provider takes ``url`` and ``request-timeout`` (default:
            ``timeout`` plus 5 seconds)

    Returns:
        Provider instance
    """
    providerType = str(config.get("provider", "none")).lower()
    match providerType:
        case "static":
            return StaticGeolocationProvider(
                lat=config.get("lat"),
                lon=config.get("lon"),
                enabled=bool(config.get("enabled", True)),
            )
        case "ip":
            return IpGeolocationProvider(
                url=config.get("url", IpGeolocationProvider.API_URL),
                # HTTP timeout sits above the resolver one unless set explicitly
                requestTimeout=float(config.get("request-timeout", float(config.get("timeout", 10)) + 5)),
            )
        case "none":
            return NullGeolocationProvider()
        case _:
            raise ValueError(f"Unknown geolocation provider: {providerType}")
