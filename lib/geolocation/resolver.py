"""
Geolocation resolver: bounded wait and reuse of recent positions.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .exceptions import GeolocationTimeoutError
from .models import Position
from .providers import GeolocationProviderInterface

logger = logging.getLogger(__name__)


class GeolocationResolver:
    """
    Wraps a provider with a timeout and a position cache.

    A position younger than ``maximumAge`` seconds is returned without asking
    the provider again. A provider that does not answer within ``timeout``
    seconds fails with GeolocationTimeoutError.

    Example:
        >>> resolver = GeolocationResolver(IpGeolocationProvider(), timeout=10, maximumAge=300)
        >>> position = await resolver.getCurrentPosition()
    """

    def __init__(
        self,
        provider: GeolocationProviderInterface,
        timeout: float = 10,
        maximumAge: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.timeout = timeout
        self.maximumAge = maximumAge
        self._clock = clock
        self._lastPosition: Optional[Position] = None
        self._lastPositionAt: float = 0.0

    async def getCurrentPosition(self, forceFresh: bool = False) -> Position:
        """
        Get current position.

        Args:
            forceFresh: Ignore the cached position

        Raises:
            GeolocationError: Provider failure, GeolocationTimeoutError on timeout
        """
        if not forceFresh and self._lastPosition is not None:
            age = self._clock() - self._lastPositionAt
            if age <= self.maximumAge:
                logger.debug(f"Reusing cached position ({age:.1f}s old)")
                return dict(self._lastPosition)  # type: ignore[return-value]

        try:
            position = await asyncio.wait_for(self.provider.getPosition(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"Geolocation timed out after {self.timeout}s")
            raise GeolocationTimeoutError() from e

        self._lastPosition = position
        self._lastPositionAt = self._clock()
        logger.debug(f"Resolved position: {position['lat']}, {position['lon']}")
        return dict(position)  # type: ignore[return-value]

    def clearCache(self) -> None:
        """Forget the cached position"""
        self._lastPosition = None
        self._lastPositionAt = 0.0
