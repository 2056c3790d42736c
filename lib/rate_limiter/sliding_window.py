import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from .interface import RateLimiterInterface

logger = logging.getLogger(__name__)


@dataclass
class QueueConfig:
    """
    Configuration for rate limiting.

    Attributes:
        maxRequests: Maximum requests allowed within the time window
        windowSeconds: Time window duration in seconds
    """

    maxRequests: int
    windowSeconds: float

    def __post_init__(self):
        if self.maxRequests <= 0:
            raise ValueError("maxRequests must be positive")
        if self.windowSeconds <= 0:
            raise ValueError("windowSeconds must be positive")


class SlidingWindowRateLimiter(RateLimiterInterface):
    """
    Sliding window rate limiter.

    All queues managed by one instance share the same configuration.

    Algorithm:
        1. Remove timestamps outside the current time window
        2. Check if remaining requests exceed the limit
        3. If limit exceeded, calculate wait time and sleep
        4. Add current request timestamp

    Uses asyncio.Lock per queue, so concurrent callers of one queue are
    serialized while waiting.

    Example:
        >>> limiter = SlidingWindowRateLimiter(QueueConfig(maxRequests=60, windowSeconds=60))
        >>> await limiter.applyLimit("openweathermap")
    """

    def __init__(
        self,
        config: QueueConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            config: Rate limit configuration to apply to all queues
            clock: Time source in seconds
            sleep: Awaitable sleep used while waiting for the window to slide
        """
        self._config = config
        self._clock = clock
        self._sleep = sleep
        self._requestTimes: Dict[str, List[float]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def config(self) -> QueueConfig:
        return self._config

    def _ensureQueue(self, queue: str) -> None:
        if queue not in self._requestTimes:
            self._requestTimes[queue] = []
            self._locks[queue] = asyncio.Lock()
            logger.debug(f"Auto-registered queue '{queue}'")

    def _pruneQueue(self, queue: str, currentTime: float) -> List[float]:
        self._requestTimes[queue] = [
            reqTime for reqTime in self._requestTimes[queue] if currentTime - reqTime < self._config.windowSeconds
        ]
        return self._requestTimes[queue]

    async def applyLimit(self, queue: str = "default") -> None:
        self._ensureQueue(queue)

        async with self._locks[queue]:
            currentTime = self._clock()
            recent = self._pruneQueue(queue, currentTime)

            if len(recent) >= self._config.maxRequests:
                waitTime = self._config.windowSeconds - (currentTime - min(recent))
                if waitTime > 0:
                    logger.debug(f"Rate limit reached for queue '{queue}', waiting {waitTime:.2f} seconds")
                    await self._sleep(waitTime)
                    currentTime = self._clock()
                    self._pruneQueue(queue, currentTime)

            self._requestTimes[queue].append(currentTime)

    def getStats(self, queue: str = "default") -> Dict[str, Any]:
        """
        Returns:
            Dictionary containing:
            - requestsInWindow: Current requests in the time window
            - maxRequests: Maximum allowed requests per window
            - windowSeconds: Time window duration in seconds
            - utilizationPercent: Percentage of limit used (0-100)
        """
        if queue not in self._requestTimes:
            raise ValueError(f"Queue '{queue}' does not exist")

        currentTime = self._clock()
        recentRequests = [
            reqTime for reqTime in self._requestTimes[queue] if currentTime - reqTime < self._config.windowSeconds
        ]

        return {
            "requestsInWindow": len(recentRequests),
            "maxRequests": self._config.maxRequests,
            "windowSeconds": self._config.windowSeconds,
            "utilizationPercent": (len(recentRequests) / self._config.maxRequests) * 100,
        }

    def listQueues(self) -> List[str]:
        return list(self._requestTimes.keys())

    def reset(self) -> None:
        self._requestTimes.clear()
        self._locks.clear()
        logger.debug("SlidingWindowRateLimiter reset")
