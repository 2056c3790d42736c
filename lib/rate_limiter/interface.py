from abc import ABC, abstractmethod
from typing import Any, Dict, List


class RateLimiterInterface(ABC):
    """
    Abstract base class for rate limiter implementations.

    A limiter tracks any number of independent queues, registered on first use.
    """

    @abstractmethod
    async def applyLimit(self, queue: str = "default") -> None:
        """
        Apply rate limiting for the specified queue.

        Blocks (sleeps) if the rate limit has been exceeded, ensuring that
        the caller respects the configured limits.

        Args:
            queue: Name of the queue to apply rate limiting to.
        """
        pass

    @abstractmethod
    def getStats(self, queue: str = "default") -> Dict[str, Any]:
        """
        Get current rate limiting statistics for a queue.

        Raises:
            ValueError: If the queue doesn't exist
        """
        pass

    @abstractmethod
    def listQueues(self) -> List[str]:
        """Get list of all known queues"""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Forget all recorded requests"""
        pass
