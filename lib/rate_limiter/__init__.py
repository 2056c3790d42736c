"""
Rate Limiter Library

Sliding-window request limiting for upstream API clients. Each limiter
tracks any number of independent queues sharing one configuration.

Example:
    >>> from lib.rate_limiter import QueueConfig, SlidingWindowRateLimiter
    >>>
    >>> limiter = SlidingWindowRateLimiter(QueueConfig(maxRequests=60, windowSeconds=60))
    >>> await limiter.applyLimit("openweathermap")
"""

from .interface import RateLimiterInterface
from .sliding_window import QueueConfig, SlidingWindowRateLimiter

__all__ = [
    "RateLimiterInterface",
    "SlidingWindowRateLimiter",
    "QueueConfig",
]
