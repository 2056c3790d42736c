"""
Batch refresh engine: refresh an ordered collection in fixed-size batches
with a pause between batches.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Generic, List, Optional, TypeVar

from .models import ProgressCallback, RefreshProgress

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatchOutcome(Generic[T]):
    """
    Attributes:
        items: Same length and order as the input, failed items are the originals
        errors: Input index -> exception of failed items
    """

    items: List[T] = field(default_factory=list)
    errors: Dict[int, BaseException] = field(default_factory=dict)


class BatchRefreshEngine:
    """
    Bounded-concurrency, paced refresher.

    Algorithm:
        1. Split the items into consecutive batches of ``batchSize``
        2. Refresh all members of a batch concurrently, each failure is
           captured separately and the original item is kept
        3. After a batch settles, publish progress (processed, total)
        4. Wait ``batchDelay`` seconds before the next batch, not after the last one
        5. Reset progress to (0, 0) when the run ends, successfully or not

    Example:
        >>> engine = BatchRefreshEngine(batchSize=3, batchDelay=0.5)
        >>> outcome = await engine.run(cities, refreshCity, onProgress=print)
    """

    def __init__(
        self,
        batchSize: int = 3,
        batchDelay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            batchSize: Max concurrent refreshes (default: 3)
            batchDelay: Pause between batches in seconds (default: 0.5)
            sleep: Awaitable sleep, replaced in tests
        """
        if batchSize <= 0:
            raise ValueError("batchSize must be positive")
        if batchDelay < 0:
            raise ValueError("batchDelay cannot be negative")

        self.batchSize = batchSize
        self.batchDelay = batchDelay
        self._sleep = sleep
        self._progress = RefreshProgress()

    @property
    def progress(self) -> RefreshProgress:
        return self._progress

    def _publish(self, progress: RefreshProgress, onProgress: Optional[ProgressCallback]) -> None:
        self._progress = progress
        if onProgress is not None:
            try:
                onProgress(progress)
            except Exception as e:
                logger.error(f"Progress callback failed: {e}")

    async def run(
        self,
        items: List[T],
        refreshOne: Callable[[T], Awaitable[T]],
        onProgress: Optional[ProgressCallback] = None,
    ) -> BatchOutcome[T]:
        """
        Refresh all items.

        Args:
            items: Items to refresh, order is preserved
            refreshOne: Returns the refreshed item or raises
            onProgress: Called with each progress update, including the final reset

        Returns:
            BatchOutcome with one entry per input item
        """
        total = len(items)
        outcome = BatchOutcome[T](items=list(items))
        if total == 0:
            return outcome

        batchCount = (total + self.batchSize - 1) // self.batchSize
        logger.info(f"Refreshing {total} items in {batchCount} batches of up to {self.batchSize}")

        try:
            for batchIndex, start in enumerate(range(0, total, self.batchSize)):
                batch = items[start : start + self.batchSize]
                results = await asyncio.gather(*[refreshOne(item) for item in batch], return_exceptions=True)

                for offset, result in enumerate(results):
                    index = start + offset
                    if isinstance(result, BaseException):
                        if isinstance(result, asyncio.CancelledError):
                            raise result
                        outcome.errors[index] = result
                        logger.warning(f"Refresh of item #{index} failed: {result}")
                    else:
                        outcome.items[index] = result

                completed = min(start + self.batchSize, total)
                self._publish(RefreshProgress(completed, total), onProgress)

                if batchIndex < batchCount - 1 and self.batchDelay > 0:
                    await self._sleep(self.batchDelay)
        finally:
            self._publish(RefreshProgress(), onProgress)

        logger.info(f"Refresh finished: {total - len(outcome.errors)} refreshed, {len(outcome.errors)} failed")
        return outcome
