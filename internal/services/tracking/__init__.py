"""
Tracking service: tracked cities and their batch refresh
"""

from .batch_refresh import BatchOutcome, BatchRefreshEngine
from .models import ProgressCallback, RefreshProgress, RefreshResult
from .service import TrackingService

__all__ = [
    "BatchOutcome",
    "BatchRefreshEngine",
    "ProgressCallback",
    "RefreshProgress",
    "RefreshResult",
    "TrackingService",
]
