"""
Tracking service models
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List

from internal.database.models import TrackedCityDict


@dataclass(frozen=True)
class RefreshProgress:
    """
    Progress of a batch refresh, (0, 0) when no refresh is running.

    Attributes:
        completed: Entities processed so far (refreshed or failed)
        total: Entities in the run
    """

    completed: int = 0
    total: int = 0

    @property
    def isRunning(self) -> bool:
        return self.total > 0


ProgressCallback = Callable[[RefreshProgress], None]


@dataclass
class RefreshResult:
    """
    Outcome of refreshing all tracked cities.

    Attributes:
        cities: Collection after the refresh
        refreshed: Number of successfully refreshed cities
        failures: City id -> error message for cities that kept their old data
    """

    cities: List[TrackedCityDict] = field(default_factory=list)
    refreshed: int = 0
    failures: Dict[int, str] = field(default_factory=dict)
