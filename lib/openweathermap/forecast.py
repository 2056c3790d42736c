"""
Forecast helpers
"""

import datetime
from typing import Dict, List

from .models import ForecastEntry, ForecastSeries


def selectDailyEntries(series: ForecastSeries, hour: int = 12) -> List[ForecastEntry]:
    """
    Pick one representative entry per local calendar day.

    For each day the entry closest to ``hour`` (local time of the location)
    is selected. Works for both 3-hour and daily series, daily series get one
    entry per day anyway.

    Args:
        series: Forecast series, entries ascending by dt
        hour: Preferred local hour (0-23)

    Returns:
        Entries ascending by dt, one per day
    """
    offset = datetime.timedelta(seconds=series.get("timezone_offset", 0))
    byDay: Dict[datetime.date, ForecastEntry] = {}
    bestDistance: Dict[datetime.date, int] = {}

    for entry in series["entries"]:
        localTime = datetime.datetime.fromtimestamp(entry["dt"], tz=datetime.timezone.utc) + offset
        day = localTime.date()
        distance = abs(localTime.hour * 60 + localTime.minute - hour * 60)
        if day not in byDay or distance < bestDistance[day]:
            byDay[day] = entry
            bestDistance[day] = distance

    return sorted(byDay.values(), key=lambda entry: entry["dt"])
