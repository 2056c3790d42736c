"""
Geolocation data models
"""

from typing import TypedDict


class Position(TypedDict):
    """Geographic position in decimal degrees"""

    lat: float
    lon: float
