"""
Probes sample one external source each on their own schedule.

- DockGeometryProbe: dock frame from the dock's persisted preferences
- MediaWatcher: now playing across an ordered list of player applications
- WeatherProbe: current weather through WeatherClient
"""

from .base import BaseProbe
from .dock import DockGeometryProbe
from .media import AppleScriptMediaSource, MediaCommand, MediaSource, MediaWatcher
from .weather import WeatherClient, WeatherProbe

__all__ = [
    "BaseProbe",
    "DockGeometryProbe",
    "MediaWatcher",
    "MediaSource",
    "AppleScriptMediaSource",
    "MediaCommand",
    "WeatherClient",
    "WeatherProbe",
]
