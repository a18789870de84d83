"""
Immutable snapshot types shared by probes, the layout engine and observers.

Every value here is a frozen dataclass: probes replace snapshots wholesale
and hand the same object to every observer, so nothing needs a lock to read.
"""

import enum
from dataclasses import dataclass
from typing import Iterator, Optional

from .utils.errors import PollError


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Screen-space rectangle with a bottom-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class DockEdge(enum.Enum):
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class DockGeometry:
    """Dock position and size as last sampled."""

    edge: DockEdge
    frame: Rect
    tile_size: float


class MediaApp(enum.Enum):
    """Player applications the media watcher knows how to address."""

    NONE = "None"
    MUSIC = "Music"
    SPOTIFY = "Spotify"

    @property
    def display_name(self) -> str:
        return {
            MediaApp.NONE: "No music playing",
            MediaApp.MUSIC: "Apple Music",
            MediaApp.SPOTIFY: "Spotify",
        }[self]


@dataclass(frozen=True)
class NowPlayingSnapshot:
    title: str = ""
    artist: str = ""
    album: str = ""
    source_app: MediaApp = MediaApp.NONE
    is_playing: bool = False

    @classmethod
    def empty(cls) -> "NowPlayingSnapshot":
        """The valid "no media" snapshot."""
        return cls()

    @property
    def has_media(self) -> bool:
        return self.source_app is not MediaApp.NONE

    @property
    def display_text(self) -> str:
        if not self.title:
            return ""
        if not self.album:
            return f"{self.title} – {self.artist}"
        return f"{self.title} – {self.artist} ({self.album})"


class TemperatureUnit(enum.Enum):
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"


@dataclass(frozen=True)
class WeatherSnapshot:
    """
    Current weather for one location.

    Temperatures are always stored in Celsius; conversion for display
    happens in display_temperature(). ``icon`` is a symbolic condition key
    such as "clear" or "rain", not an image.
    """

    location: str
    temperature_c: int
    condition: str
    icon: str
    humidity: Optional[int] = None
    feels_like_c: Optional[float] = None
    wind_speed: Optional[float] = None


def display_temperature(snapshot: WeatherSnapshot, unit: TemperatureUnit) -> int:
    """Temperature in the requested unit, rounded for display."""
    if unit is TemperatureUnit.FAHRENHEIT:
        return round(snapshot.temperature_c * 9 / 5 + 32)
    return snapshot.temperature_c


@dataclass(frozen=True)
class WeatherReport:
    """What the weather probe publishes: a snapshot or the error that replaced it."""

    snapshot: Optional[WeatherSnapshot] = None
    error: Optional[PollError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.snapshot is not None


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


class WidgetId(enum.Enum):
    CLOCK = "clock"
    WEATHER = "weather"
    MUSIC = "music"


@dataclass(frozen=True)
class WidgetAnchor:
    id: WidgetId
    point: Point


@dataclass(frozen=True)
class AnchorSet:
    """The three widget anchors produced by one layout pass."""

    clock: WidgetAnchor
    weather: WidgetAnchor
    music: WidgetAnchor

    def __iter__(self) -> Iterator[WidgetAnchor]:
        return iter((self.clock, self.weather, self.music))

    def get(self, widget_id: WidgetId) -> WidgetAnchor:
        for anchor in self:
            if anchor.id is widget_id:
                return anchor
        raise KeyError(widget_id)
