"""
Dock geometry probe using the dock's persisted preferences.
"""

import logging
from typing import Any, Callable, Dict, Optional, Tuple

from ..models import DockEdge, DockGeometry, Rect
from ..platforms.base import Platform
from ..utils.errors import PollError
from .base import BaseProbe

logger = logging.getLogger(__name__)

DOCK_DOMAIN = "com.apple.dock"

# Tile size in points when the preference cannot be read
FALLBACK_TILE_SIZE = 60.0

# Trash plus the separator before it
ICON_COUNT_OFFSET = 2

# Screen used when the provider has nothing usable
FALLBACK_SCREEN = Rect(0, 0, 1920, 1080)

ScreenProvider = Callable[[], Tuple[Rect, float]]


def static_screen(screen: Rect = FALLBACK_SCREEN, scale_factor: float = 1.0) -> ScreenProvider:
    """Screen provider that always reports the same visible frame."""
    return lambda: (screen, scale_factor)


def count_plist_items(output: str) -> int:
    """
    Count the entries of a `defaults read` plist array.

    Every dock tile dictionary carries exactly one "tile-type" key.
    """
    return output.count('"tile-type"')


class DockGeometryProbe(BaseProbe[DockGeometry]):
    """
    Estimate the dock's frame on screen.

    Configuration:
        interval: Seconds between samples (default: 1.0)
        icon_count_offset: Tiles added for trash/separators (default: 2)
        fallback_tile_size: Tile size in points on read failure (default: 60)

    The dock is assumed to sit on the bottom edge, centered horizontally on
    the visible screen, one tile high and one tile wide per icon.
    """

    probe_type = "dock"
    update_interval = 1.0

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        platform: Optional[Platform] = None,
        screen_provider: Optional[ScreenProvider] = None,
    ):
        super().__init__(config)
        self.platform = platform
        self.screen_provider = screen_provider or static_screen()
        self.icon_count_offset = int(self.config.get("icon_count_offset", ICON_COUNT_OFFSET))
        self.fallback_tile_size = float(self.config.get("fallback_tile_size", FALLBACK_TILE_SIZE))
        if self.fallback_tile_size <= 0:
            logger.warning(
                f"Ignoring non-positive fallback_tile_size {self.fallback_tile_size}, "
                f"using {FALLBACK_TILE_SIZE}"
            )
            self.fallback_tile_size = FALLBACK_TILE_SIZE

    def sample(self) -> DockGeometry:
        """Compute the current dock frame. Never raises for read failures."""
        screen, scale = self._read_screen()
        tile_size = self.read_tile_size() * scale
        icon_count = self.read_icon_count()

        width = min(icon_count * tile_size, screen.width)
        x = screen.min_x + (screen.width - width) / 2
        frame = Rect(x=x, y=screen.min_y, width=width, height=tile_size)

        logger.debug(
            f"Dock sample: {icon_count} icons x {tile_size:.1f}px -> {frame}"
        )
        return DockGeometry(edge=DockEdge.BOTTOM, frame=frame, tile_size=tile_size)

    def read_tile_size(self) -> float:
        """Dock tile size in points, or the fallback when unreadable."""
        if self.platform is None:
            return self.fallback_tile_size

        try:
            output = self.platform.read_preference(DOCK_DOMAIN, "tilesize")
            tile_size = float(output.strip())
        except (PollError, ValueError) as e:
            logger.debug(f"Dock tile size unavailable ({e}), using {self.fallback_tile_size}")
            return self.fallback_tile_size

        if tile_size <= 0:
            logger.warning(f"Dock reported tile size {tile_size}, using {self.fallback_tile_size}")
            return self.fallback_tile_size
        return tile_size

    def read_icon_count(self) -> int:
        """Number of tiles in the dock, including trash and separators."""
        apps = self._count_tiles("persistent-apps")
        others = self._count_tiles("persistent-others")
        return max(apps + others + self.icon_count_offset, 1)

    def get_fallback(self) -> DockGeometry:
        """Geometry from defaults alone: fallback tile size on the fallback screen."""
        tile_size = self.fallback_tile_size
        width = max(self.icon_count_offset, 1) * tile_size
        x = FALLBACK_SCREEN.min_x + (FALLBACK_SCREEN.width - width) / 2
        return DockGeometry(
            edge=DockEdge.BOTTOM,
            frame=Rect(x=x, y=FALLBACK_SCREEN.min_y, width=width, height=tile_size),
            tile_size=tile_size,
        )

    def _count_tiles(self, key: str) -> int:
        if self.platform is None:
            return 0

        try:
            return count_plist_items(self.platform.read_preference(DOCK_DOMAIN, key))
        except PollError as e:
            logger.debug(f"Dock {key} unavailable: {e}")
            return 0

    def _read_screen(self) -> Tuple[Rect, float]:
        try:
            screen, scale = self.screen_provider()
        except Exception as e:
            logger.warning(f"Screen provider failed ({e}), using fallback screen")
            return FALLBACK_SCREEN, 1.0

        if screen is None or screen.is_empty:
            logger.warning(f"Unusable screen frame {screen}, using fallback screen")
            screen = FALLBACK_SCREEN
        if not scale or scale <= 0:
            scale = 1.0
        return screen, scale
