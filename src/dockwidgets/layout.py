"""
Widget placement around the dock.

compute_anchors() is a pure function of the screen frame, the dock frame
and the dock edge; the same inputs always give the same AnchorSet.

Bottom dock (dock-relative zone centering):

    left zone   = [screen.min_x, dock.min_x]
    right zone  = [dock.max_x, screen.max_x]
    clock.x     = screen.min_x + left_zone_fraction * (dock.min_x - screen.min_x)
    center      = dock.max_x + right_zone_fraction * (screen.max_x - dock.max_x)
    half        = min(widget_spacing, screen.max_x - dock.max_x) / 2
    center      = clamp(center, dock.max_x + half, screen.max_x - half)
    weather.x   = center - half
    music.x     = center + half
    y (all)     = dock.mid_y

The dock frame is clamped into the screen first. The weather/music pair
is then kept inside the right zone: weather never sits on the dock and
music never runs past the screen edge. When the right zone is narrower
than widget_spacing the pair spreads across the whole zone instead, and
a dock that fills the screen puts both anchors on screen.max_x.
"""

import logging
from dataclasses import dataclass

from .models import AnchorSet, DockEdge, Point, Rect, WidgetAnchor, WidgetId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutPolicy:
    """Named constants of the placement formula."""

    # Fraction of the way across the left zone where the clock sits
    left_zone_fraction: float = 0.5
    # Fraction of the way across the right zone where the weather/music pair is centered
    right_zone_fraction: float = 0.5
    # Horizontal distance between the weather and music anchors
    widget_spacing: float = 140.0
    # Vertical distance between weather and music for side docks
    vertical_spacing: float = 80.0

    def __post_init__(self):
        for name in ("left_zone_fraction", "right_zone_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.widget_spacing < 0 or self.vertical_spacing < 0:
            raise ValueError("Widget spacing must not be negative")


DEFAULT_POLICY = LayoutPolicy()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def _clamp_to_screen(dock: Rect, screen: Rect) -> Rect:
    min_x = _clamp(dock.min_x, screen.min_x, screen.max_x)
    max_x = _clamp(dock.max_x, min_x, screen.max_x)
    min_y = _clamp(dock.min_y, screen.min_y, screen.max_y)
    max_y = _clamp(dock.max_y, min_y, screen.max_y)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)


def compute_anchors(
    screen: Rect, dock: Rect, edge: DockEdge, policy: LayoutPolicy = DEFAULT_POLICY
) -> AnchorSet:
    """
    Place the clock, weather and music anchors.

    Args:
        screen: Screen frame the widgets live on
        dock: Dock frame on that screen
        edge: Edge the dock is attached to
        policy: Placement constants

    Returns:
        Fresh AnchorSet
    """
    dock = _clamp_to_screen(dock, screen)

    left_center = screen.min_x + policy.left_zone_fraction * (dock.min_x - screen.min_x)
    right_center = dock.max_x + policy.right_zone_fraction * (screen.max_x - dock.max_x)

    if edge is DockEdge.BOTTOM:
        y = dock.mid_y
        half = min(policy.widget_spacing, screen.max_x - dock.max_x) / 2
        right_center = _clamp(right_center, dock.max_x + half, screen.max_x - half)
        clock = Point(left_center, y)
        weather = Point(right_center - half, y)
        music = Point(right_center + half, y)
    else:
        # Side docks: widgets stacked around the screen's vertical center
        y = screen.mid_y
        half = policy.vertical_spacing / 2
        clock = Point(left_center, y)
        weather = Point(right_center, y - half)
        music = Point(right_center, y + half)

    return AnchorSet(
        clock=WidgetAnchor(WidgetId.CLOCK, clock),
        weather=WidgetAnchor(WidgetId.WEATHER, weather),
        music=WidgetAnchor(WidgetId.MUSIC, music),
    )


class LayoutEngine:
    """Holds a placement policy; compute() has no side effects."""

    def __init__(self, policy: LayoutPolicy = DEFAULT_POLICY):
        self.policy = policy

    @classmethod
    def from_config(cls, config: dict) -> "LayoutEngine":
        return cls(
            LayoutPolicy(
                left_zone_fraction=float(config.get("left_zone_fraction", DEFAULT_POLICY.left_zone_fraction)),
                right_zone_fraction=float(config.get("right_zone_fraction", DEFAULT_POLICY.right_zone_fraction)),
                widget_spacing=float(config.get("widget_spacing", DEFAULT_POLICY.widget_spacing)),
                vertical_spacing=float(config.get("vertical_spacing", DEFAULT_POLICY.vertical_spacing)),
            )
        )

    def compute(self, screen: Rect, dock: Rect, edge: DockEdge = DockEdge.BOTTOM) -> AnchorSet:
        anchors = compute_anchors(screen, dock, edge, self.policy)
        logger.debug(f"Layout for dock {dock} on {edge.value}: {anchors}")
        return anchors
