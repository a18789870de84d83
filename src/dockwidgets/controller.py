"""
Main controller wiring the probes, layout engine and observers together.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from .config.loader import ConfigLoader
from .layout import LayoutEngine
from .location import location_provider_from_config
from .managers.notifier import ChangeNotifier, Subscription
from .models import (
    AnchorSet,
    DockGeometry,
    MediaApp,
    NowPlayingSnapshot,
    Rect,
    TemperatureUnit,
    WeatherReport,
    display_temperature,
)
from .platforms import detect_platform
from .platforms.base import Platform
from .platforms.runner import CommandRunner
from .probes.base import BaseProbe
from .probes.dock import FALLBACK_SCREEN, DockGeometryProbe
from .probes.media import MediaWatcher
from .probes.weather import WeatherProbe

logger = logging.getLogger(__name__)


class DockWidgetsController:
    """
    Main controller orchestrating the polling layer.

    Every service is constructed once here and handed to whoever needs it:
    - DockGeometryProbe: dock frame
    - MediaWatcher: now playing and transport commands
    - WeatherProbe: current weather
    - LayoutEngine: widget anchors, published through layout_notifier
    """

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the controller.

        Args:
            config_path: Path to YAML configuration file
            config: Already loaded configuration (skips loading from config_path)
        """
        self.config_path: Optional[str] = config_path
        self.config: Optional[Dict[str, Any]] = config
        self.running: bool = False

        self.config_loader: ConfigLoader = ConfigLoader()
        self.runner: CommandRunner = CommandRunner()

        # Platform detection
        self.platform: Optional[Platform] = detect_platform(self.runner)
        logger.info(f"Detected platform: {self.platform.name if self.platform else 'generic'}")

        self.dock_probe: Optional[DockGeometryProbe] = None
        self.media_watcher: Optional[MediaWatcher] = None
        self.weather_probe: Optional[WeatherProbe] = None
        self.layout_engine: LayoutEngine = LayoutEngine()
        self.layout_notifier: ChangeNotifier[AnchorSet] = ChangeNotifier("layout")

        self.auto_layout: bool = False
        self.temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
        self._subscriptions: List[Subscription] = []
        self._screen: Rect = FALLBACK_SCREEN
        self._scale_factor: float = 1.0
        self._stop_event = threading.Event()
        self._is_setup = False

    @property
    def probes(self) -> List[BaseProbe]:
        """Enabled probes."""
        return [p for p in (self.dock_probe, self.media_watcher, self.weather_probe) if p is not None]

    def load_config(self) -> bool:
        """
        Load configuration from file, or defaults when no path was given.

        Returns:
            True if successful, False otherwise
        """
        if self.config is not None:
            return True

        try:
            if self.config_path:
                self.config = self.config_loader.load(self.config_path)
            else:
                self.config = self.config_loader.defaults()
            return True
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            return False

    def setup(self) -> None:
        """Build every enabled service from the loaded configuration."""
        if self._is_setup:
            return
        if self.config is None and not self.load_config():
            raise RuntimeError("Cannot set up without a valid configuration")

        config = self.config
        screen_config = config.get("screen", {})
        layout_config = config.get("layout", {})
        dock_config = config.get("dock", {})
        media_config = config.get("media", {})
        weather_config = config.get("weather", {})

        self._screen = Rect(
            float(screen_config.get("x", 0)),
            float(screen_config.get("y", 0)),
            float(screen_config.get("width", FALLBACK_SCREEN.width)),
            float(screen_config.get("height", FALLBACK_SCREEN.height)),
        )
        self._scale_factor = float(screen_config.get("scale_factor", 1.0))

        if "timeout" in media_config:
            self.runner.timeout = float(media_config["timeout"])

        self.layout_engine = LayoutEngine.from_config(layout_config)
        self.auto_layout = bool(layout_config.get("auto_recompute", False))
        self.temperature_unit = TemperatureUnit(weather_config.get("unit", "celsius"))

        if dock_config.get("enabled", True):
            self.dock_probe = DockGeometryProbe(
                dock_config, platform=self.platform, screen_provider=self.screen_frame
            )
            self._subscriptions.append(self.dock_probe.subscribe(self._on_dock_changed))
            if self.auto_layout:
                self._subscriptions.append(self.dock_probe.subscribe(self._recompute_layout))
            logger.info(f"Layout recompute on dock change: {'on' if self.auto_layout else 'off'}")

        if media_config.get("enabled", True):
            self.media_watcher = MediaWatcher(media_config, platform=self.platform)
            self._subscriptions.append(self.media_watcher.subscribe(self._on_media_changed))
            self._subscriptions.append(
                self.media_watcher.on_permission_denied(self._on_permission_denied)
            )

        if weather_config.get("enabled", True):
            self.weather_probe = WeatherProbe(
                weather_config,
                location_provider=location_provider_from_config(weather_config, self.runner),
            )
            self._subscriptions.append(self.weather_probe.subscribe(self._on_weather_changed))

        self._subscriptions.append(self.layout_notifier.subscribe(self._on_layout_changed))
        self._is_setup = True

    def screen_frame(self) -> Tuple[Rect, float]:
        """Visible screen frame and backing scale factor."""
        return self._screen, self._scale_factor

    def compute_layout(self) -> AnchorSet:
        """
        Compute widget anchors from the latest dock geometry.

        Called on demand; also on every geometry change when auto_recompute
        is enabled.
        """
        geometry = self._current_geometry()
        anchors = self.layout_engine.compute(self._screen, geometry.frame, geometry.edge)
        self.layout_notifier.publish(anchors)
        return anchors

    # Observer registration for the host

    def subscribe_dock(self, observer: Callable[[DockGeometry], None]) -> Subscription:
        return self._require(self.dock_probe, "dock").subscribe(observer, replay=True)

    def subscribe_media(self, observer: Callable[[NowPlayingSnapshot], None]) -> Subscription:
        return self._require(self.media_watcher, "media").subscribe(observer, replay=True)

    def subscribe_weather(self, observer: Callable[[WeatherReport], None]) -> Subscription:
        return self._require(self.weather_probe, "weather").subscribe(observer, replay=True)

    def subscribe_layout(self, observer: Callable[[AnchorSet], None]) -> Subscription:
        return self.layout_notifier.subscribe(observer, replay=True)

    # Transport commands

    def play_pause(self) -> bool:
        return self.media_watcher.play_pause() if self.media_watcher else False

    def next_track(self) -> bool:
        return self.media_watcher.next_track() if self.media_watcher else False

    def previous_track(self) -> bool:
        return self.media_watcher.previous_track() if self.media_watcher else False

    # Lifecycle

    def start(self) -> None:
        """Start every probe on its own polling thread."""
        self.setup()
        self.running = True
        self._stop_event.clear()

        for probe in self.probes:
            probe.start()

        self.compute_layout()

    def run_once(self) -> Dict[str, Any]:
        """
        Sample every enabled probe once on the calling thread.

        Returns:
            Latest value per probe type plus the computed layout
        """
        self.setup()
        results: Dict[str, Any] = {}
        for probe in self.probes:
            results[probe.probe_type] = probe.poll()
        results["layout"] = self.compute_layout()
        return results

    def run(self) -> None:
        """
        Main application run loop.

        Starts the probes and blocks until request_shutdown() is called.
        """
        if not self.load_config():
            logger.error("Cannot start without valid configuration")
            return

        self.start()
        logger.info("DockWidgets is running. Press Ctrl+C to exit.")

        try:
            while self.running:
                self._stop_event.wait(0.5)
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        finally:
            self.shutdown()

    def request_shutdown(self) -> None:
        """Ask run() to return; safe to call from a signal handler."""
        self.running = False
        self._stop_event.set()

    def shutdown(self) -> None:
        """Stop every probe and drop internal subscriptions."""
        logger.info("Shutting down DockWidgets...")
        self.running = False
        self._stop_event.set()

        # Weather first: it may be waiting between retries
        for probe in reversed(self.probes):
            probe.stop()

        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

    # Internal observers

    def _current_geometry(self) -> DockGeometry:
        if self.dock_probe is None:
            return DockGeometryProbe(screen_provider=self.screen_frame).sample()
        return self.dock_probe.current or self.dock_probe.poll() or self.dock_probe.get_fallback()

    def _recompute_layout(self, geometry: DockGeometry) -> None:
        anchors = self.layout_engine.compute(self._screen, geometry.frame, geometry.edge)
        self.layout_notifier.publish(anchors)

    def _on_dock_changed(self, geometry: DockGeometry) -> None:
        frame = geometry.frame
        logger.info(
            f"Dock geometry: x={frame.x:.0f} y={frame.y:.0f} "
            f"{frame.width:.0f}x{frame.height:.0f} (tile {geometry.tile_size:.0f})"
        )

    def _on_media_changed(self, snapshot: NowPlayingSnapshot) -> None:
        if not snapshot.has_media:
            logger.info("Now playing: nothing")
            return
        state = "playing" if snapshot.is_playing else "paused"
        text = snapshot.display_text or "(no track)"
        logger.info(f"Now playing [{snapshot.source_app.display_name}, {state}]: {text}")

    def _on_permission_denied(self, app: MediaApp) -> None:
        logger.warning(
            f"Automation access to {app.value} was denied. Allow it in System Settings > "
            f"Privacy & Security > Automation."
        )

    def _on_weather_changed(self, report: WeatherReport) -> None:
        if report.snapshot is None:
            logger.info(f"Weather update failed: {report.error}")
            return
        snapshot = report.snapshot
        symbol = "°F" if self.temperature_unit is TemperatureUnit.FAHRENHEIT else "°C"
        temperature = display_temperature(snapshot, self.temperature_unit)
        logger.info(f"Weather: {snapshot.location} {temperature}{symbol} {snapshot.condition}")

    def _on_layout_changed(self, anchors: AnchorSet) -> None:
        points = ", ".join(
            f"{a.id.value}=({a.point.x:.0f}, {a.point.y:.0f})" for a in anchors
        )
        logger.info(f"Widget anchors: {points}")

    @staticmethod
    def _require(probe: Optional[BaseProbe], name: str) -> BaseProbe:
        if probe is None:
            raise RuntimeError(f"The {name} probe is not enabled")
        return probe
