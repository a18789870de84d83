"""
Base classes for all probe types.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from ..managers.notifier import ChangeNotifier, Subscription
from ..managers.polling import PollingTask

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseProbe(ABC, Generic[T]):
    """
    Base class for all external-state probes.

    A probe samples one external source on a timer, turns the result into an
    immutable snapshot and publishes it through its own ChangeNotifier.

    Class Attributes:
        probe_type: Unique identifier for this probe type (e.g., "dock", "media")
        update_interval: Default seconds between samples

    Example:
        >>> class UptimeProbe(BaseProbe):
        ...     probe_type = "uptime"
        ...     update_interval = 5.0
        ...
        ...     def sample(self):
        ...         return read_uptime()
    """

    # Probe type identifier (must be unique)
    probe_type: str = None

    # Default sampling interval in seconds, overridable with config["interval"]
    update_interval: float = 1.0

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize probe with configuration.

        Args:
            config: Probe section of the YAML configuration

        Raises:
            ValueError: If probe_type is not defined
        """
        if not self.probe_type:
            raise ValueError(f"{self.__class__.__name__} must define probe_type")

        self.config = config or {}
        self.update_interval = float(self.config.get("interval", self.update_interval))
        self.notifier: ChangeNotifier[T] = ChangeNotifier(f"{self.probe_type}-probe")
        self._task: Optional[PollingTask] = None

    @abstractmethod
    def sample(self) -> T:
        """
        Sample the external source once.

        Called from the probe's polling thread at update_interval.

        Returns:
            Fresh immutable snapshot
        """
        pass

    def get_fallback(self) -> Optional[T]:
        """
        Snapshot to publish when sample() raises unexpectedly.

        Override this to provide probe-specific fallback values.
        """
        return None

    def safe_sample(self) -> Optional[T]:
        """
        Sample with standardized error handling.

        Returns:
            Sampled snapshot on success, fallback snapshot on failure
        """
        try:
            return self.sample()
        except Exception as e:
            logger.error(f"Error sampling {self.probe_type} probe: {e}", exc_info=True)
            return self.get_fallback()

    def poll(self) -> Optional[T]:
        """
        Run one tick: sample, then publish if the snapshot changed.

        Returns:
            The snapshot produced by this tick
        """
        value = self.safe_sample()
        if value is None:
            return None

        if self.notifier.publish(value):
            logger.debug(f"{self.probe_type} probe published {value!r}")
        return value

    @property
    def current(self) -> Optional[T]:
        """Last published snapshot."""
        return self.notifier.current

    def subscribe(self, observer: Callable[[T], None], replay: bool = False) -> Subscription:
        """Register an observer for changed snapshots."""
        return self.notifier.subscribe(observer, replay=replay)

    def start(self) -> None:
        """Start sampling on this probe's own polling thread."""
        if self._task and self._task.is_running():
            if self._task.stop_event.is_set():
                logger.warning(f"{self.probe_type} probe is still stopping, not restarting")
            else:
                logger.warning(f"{self.probe_type} probe already started")
            return

        self._task = PollingTask(f"{self.probe_type}-probe", self.update_interval, self.poll)
        self._task.start()
        logger.info(f"Started {self.probe_type} probe (every {self.update_interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop sampling; cancels the next scheduled tick."""
        if self._task:
            self._task.stop(timeout)
            if self._task.is_running():
                # Keep the busy worker so start() cannot run a second one
                return
            self._task = None
            logger.info(f"Stopped {self.probe_type} probe")

    def is_running(self) -> bool:
        return self._task is not None and self._task.is_running()

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<{self.__class__.__name__}(type={self.probe_type}, interval={self.update_interval})>"
