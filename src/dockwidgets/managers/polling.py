"""
Scheduled polling for probes.

Each probe owns one PollingTask: a background thread that runs the probe's
tick immediately and then on a fixed interval until stopped.
"""

import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PollingTask:
    """
    Cancellable fixed-interval ticker.

    Responsibilities:
    - Running the tick on its own thread so slow ticks never delay other probes
    - Interruptible waits so stop() takes effect immediately
    - Keeping the loop alive when a tick raises
    """

    # How long stop() waits for the worker thread by default
    STOP_TIMEOUT = 3.0

    def __init__(self, name: str, interval: float, tick: Callable[[], None]):
        """
        Initialize the polling task.

        Args:
            name: Thread name, also used in log messages
            interval: Seconds between the start of consecutive ticks
            tick: Work to run on every tick

        Raises:
            ValueError: If interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"{name}: polling interval must be positive, got {interval}")

        self.name = name
        self.interval = interval
        self._tick = tick
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0

    @property
    def stop_event(self) -> threading.Event:
        """Event set when the task is asked to stop."""
        return self._stop_event

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking in a background thread."""
        if self.is_running():
            if self._stop_event.is_set():
                logger.warning(f"{self.name} polling is still stopping, not restarting")
            else:
                logger.warning(f"{self.name} polling already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name=self.name)
        self._thread.start()
        logger.debug(f"{self.name} polling started (every {self.interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """
        Stop ticking and wait for an in-flight tick to finish.

        A worker still busy after the timeout stays referenced, so
        is_running() reports it and start() will not launch a second one.
        """
        self._stop_event.set()

        if self._thread:
            self._thread.join(timeout=self.STOP_TIMEOUT if timeout is None else timeout)
            if self._thread.is_alive():
                logger.warning(f"{self.name} polling did not stop within timeout")
                return
            self._thread = None

        logger.debug(f"{self.name} polling stopped")

    def run_once(self) -> None:
        """Run a single tick on the calling thread."""
        self._safe_tick()

    def _run(self) -> None:
        """Main polling loop (runs in background thread)."""
        while not self._stop_event.is_set():
            started = time.monotonic()
            self._safe_tick()

            # Sleep out the rest of the interval unless asked to stop
            elapsed = time.monotonic() - started
            if self._stop_event.wait(max(0.0, self.interval - elapsed)):
                break

    def _safe_tick(self) -> None:
        try:
            self._tick()
            self.tick_count += 1
        except Exception as e:
            logger.error(f"Error in {self.name} tick: {e}", exc_info=True)
