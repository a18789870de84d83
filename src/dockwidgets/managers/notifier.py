"""
Change-only publication for probe snapshots.

A ChangeNotifier remembers the last value it published and only calls its
observers when a new value differs from it, so repeated polls of an
unchanged source cost nothing downstream.
"""

import logging
import threading
from typing import Callable, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Observer = Callable[[T], None]


class Subscription:
    """
    Cancellation handle returned by ChangeNotifier.subscribe().

    Can be used as a context manager to unsubscribe on exit.
    """

    def __init__(self, notifier: "ChangeNotifier", observer: Callable):
        self._notifier = notifier
        self._observer = observer
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop receiving notifications. Safe to call more than once."""
        if self._active:
            self._active = False
            self._notifier._remove(self._observer)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class ChangeNotifier(Generic[T]):
    """
    Publish-only-on-diff wrapper.

    Responsibilities:
    - Owns the comparison baseline (last published value)
    - Observer registration with cancellation handles
    - Isolating observers from each other's failures

    Observers are called on the publishing thread, outside the internal
    lock, so they may subscribe or cancel from inside a callback.
    """

    def __init__(self, name: str, equals: Optional[Callable[[T, T], bool]] = None):
        """
        Initialize the notifier.

        Args:
            name: Label used in log messages
            equals: Optional comparison; defaults to ==
        """
        self.name = name
        self._equals = equals or (lambda a, b: a == b)
        self._lock = threading.Lock()
        self._observers: List[Observer] = []
        self._current: Optional[T] = None
        self._has_value = False
        self._publish_count = 0

    @property
    def current(self) -> Optional[T]:
        """Last published value, or None before the first publish."""
        return self._current

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def publish_count(self) -> int:
        """Number of notifications actually emitted."""
        return self._publish_count

    def subscribe(self, observer: Observer, replay: bool = False) -> Subscription:
        """
        Register an observer.

        Args:
            observer: Callable receiving each new value
            replay: If True and a value was already published, deliver it now

        Returns:
            Subscription handle; call cancel() to unsubscribe
        """
        with self._lock:
            self._observers.append(observer)
            current, has_value = self._current, self._has_value

        if replay and has_value:
            self._deliver(observer, current)

        return Subscription(self, observer)

    def publish(self, value: T) -> bool:
        """
        Publish a value if it differs from the last published one.

        Returns:
            True if observers were notified, False if the value was unchanged
        """
        with self._lock:
            if self._has_value and self._equals(self._current, value):
                return False
            self._current = value
            self._has_value = True
            self._publish_count += 1
            observers = list(self._observers)

        logger.debug(f"{self.name}: publishing change to {len(observers)} observer(s)")
        for observer in observers:
            self._deliver(observer, value)
        return True

    def reset(self) -> None:
        """Forget the baseline so the next publish always notifies."""
        with self._lock:
            self._current = None
            self._has_value = False

    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def _remove(self, observer: Observer) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

    def _deliver(self, observer: Observer, value: T) -> None:
        try:
            observer(value)
        except Exception as e:
            logger.error(f"{self.name}: observer {observer!r} failed: {e}", exc_info=True)
