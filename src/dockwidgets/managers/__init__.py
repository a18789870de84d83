"""
Managers shared by all probes.

- ChangeNotifier: change-only publication with subscription handles
- PollingTask: cancellable fixed-interval scheduling
"""

from .notifier import ChangeNotifier, Subscription
from .polling import PollingTask

__all__ = [
    "ChangeNotifier",
    "Subscription",
    "PollingTask",
]
