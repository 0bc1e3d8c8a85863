"""
ProgressNotifier - "progress changed" broadcast between open views.

Every view keeps its own derived snapshot and recomputes it from persisted
state when notified. There is no payload: subscribers re-read what they need.
"""

import logging
from typing import Callable


logger = logging.getLogger(__name__)

PROGRESS_CHANGED = "progress:updated"


class ProgressNotifier:
    """Observer registry for the single progress-changed event."""

    def __init__(self):
        self._subscribers: dict[int, Callable[[], None]] = {}
        self._next_token = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback.

        Returns:
            Unsubscribe handle; calling it more than once is a no-op
        """
        token = self._next_token
        self._next_token += 1
        self._subscribers[token] = callback

        def unsubscribe():
            self._subscribers.pop(token, None)

        return unsubscribe

    def publish(self):
        """Notify every current subscriber in subscription order."""
        for callback in list(self._subscribers.values()):
            try:
                callback()
            except Exception:
                logger.exception(f"{PROGRESS_CHANGED} subscriber failed")
