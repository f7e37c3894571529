"""
Minimal observer primitives for pushing store state to subscribers.

StateRelay holds a current value and replays it to every new subscriber
(flights, loading flag, current error...). EventRelay only broadcasts to
subscribers present at emit time, for one-shot events such as an error
to show in an alert.
"""

import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Subscription:
    """Handle returned by subscribe(); dispose() stops delivery."""

    def __init__(self, relay: '_Relay', callback: Callable):
        self._relay = relay
        self._callback = callback
        self.disposed = False

    def dispose(self) -> None:
        if not self.disposed:
            self._relay._remove(self._callback)
            self.disposed = True


class _Relay(Generic[T]):
    def __init__(self):
        self._lock = threading.RLock()
        self._subscribers: List[Callable[[T], None]] = []

    def _remove(self, callback: Callable[[T], None]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def _deliver(self, value: T) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            self._notify(callback, value)

    @staticmethod
    def _notify(callback: Callable[[T], None], value: T) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.error(f'Subscriber callback error: {e}')


class StateRelay(_Relay[T]):
    """Relay that remembers its latest value and replays it on subscribe."""

    def __init__(self, value: T):
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def accept(self, value: T) -> None:
        with self._lock:
            self._value = value
            self._deliver(value)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            self._subscribers.append(callback)
            current = self._value
            self._notify(callback, current)
        return Subscription(self, callback)


class EventRelay(_Relay[T]):
    """Broadcast-only relay; late subscribers see nothing from the past."""

    def accept(self, value: T) -> None:
        self._deliver(value)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            self._subscribers.append(callback)
        return Subscription(self, callback)
