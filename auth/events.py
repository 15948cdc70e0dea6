import itertools
import logging
import threading
from enum import Enum
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthCallback = Callable[[AuthEvent, str], None]


class Subscription:
    def __init__(self, events: "AuthEvents", key: int):
        self._events = events
        self._key = key

    def unsubscribe(self):
        self._events._remove(self._key)


class AuthEvents:
    """
    Observers of sign-in / sign-out.

    One instance per application, created at startup and closed at shutdown.
    Callbacks get ``(event, user_id)``; an exception in one callback is logged
    and the remaining callbacks still run.
    """

    def __init__(self):
        self._observers: Dict[int, AuthCallback] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, callback: AuthCallback) -> Subscription:
        with self._lock:
            key = next(self._ids)
            self._observers[key] = callback
        return Subscription(self, key)

    def _remove(self, key: int):
        with self._lock:
            self._observers.pop(key, None)

    def emit(self, event: AuthEvent, user_id: str):
        with self._lock:
            callbacks = list(self._observers.values())

        logger.info("Auth event %s for user %s", event.value, user_id)
        for callback in callbacks:
            try:
                callback(event, user_id)
            except Exception:
                logger.exception("Auth observer failed on %s", event.value)

    def close(self):
        with self._lock:
            self._observers.clear()

    def __len__(self):
        with self._lock:
            return len(self._observers)
