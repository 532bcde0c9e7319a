import logging
import threading
from typing import Callable, Dict, List

from sqlalchemy import event
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# session.info key holding the signals to fire once the session commits
PENDING_SIGNALS_KEY = "pending_signals"


class ChangeToken:
    """
    Captures the version of a signal key at the time it was taken.
    Once the key is signalled the token reports a change, forever.
    """

    def __init__(self, signal: "Signal", key: str, version: int):
        self._signal = signal
        self.key = key
        self.version = version

    @property
    def has_changed(self) -> bool:
        return self._signal.get_version(self.key) != self.version

    def register_change_callback(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run `callback` once when the key is signalled (immediately if it already was).
        Returns a function that cancels the registration.
        """
        return self._signal._register(self, callback)


class Signal:
    def __init__(self):
        self._lock = threading.Lock()
        self._versions: Dict[str, int] = {}
        self._callbacks: Dict[str, List[Callable[[], None]]] = {}

    def get_version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def get_token(self, key: str) -> ChangeToken:
        with self._lock:
            return ChangeToken(self, key, self.get_version(key))

    def signal_token(self, key: str) -> None:
        """Invalidate every token taken for `key`"""
        with self._lock:
            self._versions[key] = self.get_version(key) + 1
            callbacks = self._callbacks.pop(key, [])

        logger.debug(f"Signalled '{key}' ({len(callbacks)} callbacks)")

        # Outside the lock, callbacks may take tokens again
        for callback in callbacks:
            callback()

    def deferred_signal_token(self, key: str, session: Session) -> None:
        """Signal `key` after `session` commits. Dropped if the session rolls back."""
        pending = session.info.setdefault(PENDING_SIGNALS_KEY, [])
        if (self, key) not in pending:
            pending.append((self, key))

    def pending_callbacks(self, key: str) -> int:
        with self._lock:
            return len(self._callbacks.get(key, []))

    def _register(self, token: ChangeToken, callback: Callable[[], None]) -> Callable[[], None]:
        with self._lock:
            if self.get_version(token.key) == token.version:
                self._callbacks.setdefault(token.key, []).append(callback)
                return lambda: self._unregister(token.key, callback)

        callback()
        return lambda: None

    def _unregister(self, key: str, callback: Callable[[], None]) -> None:
        with self._lock:
            callbacks = self._callbacks.get(key)
            if not callbacks:
                return
            # Already fired (and popped) when the key was signalled
            try:
                callbacks.remove(callback)
            except ValueError:
                return
            if not callbacks:
                del self._callbacks[key]


@event.listens_for(Session, "after_commit")
def _fire_pending_signals(session):
    for owner, key in session.info.pop(PENDING_SIGNALS_KEY, []):
        owner.signal_token(key)


@event.listens_for(Session, "after_rollback")
def _discard_pending_signals(session):
    discarded = session.info.pop(PENDING_SIGNALS_KEY, [])
    if discarded:
        logger.debug(f"Discarded {len(discarded)} deferred signals after rollback")


# Global signal shared by every request of this process
signal = Signal()
