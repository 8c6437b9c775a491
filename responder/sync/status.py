"""
Engine Status

EngineStatus is an immutable snapshot of what the polling engine is doing.
StatusBroadcaster owns the current snapshot, swaps in a new one on every
update and hands it to each subscriber.
"""

import logging
import threading
from dataclasses import dataclass, replace, asdict
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("responder.sync.status")

StatusCallback = Callable[["EngineStatus"], None]


@dataclass(frozen=True)
class EngineStatus:
    """Snapshot of the polling engine"""
    active: bool = False
    last_check_at: Optional[datetime] = None
    documents_monitored: int = 0
    comments_processed: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["last_check_at"] = self.last_check_at.isoformat() if self.last_check_at else None
        return data


class StatusBroadcaster:
    """
    Holds the current EngineStatus and publishes replacements.

    Readers get whole snapshots only: update() builds a new record and swaps
    the reference, it never mutates the published one.
    """

    def __init__(self, initial: Optional[EngineStatus] = None):
        self._status = initial or EngineStatus()
        self._subscribers: List[StatusCallback] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> EngineStatus:
        return self._status

    def subscribe(self, callback: StatusCallback) -> Callable[[], None]:
        """Register callback; returns a function that unregisters it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def update(self, **changes) -> EngineStatus:
        """Replace the snapshot with one carrying changes and notify subscribers."""
        with self._lock:
            self._status = replace(self._status, **changes)
            snapshot = self._status
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Status subscriber %r failed", callback)
        return snapshot

    def record_error(self, message: str) -> EngineStatus:
        return self.update(last_error=message)

    def increment_processed(self) -> EngineStatus:
        with self._lock:
            count = self._status.comments_processed + 1
        return self.update(comments_processed=count)
