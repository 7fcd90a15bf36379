"""Session identity and inactivity expiry."""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from telemetry_tracker.models import TrackingError
from telemetry_tracker.storage import TrackingStorage

logger = logging.getLogger("telemetry_tracker.session")


@dataclass(frozen=True)
class SessionTransition:
    """A session rotation: events for ``old_id`` end, ``new_id`` begins.

    ``old_id`` is None when there was no previous session to close.
    """

    old_id: Optional[str]
    new_id: str


class SessionManager:
    """Tracks the current session id and when the last event was queued.

    ``last_event_time`` is persisted on every touch so expiry survives a
    process restart. Rotations are serialised by an internal lock so two
    callers can never both start a new session.
    """

    def __init__(self, storage: TrackingStorage, timeout_seconds: float) -> None:
        self._storage = storage
        self.timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._session_id: Optional[str] = None
        self._last_event_time: Optional[datetime] = None
        try:
            self._session_id = storage.get_previous_session_id()
            self._last_event_time = storage.get_last_event_time()
        except TrackingError as e:
            logger.warning("Failed to load persisted session; starting fresh: %s", e)

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def last_event_time(self) -> Optional[datetime]:
        return self._last_event_time

    def is_expired(self, now: datetime) -> bool:
        """True when more than the timeout has passed since the last event."""
        if self._last_event_time is None:
            return True
        elapsed = (now - self._last_event_time).total_seconds()
        return elapsed > self.timeout_seconds

    def recover_or_start(self, now: datetime) -> Optional[SessionTransition]:
        """Resume the persisted session if still live, else start a new one.

        Returns the transition when a new session was started, None when the
        persisted one was resumed.
        """
        with self._lock:
            if self._session_id and not self.is_expired(now):
                logger.debug("Resuming session %s", self._session_id)
                return None
            return self._rotate(now)

    def check_expiry(self, now: datetime) -> Optional[SessionTransition]:
        """Rotate the session if it has expired; return the transition."""
        with self._lock:
            if self._session_id and not self.is_expired(now):
                return None
            return self._rotate(now)

    def touch(self, now: datetime) -> None:
        """Record that an event was queued at ``now``."""
        with self._lock:
            self._last_event_time = now
        self._persist(last_event_time=now)

    def _rotate(self, now: datetime) -> SessionTransition:
        old_id = self._session_id
        new_id = str(uuid.uuid4())
        self._session_id = new_id
        self._last_event_time = now
        transition = SessionTransition(old_id=old_id, new_id=new_id)
        logger.debug("Session rotated: %s -> %s", old_id, new_id)
        self._persist(session_id=new_id, last_event_time=now)
        return transition

    def _persist(
        self, session_id: Optional[str] = None, last_event_time: Optional[datetime] = None
    ) -> None:
        # The in-memory session stays authoritative when storage fails.
        try:
            if session_id is not None:
                self._storage.set_previous_session_id(session_id)
            if last_event_time is not None:
                self._storage.set_last_event_time(last_event_time)
        except TrackingError as e:
            logger.warning("Failed to persist session state: %s", e)
