"""
Scan sessions owning one camera capture loop each.

A capture client polls frames at a fixed interval and offers every decoded
string to its session. The first decode stops the session so later frames of
the same physical badge are dropped instead of submitted again.
"""

import logging
import secrets
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from app.core.config import settings

logger = logging.getLogger(__name__)


class ScanSession:
    ACTIVE = "active"
    STOPPED = "stopped"

    def __init__(
        self,
        event_id: str,
        poll_interval_ms: Optional[int] = None,
        session_id: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.id = session_id or secrets.token_urlsafe(12)
        self.event_id = event_id
        self.poll_interval_ms = poll_interval_ms or settings.SCAN_POLL_INTERVAL_MS
        self.state = self.ACTIVE
        self.clock = clock
        self.started_at = clock()
        self.last_seen = self.started_at
        self.last_decoded: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self.state == self.ACTIVE

    def touch(self) -> None:
        self.last_seen = self.clock()

    def idle_for(self, now: datetime) -> timedelta:
        return now - self.last_seen

    def offer(self, decoded_text: Optional[str]) -> Optional[str]:
        """Accept the first non-empty decode and stop; None once stopped"""
        self.touch()
        if not decoded_text or not decoded_text.strip():
            return None
        with self._lock:
            if self.state != self.ACTIVE:
                return None
            self.state = self.STOPPED
            self.last_decoded = decoded_text.strip()
        logger.info(f"Scan session {self.id} captured a code for event {self.event_id}")
        return self.last_decoded

    def resume(self) -> None:
        self.touch()
        with self._lock:
            self.state = self.ACTIVE

    def stop(self) -> None:
        with self._lock:
            self.state = self.STOPPED

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False


class ScanSessionManager:
    """Registry of live scan sessions, keyed by session id.

    Sessions a client abandons without closing are dropped once they have
    been idle for ``idle_minutes``; the sweep runs on every start and lookup.
    """

    def __init__(self, idle_minutes: Optional[int] = None, clock: Callable[[], datetime] = datetime.utcnow):
        self.sessions: Dict[str, ScanSession] = {}
        self.idle_timeout = timedelta(minutes=idle_minutes or settings.SCAN_SESSION_IDLE_MINUTES)
        self.clock = clock
        self._lock = threading.Lock()

    def start(self, event_id: str) -> ScanSession:
        self.reap_idle()
        session = ScanSession(event_id, clock=self.clock)
        with self._lock:
            self.sessions[session.id] = session
        logger.info(f"Scan session {session.id} started for event {event_id}")
        return session

    def get(self, session_id: str) -> Optional[ScanSession]:
        self.reap_idle()
        session = self.sessions.get(session_id)
        if session:
            session.touch()
        return session

    def close(self, session_id: str) -> bool:
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if not session:
            return False
        session.stop()
        logger.info(f"Scan session {session_id} closed")
        return True

    def reap_idle(self) -> int:
        """Stop and forget sessions idle past the timeout"""
        now = self.clock()
        with self._lock:
            expired = [s for s in self.sessions.values() if s.idle_for(now) > self.idle_timeout]
            for session in expired:
                del self.sessions[session.id]
        for session in expired:
            session.stop()
            logger.info(f"Scan session {session.id} for event {session.event_id} expired after inactivity")
        return len(expired)

    def active_count(self, event_id: Optional[str] = None) -> int:
        return sum(
            1 for s in self.sessions.values()
            if s.active and (event_id is None or s.event_id == event_id)
        )


# Global scan session registry
scan_session_manager = ScanSessionManager()
