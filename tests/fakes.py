"""
In-memory attendance store used to force interleavings in tests
"""

import copy
import threading
from typing import Any, Dict, List, Optional

from app.exceptions import NotFound, StoreConflict
from app.services.repositories import EventInfo, RegistrantInfo, RSVPRecord


class InMemoryAttendanceStore:
    def __init__(self, events: List[EventInfo], records: List[RSVPRecord]):
        self.events = {e.id: e for e in events}
        self.records = {r.id: copy.deepcopy(r) for r in records}
        self.writes = 0
        self._lock = threading.Lock()

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        return self.events.get(event_id)

    def get(self, rsvp_id: str) -> Optional[RSVPRecord]:
        with self._lock:
            record = self.records.get(rsvp_id)
            return copy.deepcopy(record) if record else None

    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RSVPRecord]:
        with self._lock:
            for record in self.records.values():
                if record.event_id == event_id and record.user_id == user_id:
                    return copy.deepcopy(record)
        return None

    def list_for_event(self, event_id: str) -> List[RSVPRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in self.records.values() if r.event_id == event_id]

    def transactional_update(self, rsvp_id: str, patch: Dict[str, Any], expected: Optional[Dict[str, Any]] = None) -> RSVPRecord:
        with self._lock:
            record = self.records.get(rsvp_id)
            if record is None:
                raise NotFound("RSVP not found", rsvp_id=rsvp_id)
            for key, value in (expected or {}).items():
                if getattr(record, key) != value:
                    raise StoreConflict("RSVP was modified concurrently", rsvp_id=rsvp_id)
            for key, value in patch.items():
                setattr(record, key, value)
            self.writes += 1
            return copy.deepcopy(record)


class InMemoryRegistrantDirectory:
    def __init__(self, registrants: List[RegistrantInfo]):
        self.registrants = {r.id: r for r in registrants}

    def get(self, user_id: str) -> Optional[RegistrantInfo]:
        return self.registrants.get(user_id)

    def find_by_email(self, email: str) -> Optional[RegistrantInfo]:
        email = email.strip().lower()
        return next((r for r in self.registrants.values() if r.email.lower() == email), None)
