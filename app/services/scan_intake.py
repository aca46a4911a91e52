"""
Scan intake: turn camera text or a typed email into a check-in candidate
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from app.core.config import settings
from app.exceptions import DecodeError, InvalidCode, NotFound, TokenExpired, WrongEvent
from app.services import token_codec
from app.services.repositories import AttendanceStore, EventInfo, RegistrantDirectory, RegistrantInfo, RSVPRecord

logger = logging.getLogger(__name__)

_DEFAULT = object()


@dataclass
class Candidate:
    """An RSVP resolved from a scan, not yet checked in by this attempt"""
    record: RSVPRecord
    registrant: RegistrantInfo
    event: EventInfo


class ScanIntake:
    """Read-only resolution of scans against the attendance store"""

    def __init__(
        self,
        store: AttendanceStore,
        directory: RegistrantDirectory,
        max_age_hours=_DEFAULT,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.directory = directory
        self.max_age_hours = settings.CHECKIN_TOKEN_MAX_AGE_HOURS if max_age_hours is _DEFAULT else max_age_hours
        self.clock = clock

    def resolve_by_token(self, raw_token: str, expected_event_id: Optional[str] = None) -> Candidate:
        try:
            token = token_codec.decode(raw_token, max_age_hours=self.max_age_hours, now=self.clock())
        except TokenExpired as exc:
            logger.warning(f"Rejected expired check-in token: {exc}")
            raise InvalidCode("This QR code has expired", reason="expired", issued_at=exc.issued_at)
        except DecodeError as exc:
            logger.warning(f"Rejected check-in token: {exc}")
            raise InvalidCode("Invalid QR code", reason=str(exc))

        if expected_event_id is not None and token.event_id != expected_event_id:
            logger.warning(f"Token for event {token.event_id} scanned at event {expected_event_id}")
            raise WrongEvent(expected_event_id, token.event_id)

        record = self.store.find_by_event_and_user(token.event_id, token.user_id)
        if not record:
            raise NotFound(
                "No RSVP found for this QR code",
                event_id=token.event_id,
                user_id=token.user_id,
            )

        return self._candidate(record)

    def resolve_by_email(self, event_id: str, email: str) -> Candidate:
        registrant = self.directory.find_by_email(email)
        if not registrant:
            raise NotFound("No member found with this email address", event_id=event_id, email=email)

        record = self.store.find_by_event_and_user(event_id, registrant.id)
        if not record:
            raise NotFound("No RSVP found for this member and event", event_id=event_id, email=email)

        return self._candidate(record, registrant)

    def resolve_by_rsvp(self, event_id: str, rsvp_id: str) -> Candidate:
        """Look up an RSVP already shown on the staff dashboard"""
        record = self.store.get(rsvp_id)
        if not record:
            raise NotFound("RSVP not found", event_id=event_id, rsvp_id=rsvp_id)
        if record.event_id != event_id:
            raise WrongEvent(event_id, record.event_id)

        return self._candidate(record)

    def _candidate(self, record: RSVPRecord, registrant: Optional[RegistrantInfo] = None) -> Candidate:
        event = self.store.get_event(record.event_id)
        if not event:
            raise NotFound("Event not found", event_id=record.event_id)

        registrant = registrant or self.directory.get(record.user_id)
        if not registrant:
            raise NotFound("Registrant not found", event_id=record.event_id, user_id=record.user_id)

        return Candidate(record=record, registrant=registrant, event=event)
