"""
Check-in reconciler.

The only writer of the checked-in transition. Each RSVP moves from
not-checked-in to checked-in at most once; the store's compare-and-set on
``checked_in`` decides which of several concurrent attempts wins.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.core.config import settings
from app.exceptions import EventClosed, NotCheckedIn, PaymentNotConfirmed, StoreConflict
from app.schemas.checkin import EventSummary, RegistrantSummary, ScanResult
from app.services.repositories import AttendanceStore, RSVPRecord
from app.services.scan_intake import Candidate

logger = logging.getLogger(__name__)

_DEFAULT = object()


def coupons_owed(record: RSVPRecord) -> int:
    """Food coupons for the registrant plus declared guests"""
    return 1 + max(record.guest_count or 0, 0)


class CheckInReconciler:

    def __init__(
        self,
        store: AttendanceStore,
        clock: Callable[[], datetime] = datetime.utcnow,
        close_after_hours=_DEFAULT,
    ):
        self.store = store
        self.clock = clock
        self.close_after_hours = settings.CHECKIN_CLOSE_AFTER_HOURS if close_after_hours is _DEFAULT else close_after_hours

    def inspect(self, candidate: Candidate) -> ScanResult:
        """Describe a candidate without touching the store"""
        return self._result(candidate, candidate.record, already_checked_in=candidate.record.checked_in)

    def check_in(
        self,
        candidate: Candidate,
        food_token_given: bool = False,
        notes: Optional[str] = None
    ) -> ScanResult:
        record = candidate.record

        if not record.payment_confirmed:
            logger.warning(f"Check-in refused for RSVP {record.id}: payment not confirmed")
            raise PaymentNotConfirmed(
                "Payment not confirmed for this RSVP",
                rsvp_id=record.id,
                payment_reference=record.payment_reference,
            )

        if record.checked_in:
            return self._result(candidate, record, already_checked_in=True)

        now = self.clock()
        self._ensure_open(candidate, now)

        try:
            updated = self.store.transactional_update(
                record.id,
                {
                    "checked_in": True,
                    "checked_in_at": now,
                    "food_token_given": bool(food_token_given),
                    "notes": notes,
                },
                expected={"checked_in": False},
            )
        except StoreConflict:
            # Someone else checked this RSVP in between our read and write
            current = self.store.get(record.id)
            if current is not None and current.checked_in:
                logger.info(f"RSVP {record.id} was checked in by a concurrent scan")
                return self._result(candidate, current, already_checked_in=True)
            raise

        logger.info(
            f"Checked in RSVP {updated.id} ({candidate.registrant.email}) for event {updated.event_id}; "
            f"coupons owed {coupons_owed(updated)}, food token given {updated.food_token_given}"
        )
        return self._result(candidate, updated, already_checked_in=False)

    def record_food_token(
        self,
        candidate: Candidate,
        food_token_given: bool = True,
        notes: Optional[str] = None
    ) -> ScanResult:
        """Update food token and notes for someone already at the event.

        Never touches ``checked_in`` or ``checked_in_at``; notes are kept
        when none are given.
        """
        record = candidate.record
        if not record.checked_in:
            raise NotCheckedIn("Check this registrant in before handing out food tokens", rsvp_id=record.id)

        patch = {"food_token_given": bool(food_token_given)}
        if notes is not None:
            patch["notes"] = notes

        updated = self.store.transactional_update(record.id, patch, expected={"checked_in": True})
        logger.info(f"Food token for RSVP {updated.id} set to {updated.food_token_given}")
        return self._result(candidate, updated, already_checked_in=True)

    def _ensure_open(self, candidate: Candidate, now: datetime) -> None:
        if self.close_after_hours is None or candidate.event.date is None:
            return
        closes_at = candidate.event.date + timedelta(hours=self.close_after_hours)
        if now > closes_at:
            raise EventClosed(
                "This event has ended and check-in is no longer available",
                event_id=candidate.event.id,
                closed_at=closes_at.isoformat(),
            )

    @staticmethod
    def _result(candidate: Candidate, record: RSVPRecord, already_checked_in: bool) -> ScanResult:
        return ScanResult(
            success=True,
            already_checked_in=already_checked_in,
            coupons_owed=coupons_owed(record),
            rsvp_id=record.id,
            registrant=RegistrantSummary(name=candidate.registrant.name, email=candidate.registrant.email),
            event=EventSummary(
                title=candidate.event.title,
                date=candidate.event.date,
                location=candidate.event.location,
            ),
            payment_confirmed=record.payment_confirmed,
            checked_in_at=record.checked_in_at,
            food_token_given=record.food_token_given,
            notes=record.notes,
        )
