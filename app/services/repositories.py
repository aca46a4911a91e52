"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

Both backends hand out plain snapshots (EventInfo, RegistrantInfo, RSVPRecord)
so the check-in flow never touches ORM objects or Firestore documents.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

from firebase_admin import firestore
from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.exceptions import NotFound, StoreConflict
from app.models import Event, Registrant, RSVPResponse
from app.services.firebase_client import get_firestore_client

logger = logging.getLogger(__name__)


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Firestore returns aware datetimes, SQLite naive ones"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# -------- Snapshots --------

@dataclass
class EventInfo:
    id: str
    title: str
    date: datetime
    location: str = ""
    rsvp_form: Optional[List[Dict[str, Any]]] = None


@dataclass
class RegistrantInfo:
    id: str
    name: str
    email: str
    mobile_number: Optional[str] = None


@dataclass
class RSVPRecord:
    id: str
    event_id: str
    user_id: str
    responses: Dict[str, Any] = field(default_factory=dict)
    payment_reference: Optional[str] = None
    payment_confirmed: bool = False
    qr_code: Optional[str] = None
    guest_count: int = 0
    veg_count: Optional[int] = None
    non_veg_count: Optional[int] = None
    kids_count: Optional[int] = None
    no_food: bool = False
    checked_in: bool = False
    checked_in_at: Optional[datetime] = None
    food_token_given: bool = False
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, rsvp_id: str, data: Dict[str, Any]) -> "RSVPRecord":
        return cls(
            id=rsvp_id,
            event_id=data["event_id"],
            user_id=data["user_id"],
            responses=data.get("responses") or {},
            payment_reference=data.get("payment_reference"),
            payment_confirmed=bool(data.get("payment_confirmed")),
            qr_code=data.get("qr_code"),
            guest_count=int(data.get("guest_count") or 0),
            veg_count=data.get("veg_count"),
            non_veg_count=data.get("non_veg_count"),
            kids_count=data.get("kids_count"),
            no_food=bool(data.get("no_food")),
            checked_in=bool(data.get("checked_in")),
            checked_in_at=naive_utc(data.get("checked_in_at")),
            food_token_given=bool(data.get("food_token_given")),
            notes=data.get("notes"),
        )

    @classmethod
    def from_model(cls, rsvp: RSVPResponse) -> "RSVPRecord":
        return cls(
            id=rsvp.id,
            event_id=rsvp.event_id,
            user_id=rsvp.user_id,
            responses=dict(rsvp.responses or {}),
            payment_reference=rsvp.payment_reference,
            payment_confirmed=bool(rsvp.payment_confirmed),
            qr_code=rsvp.qr_code,
            guest_count=rsvp.guest_count or 0,
            veg_count=rsvp.veg_count,
            non_veg_count=rsvp.non_veg_count,
            kids_count=rsvp.kids_count,
            no_food=bool(rsvp.no_food),
            checked_in=bool(rsvp.checked_in),
            checked_in_at=rsvp.checked_in_at,
            food_token_given=bool(rsvp.food_token_given),
            notes=rsvp.notes,
        )


# -------- Contracts --------

class AttendanceStore(Protocol):
    def get_event(self, event_id: str) -> Optional[EventInfo]: ...
    def get(self, rsvp_id: str) -> Optional[RSVPRecord]: ...
    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RSVPRecord]: ...
    def list_for_event(self, event_id: str) -> List[RSVPRecord]: ...
    def transactional_update(
        self, rsvp_id: str, patch: Dict[str, Any], expected: Optional[Dict[str, Any]] = None
    ) -> RSVPRecord: ...


class RegistrantDirectory(Protocol):
    def get(self, user_id: str) -> Optional[RegistrantInfo]: ...
    def find_by_email(self, email: str) -> Optional[RegistrantInfo]: ...


# -------- SQLAlchemy backend --------

class SqlAttendanceStore:
    def __init__(self, db: Session):
        self.db = db

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        event = self.db.query(Event).filter(Event.id == event_id).first()
        if not event:
            return None
        return EventInfo(
            id=event.id,
            title=event.title,
            date=event.date,
            location=event.location or "",
            rsvp_form=event.rsvp_form,
        )

    def get(self, rsvp_id: str) -> Optional[RSVPRecord]:
        rsvp = self.db.query(RSVPResponse).filter(RSVPResponse.id == rsvp_id).first()
        return RSVPRecord.from_model(rsvp) if rsvp else None

    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RSVPRecord]:
        rsvp = self.db.query(RSVPResponse).filter(
            RSVPResponse.event_id == event_id,
            RSVPResponse.user_id == user_id
        ).first()
        return RSVPRecord.from_model(rsvp) if rsvp else None

    def list_for_event(self, event_id: str) -> List[RSVPRecord]:
        rsvps = self.db.query(RSVPResponse).filter(RSVPResponse.event_id == event_id).all()
        return [RSVPRecord.from_model(r) for r in rsvps]

    def transactional_update(
        self,
        rsvp_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> RSVPRecord:
        """Compare-and-set: apply ``patch`` only while every ``expected`` column still matches"""
        stmt = update(RSVPResponse).where(RSVPResponse.id == rsvp_id)
        for column, value in (expected or {}).items():
            stmt = stmt.where(getattr(RSVPResponse, column) == value)
        stmt = stmt.values(**patch, updated_at=datetime.utcnow()).execution_options(synchronize_session=False)

        result = self.db.execute(stmt)
        if result.rowcount != 1:
            self.db.rollback()
            if self.get(rsvp_id) is None:
                raise NotFound("RSVP not found", rsvp_id=rsvp_id)
            logger.warning(f"Compare-and-set lost for RSVP {rsvp_id} (expected {expected})")
            raise StoreConflict("RSVP was modified concurrently", rsvp_id=rsvp_id)

        self.db.commit()
        return self.get(rsvp_id)


class SqlRegistrantDirectory:
    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _info(registrant: Registrant) -> RegistrantInfo:
        return RegistrantInfo(
            id=registrant.id,
            name=registrant.full_name,
            email=registrant.email,
            mobile_number=registrant.mobile_number,
        )

    def get(self, user_id: str) -> Optional[RegistrantInfo]:
        registrant = self.db.query(Registrant).filter(Registrant.id == user_id).first()
        return self._info(registrant) if registrant else None

    def find_by_email(self, email: str) -> Optional[RegistrantInfo]:
        registrant = self.db.query(Registrant).filter(
            func.lower(Registrant.email) == email.strip().lower()
        ).first()
        return self._info(registrant) if registrant else None


# -------- Firestore backend --------
# Collections: events/{event_id}, registrants/{user_id}, rsvps/{rsvp_id}

class FirestoreAttendanceStore:
    def __init__(self, client=None):
        self.fs = client or get_firestore_client()

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        doc = self.fs.collection("events").document(event_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        return EventInfo(
            id=doc.id,
            title=data.get("title", ""),
            date=naive_utc(data.get("date")),
            location=data.get("location", ""),
            rsvp_form=data.get("rsvp_form"),
        )

    def get(self, rsvp_id: str) -> Optional[RSVPRecord]:
        doc = self.fs.collection("rsvps").document(rsvp_id).get()
        return RSVPRecord.from_dict(doc.id, doc.to_dict()) if doc.exists else None

    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RSVPRecord]:
        docs = self.fs.collection("rsvps").where("event_id", "==", event_id).where("user_id", "==", user_id).limit(1).get()
        if not docs:
            return None
        return RSVPRecord.from_dict(docs[0].id, docs[0].to_dict())

    def list_for_event(self, event_id: str) -> List[RSVPRecord]:
        docs = self.fs.collection("rsvps").where("event_id", "==", event_id).get()
        return [RSVPRecord.from_dict(d.id, d.to_dict()) for d in docs]

    def transactional_update(
        self,
        rsvp_id: str,
        patch: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> RSVPRecord:
        ref = self.fs.collection("rsvps").document(rsvp_id)
        transaction = self.fs.transaction()

        @firestore.transactional
        def apply(transaction, ref) -> Tuple[str, Dict[str, Any]]:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFound("RSVP not found", rsvp_id=rsvp_id)
            data = snapshot.to_dict()
            for key, value in (expected or {}).items():
                if data.get(key) != value:
                    raise StoreConflict("RSVP was modified concurrently", rsvp_id=rsvp_id)
            changes = dict(patch, updated_at=datetime.utcnow())
            transaction.update(ref, changes)
            data.update(changes)
            return snapshot.id, data

        doc_id, data = apply(transaction, ref)
        return RSVPRecord.from_dict(doc_id, data)


class FirestoreRegistrantDirectory:
    def __init__(self, client=None):
        self.fs = client or get_firestore_client()

    @staticmethod
    def _info(doc_id: str, data: Dict[str, Any]) -> RegistrantInfo:
        name = f"{data.get('first_name', '')} {data.get('last_name', '')}".strip()
        return RegistrantInfo(id=doc_id, name=name, email=data.get("email", ""), mobile_number=data.get("mobile_number"))

    def get(self, user_id: str) -> Optional[RegistrantInfo]:
        doc = self.fs.collection("registrants").document(user_id).get()
        return self._info(doc.id, doc.to_dict()) if doc.exists else None

    def find_by_email(self, email: str) -> Optional[RegistrantInfo]:
        docs = self.fs.collection("registrants").where("email_lower", "==", email.strip().lower()).limit(1).get()
        if not docs:
            return None
        return self._info(docs[0].id, docs[0].to_dict())


def get_stores(db: Session) -> Tuple[AttendanceStore, RegistrantDirectory]:
    """Pick the configured backend"""
    if use_firestore():
        client = get_firestore_client()
        return FirestoreAttendanceStore(client), FirestoreRegistrantDirectory(client)
    return SqlAttendanceStore(db), SqlRegistrantDirectory(db)
