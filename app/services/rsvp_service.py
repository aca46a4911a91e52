"""
RSVP submission, typed answers and payment review
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.exceptions import NotFound, ResponseValidationError, StoreConflict
from app.models import Event, Registrant, RSVPResponse
from app.schemas.rsvp import Answer, RSVPField, RSVPSubmit
from app.services import token_codec
from app.services.repositories import AttendanceStore, RSVPRecord

logger = logging.getLogger(__name__)

# form field type -> answer kind
FIELD_KINDS = {
    "text": "text",
    "number": "number",
    "select": "choice",
    "radio": "choice",
    "checkbox": "boolean",
}

_answer_adapter = TypeAdapter(Answer)


def _coerce(kind: str, value: Any) -> Any:
    """Wrap a bare submitted value into a tagged answer"""
    if kind == "number" and isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            pass
    return {"kind": kind, "value": value}


def _value_fits(kind: str, value: Any) -> bool:
    if kind == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == "boolean":
        return isinstance(value, bool)
    return isinstance(value, str)


def parse_responses(form: Optional[List[Any]], raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Validate answers against an event's RSVP form.

    Answers may arrive tagged (``{"kind": ..., "value": ...}``) or as bare
    values; both are checked against the declared field type. All problems
    are collected and raised together as ResponseValidationError.
    """
    fields = [f if isinstance(f, RSVPField) else RSVPField(**f) for f in (form or [])]
    by_id = {f.id: f for f in fields}
    raw = raw or {}
    errors: List[str] = []
    parsed: Dict[str, Any] = {}

    for field_id in raw:
        if field_id not in by_id:
            errors.append(f"Unknown field '{field_id}'")

    for field in fields:
        value = raw.get(field.id)
        if value is None or value == "":
            if field.required:
                errors.append(f"'{field.label}' is required")
            continue

        kind = FIELD_KINDS[field.type]
        tagged = value if isinstance(value, dict) else _coerce(kind, value)
        if tagged.get("kind") != kind:
            errors.append(f"'{field.label}' expects a {kind} answer")
            continue

        if not _value_fits(kind, tagged.get("value")):
            errors.append(f"'{field.label}' has an invalid {kind} value")
            continue

        try:
            answer = _answer_adapter.validate_python(tagged)
        except ValidationError:
            errors.append(f"'{field.label}' has an invalid {kind} value")
            continue

        if kind == "choice" and field.options and answer.value not in field.options:
            errors.append(f"'{field.label}' must be one of: {', '.join(field.options)}")
            continue

        parsed[field.id] = answer

    if errors:
        raise ResponseValidationError(errors)
    return parsed


def submit_rsvp(db: Session, event_id: str, payload: RSVPSubmit) -> RSVPResponse:
    """Create or update the registrant's RSVP for an event"""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFound("Event not found", event_id=event_id)

    registrant = db.query(Registrant).filter(func.lower(Registrant.email) == payload.email.lower()).first()
    if not registrant:
        raise NotFound("No member found with this email address", email=payload.email)

    answers = parse_responses(event.rsvp_form, payload.responses)
    stored = {field_id: answer.dict() for field_id, answer in answers.items()}

    rsvp = db.query(RSVPResponse).filter(
        RSVPResponse.event_id == event_id,
        RSVPResponse.user_id == registrant.id
    ).first()

    if rsvp is None:
        rsvp = RSVPResponse(event_id=event_id, user_id=registrant.id)
        db.add(rsvp)
    elif rsvp.checked_in:
        raise StoreConflict("RSVP cannot be changed after check-in", rsvp_id=rsvp.id)

    rsvp.responses = stored
    rsvp.payment_reference = payload.payment_reference or rsvp.payment_reference
    rsvp.guest_count = payload.guest_count
    rsvp.veg_count = payload.veg_count
    rsvp.non_veg_count = payload.non_veg_count
    rsvp.kids_count = payload.kids_count
    rsvp.no_food = payload.no_food

    db.commit()
    db.refresh(rsvp)
    logger.info(f"RSVP {rsvp.id} saved for {registrant.email} at event {event_id}")
    return rsvp


def approve_payment(store: AttendanceStore, rsvp_id: str, now: Optional[datetime] = None) -> RSVPRecord:
    """Confirm payment and issue the check-in token for the QR code"""
    record = store.get(rsvp_id)
    if not record:
        raise NotFound("RSVP not found", rsvp_id=rsvp_id)

    token = token_codec.encode(record.event_id, record.user_id, now or datetime.utcnow())
    updated = store.transactional_update(rsvp_id, {"payment_confirmed": True, "qr_code": token})
    logger.info(f"Payment approved for RSVP {rsvp_id}")
    return updated


def reject_payment(store: AttendanceStore, rsvp_id: str) -> RSVPRecord:
    """Withdraw payment confirmation; not allowed once the registrant is checked in"""
    record = store.get(rsvp_id)
    if not record:
        raise NotFound("RSVP not found", rsvp_id=rsvp_id)
    if record.checked_in:
        raise StoreConflict("Cannot reject payment for a checked-in RSVP", rsvp_id=rsvp_id)

    updated = store.transactional_update(
        rsvp_id,
        {"payment_confirmed": False, "qr_code": None},
        expected={"checked_in": False},
    )
    logger.info(f"Payment rejected for RSVP {rsvp_id}")
    return updated
