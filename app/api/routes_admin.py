"""
Admin API routes - requires authentication
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import Response
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.routes_checkin import checkin_service
from app.core.db import get_db
from app.exceptions import ScanError
from app.models import Event, Registrant, RSVPResponse
from app.schemas.admin import AdminAction, ApprovePayment, CheckIn, ManualCheckIn, RejectPayment
from app.schemas.event import EventCreate, EventResponse
from app.schemas.rsvp import RegistrantCreate
from app.services import rsvp_service
from app.services.qr_service import QRService
from app.services.repositories import get_stores
from app.utils.responses import success_response, error_response, scan_error_response, not_found_error
from app.utils.security import enforce_rate_limit, verify_admin_token

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_admin_token)])

_action_adapter = TypeAdapter(AdminAction)

@router.post("/events")
async def create_event(event_data: EventCreate, db: Session = Depends(get_db)):
    """Create a new event"""
    event = Event(
        title=event_data.title,
        date=event_data.date,
        location=event_data.location,
        rsvp_form=[f.dict() for f in event_data.rsvp_form] if event_data.rsvp_form else None
    )

    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Event {event.id} created: {event.title}")

    return success_response(
        message="Event created successfully",
        data=EventResponse.model_validate(event),
        status_code=201
    )

@router.post("/registrants")
async def create_registrant(data: RegistrantCreate, db: Session = Depends(get_db)):
    """Add a member who can RSVP to events"""
    email = data.email.lower()
    if db.query(Registrant).filter(func.lower(Registrant.email) == email).first():
        return error_response(message="A member with this email already exists", status_code=409)

    registrant = Registrant(
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        mobile_number=data.mobile_number
    )
    db.add(registrant)
    db.commit()
    db.refresh(registrant)

    return success_response(
        message="Member created successfully",
        data={"id": registrant.id, "name": registrant.full_name, "email": registrant.email},
        status_code=201
    )

@router.get("/events/{event_id}/rsvps")
async def list_rsvps(event_id: str, db: Session = Depends(get_db)):
    """List RSVPs with payment and attendance state"""
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise not_found_error("Event")

    rsvps = db.query(RSVPResponse).filter(RSVPResponse.event_id == event_id).order_by(RSVPResponse.created_at).all()

    return success_response(
        message="RSVPs retrieved",
        data=[
            {
                "id": rsvp.id,
                "name": rsvp.registrant.full_name,
                "email": rsvp.registrant.email,
                "guest_count": rsvp.guest_count,
                "payment_reference": rsvp.payment_reference,
                "payment_status": (
                    "confirmed" if rsvp.payment_confirmed
                    else "pending" if rsvp.payment_reference
                    else "none"
                ),
                "checked_in": rsvp.checked_in,
                "checked_in_at": rsvp.checked_in_at,
                "food_token_given": rsvp.food_token_given,
            }
            for rsvp in rsvps
        ]
    )

@router.post("/actions", dependencies=[Depends(enforce_rate_limit)])
async def apply_admin_action(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Run one admin action; the ``action`` field selects the variant"""
    try:
        action = _action_adapter.validate_python(payload)
    except ValidationError as e:
        return error_response(
            message="Invalid admin action",
            error_code="invalid_action",
            details=jsonable_encoder(e.errors(include_url=False, include_context=False)),
            status_code=422
        )

    store, _ = get_stores(db)
    try:
        if isinstance(action, ApprovePayment):
            record = rsvp_service.approve_payment(store, action.rsvp_id)
            return success_response(
                message="Payment approved and QR code generated",
                data={"rsvp_id": record.id, "qr_code": record.qr_code}
            )

        if isinstance(action, RejectPayment):
            record = rsvp_service.reject_payment(store, action.rsvp_id)
            return success_response(message="Payment rejected", data={"rsvp_id": record.id})

        if isinstance(action, CheckIn):
            result = await checkin_service.check_in_by_token(
                event_id=action.event_id,
                token=action.token,
                db=db,
                food_token_given=action.food_token_given,
                notes=action.notes
            )
        elif isinstance(action, ManualCheckIn):
            result = await checkin_service.check_in_by_email(
                event_id=action.event_id,
                email=action.email,
                db=db,
                food_token_given=action.food_token_given,
                notes=action.notes
            )
    except ScanError as e:
        return scan_error_response(e)

    message = "Already checked in" if result.already_checked_in else "Successfully checked in"
    return success_response(message=message, data=result)

@router.get("/rsvps/{rsvp_id}/qr.png")
async def get_rsvp_qr(rsvp_id: str, db: Session = Depends(get_db)):
    """QR image carrying the RSVP's check-in token"""
    store, _ = get_stores(db)
    record = store.get(rsvp_id)
    if not record:
        raise not_found_error("RSVP")
    if not record.qr_code:
        return error_response(
            message="No QR code issued yet; approve the payment first",
            error_code="payment_not_confirmed",
            status_code=409
        )

    return Response(
        content=QRService.generate_checkin_qr(record.qr_code),
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=checkin_{rsvp_id}.png"}
    )
