"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.exceptions import ResponseValidationError, ScanError
from app.schemas.rsvp import RSVPResponseOut, RSVPSubmit
from app.services import rsvp_service
from app.utils.responses import success_response, scan_error_response, answers_error_response
from app.utils.security import enforce_rate_limit

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.post("/events/{event_id}/rsvp", dependencies=[Depends(enforce_rate_limit)])
async def submit_rsvp(event_id: str, payload: RSVPSubmit, db: Session = Depends(get_db)):
    """Submit or update an RSVP"""
    try:
        rsvp = rsvp_service.submit_rsvp(db, event_id, payload)
    except ResponseValidationError as e:
        return answers_error_response(e)
    except ScanError as e:
        return scan_error_response(e)

    return success_response(
        message="RSVP saved successfully",
        data=RSVPResponseOut.model_validate(rsvp)
    )
