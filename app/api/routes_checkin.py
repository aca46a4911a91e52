"""
Door check-in API routes - staff token required
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.ws import websocket_manager
from app.core.db import get_db
from app.exceptions import ScanError
from app.schemas.checkin import (
    FoodTokenRequest,
    ManualCheckInRequest,
    ScanSessionResponse,
    SessionScanRequest,
    TokenCheckInRequest,
)
from app.services.checkin_service import CheckInService
from app.services.excel_service import ExcelService
from app.services.reporting_service import ReportingService
from app.services.repositories import get_stores
from app.services.scan_session import ScanSession, scan_session_manager
from app.utils.responses import success_response, error_response, scan_error_response, not_found_error
from app.utils.security import verify_admin_token, enforce_rate_limit

router = APIRouter(dependencies=[Depends(verify_admin_token), Depends(enforce_rate_limit)])

# Initialize check-in service with WebSocket manager
checkin_service = CheckInService(websocket_manager)

def _checkin_message(already_checked_in: bool) -> str:
    return "Already checked in" if already_checked_in else "Successfully checked in"

def _session_data(session: ScanSession) -> dict:
    return ScanSessionResponse(
        session_id=session.id,
        event_id=session.event_id,
        poll_interval_ms=session.poll_interval_ms,
        active=session.active
    ).dict()

@router.get("/checkin/verify")
async def verify_code(event_id: str, token: str, db: Session = Depends(get_db)):
    """Look up a scanned code without checking in"""
    try:
        result = checkin_service.verify_token(event_id, token, db)
    except ScanError as e:
        return scan_error_response(e)
    
    return success_response(message="QR code is valid", data=result)

@router.post("/checkin/scan")
async def check_in_by_token(payload: TokenCheckInRequest, db: Session = Depends(get_db)):
    """Check in from camera-decoded QR text"""
    try:
        result = await checkin_service.check_in_by_token(
            event_id=payload.event_id,
            token=payload.token,
            db=db,
            food_token_given=payload.food_token_given,
            notes=payload.notes
        )
    except ScanError as e:
        return scan_error_response(e)
    
    return success_response(message=_checkin_message(result.already_checked_in), data=result)

@router.post("/checkin/manual")
async def check_in_by_email(payload: ManualCheckInRequest, db: Session = Depends(get_db)):
    """Check in by registrant email when the code will not scan"""
    try:
        result = await checkin_service.check_in_by_email(
            event_id=payload.event_id,
            email=payload.email,
            db=db,
            food_token_given=payload.food_token_given,
            notes=payload.notes
        )
    except ScanError as e:
        return scan_error_response(e)
    
    return success_response(message=_checkin_message(result.already_checked_in), data=result)

@router.post("/checkin/food-token")
async def record_food_token(payload: FoodTokenRequest, db: Session = Depends(get_db)):
    """Record a food token handed out after check-in"""
    try:
        result = await checkin_service.record_food_token(
            event_id=payload.event_id,
            rsvp_id=payload.rsvp_id,
            db=db,
            food_token_given=payload.food_token_given,
            notes=payload.notes
        )
    except ScanError as e:
        return scan_error_response(e)
    
    return success_response(message="Check-in updated", data=result)

@router.get("/checkin/stats")
async def checkin_stats(event_id: str, db: Session = Depends(get_db)):
    """Counters and recent check-ins for the door dashboard"""
    store, directory = get_stores(db)
    report = ReportingService.event_report(store, directory, event_id)
    if report is None:
        raise not_found_error("Event")
    
    return success_response(message="Check-in statistics retrieved", data=report)

@router.get("/events/{event_id}/export/attendance.xlsx")
async def export_attendance(event_id: str, db: Session = Depends(get_db)):
    """Download the attendance sheet"""
    store, directory = get_stores(db)
    content = ExcelService.export_attendance(store, directory, event_id)
    if content is None:
        raise not_found_error("Event")
    
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=attendance_{event_id}.xlsx"}
    )

# -------- Scan sessions --------

@router.post("/checkin/sessions")
async def start_scan_session(event_id: str, db: Session = Depends(get_db)):
    """Start a camera capture session for one event"""
    store, _ = get_stores(db)
    if not store.get_event(event_id):
        raise not_found_error("Event")
    
    session = scan_session_manager.start(event_id)
    return success_response(message="Scan session started", data=_session_data(session), status_code=201)

@router.post("/checkin/sessions/{session_id}/scan")
async def submit_session_scan(session_id: str, payload: SessionScanRequest, db: Session = Depends(get_db)):
    """Submit a decoded frame; only the first decode of a session is checked in"""
    session = scan_session_manager.get(session_id)
    if not session:
        raise not_found_error("Scan session")
    
    decoded = session.offer(payload.token)
    if decoded is None:
        return error_response(
            message="Scan session is stopped. Resume it to scan the next code.",
            error_code="session_stopped",
            details=_session_data(session),
            status_code=409
        )
    
    try:
        result = await checkin_service.check_in_by_token(
            event_id=session.event_id,
            token=decoded,
            db=db,
            food_token_given=payload.food_token_given,
            notes=payload.notes
        )
    except ScanError as e:
        return scan_error_response(e)
    
    return success_response(message=_checkin_message(result.already_checked_in), data=result)

@router.post("/checkin/sessions/{session_id}/resume")
async def resume_scan_session(session_id: str):
    """Re-arm a session for the next badge"""
    session = scan_session_manager.get(session_id)
    if not session:
        raise not_found_error("Scan session")
    
    session.resume()
    return success_response(message="Scan session resumed", data=_session_data(session))

@router.delete("/checkin/sessions/{session_id}")
async def close_scan_session(session_id: str):
    """Stop a session when the operator leaves the scanner"""
    if not scan_session_manager.close(session_id):
        raise not_found_error("Scan session")
    
    return success_response(message="Scan session closed")
