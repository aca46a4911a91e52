"""
Event check-in service with real-time broadcasting
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.api.ws import WebSocketManager
from app.schemas.checkin import ScanResult
from app.services.reconciler import CheckInReconciler
from app.services.repositories import get_stores
from app.services.scan_intake import ScanIntake

logger = logging.getLogger(__name__)

class CheckInService:
    """Service for handling event check-ins"""
    
    def __init__(self, websocket_manager: WebSocketManager):
        self.websocket_manager = websocket_manager
    
    async def check_in_by_token(
        self,
        event_id: str,
        token: str,
        db: Session,
        food_token_given: bool = False,
        notes: Optional[str] = None
    ) -> ScanResult:
        """Check in from scanned QR text; ScanError propagates to the caller"""
        store, directory = get_stores(db)
        candidate = ScanIntake(store, directory).resolve_by_token(token, expected_event_id=event_id)
        result = CheckInReconciler(store).check_in(candidate, food_token_given=food_token_given, notes=notes)
        await self.broadcast_checkin(event_id, result)
        return result
    
    async def check_in_by_email(
        self,
        event_id: str,
        email: str,
        db: Session,
        food_token_given: bool = False,
        notes: Optional[str] = None
    ) -> ScanResult:
        """Manual fallback when the code cannot be scanned"""
        store, directory = get_stores(db)
        candidate = ScanIntake(store, directory).resolve_by_email(event_id, email)
        result = CheckInReconciler(store).check_in(candidate, food_token_given=food_token_given, notes=notes)
        await self.broadcast_checkin(event_id, result)
        return result
    
    async def record_food_token(
        self,
        event_id: str,
        rsvp_id: str,
        db: Session,
        food_token_given: bool = True,
        notes: Optional[str] = None
    ) -> ScanResult:
        """Mark the food token for an RSVP that is already checked in"""
        store, directory = get_stores(db)
        candidate = ScanIntake(store, directory).resolve_by_rsvp(event_id, rsvp_id)
        result = CheckInReconciler(store).record_food_token(candidate, food_token_given=food_token_given, notes=notes)
        
        await self.websocket_manager.broadcast_to_event(event_id, {
            "type": "food_token",
            "rsvp_id": result.rsvp_id,
            "food_token_given": result.food_token_given,
            "timestamp": datetime.utcnow().isoformat()
        })
        return result
    
    def verify_token(self, event_id: str, token: str, db: Session) -> ScanResult:
        """Resolve a code and report its state without checking in"""
        store, directory = get_stores(db)
        candidate = ScanIntake(store, directory).resolve_by_token(token, expected_event_id=event_id)
        return CheckInReconciler(store).inspect(candidate)
    
    async def broadcast_checkin(self, event_id: str, result: ScanResult):
        """Push a first-time check-in to dashboards watching the event"""
        if not result.success or result.already_checked_in:
            return
        
        message = {
            "type": "checkin",
            "rsvp_id": result.rsvp_id,
            "registrant": result.registrant.dict() if result.registrant else None,
            "coupons_owed": result.coupons_owed,
            "food_token_given": result.food_token_given,
            "checked_in_at": result.checked_in_at.isoformat() if result.checked_in_at else None,
            "timestamp": datetime.utcnow().isoformat()
        }
        
        await self.websocket_manager.broadcast_to_event(event_id, message)
