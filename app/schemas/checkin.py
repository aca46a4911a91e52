"""
Check-in request and result schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr

class TokenCheckInRequest(BaseModel):
    """Camera-decoded QR text submitted by staff"""
    event_id: str
    token: str
    food_token_given: bool = False
    notes: Optional[str] = None

class ManualCheckInRequest(BaseModel):
    """Fallback when the code cannot be scanned"""
    event_id: str
    email: EmailStr
    food_token_given: bool = False
    notes: Optional[str] = None

class SessionScanRequest(BaseModel):
    """Decoded frame from a scan session; the session fixes the event"""
    token: str
    food_token_given: bool = False
    notes: Optional[str] = None

class FoodTokenRequest(BaseModel):
    """Food token handed out after the registrant was checked in"""
    event_id: str
    rsvp_id: str
    food_token_given: bool = True
    notes: Optional[str] = None

class RegistrantSummary(BaseModel):
    name: str
    email: str

class EventSummary(BaseModel):
    title: str
    date: datetime
    location: str

class ScanResult(BaseModel):
    """Outcome of one check-in attempt; never persisted"""
    success: bool
    already_checked_in: bool = False
    coupons_owed: int = 0
    rsvp_id: Optional[str] = None
    registrant: Optional[RegistrantSummary] = None
    event: Optional[EventSummary] = None
    payment_confirmed: Optional[bool] = None
    checked_in_at: Optional[datetime] = None
    food_token_given: bool = False
    notes: Optional[str] = None

class ScanSessionResponse(BaseModel):
    session_id: str
    event_id: str
    poll_interval_ms: int
    active: bool
