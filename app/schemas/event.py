"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from app.schemas.rsvp import RSVPField

class EventCreate(BaseModel):
    """Schema for creating an event"""
    title: str
    date: datetime
    location: str = ""
    rsvp_form: Optional[List[RSVPField]] = None

class EventResponse(BaseModel):
    """Basic event response"""
    id: str
    title: str
    date: datetime
    location: str
    rsvp_form: Optional[List[RSVPField]] = None
    created_at: datetime
    
    class Config:
        from_attributes = True

class CheckInStats(BaseModel):
    """Attendance counters for the check-in dashboard"""
    total: int
    checked_in: int
    pending: int
    percentage_complete: int
    total_food_coupons: int
    food_coupons_given: int
    veg_meals: int
    non_veg_meals: int
    kids_meals: int
    no_food_rsvps: int
