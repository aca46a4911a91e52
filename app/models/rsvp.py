"""
RSVP response model with attendance state
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class RSVPResponse(Base):
    __tablename__ = "rsvp_responses"
    
    id = Column(String(64), primary_key=True, index=True, default=new_id)
    event_id = Column(String(64), ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("registrants.id"), nullable=False, index=True)
    responses = Column(JSON, nullable=False, default=dict)  # field id -> {kind, value}
    
    # Payment
    payment_reference = Column(String(255), nullable=True)
    payment_confirmed = Column(Boolean, nullable=False, default=False)
    qr_code = Column(String(255), nullable=True)
    
    # Party and meals
    guest_count = Column(Integer, nullable=False, default=0)
    veg_count = Column(Integer, nullable=True)
    non_veg_count = Column(Integer, nullable=True)
    kids_count = Column(Integer, nullable=True)
    no_food = Column(Boolean, nullable=False, default=False)
    
    # Attendance
    checked_in = Column(Boolean, nullable=False, default=False)
    checked_in_at = Column(DateTime, nullable=True)
    food_token_given = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    # Relationships
    event = relationship("Event", back_populates="rsvps")
    registrant = relationship("Registrant", back_populates="rsvps")
    
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_rsvp_event_user"),)
