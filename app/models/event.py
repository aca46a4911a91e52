"""
Event model
"""

import secrets
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.orm import relationship

from app.core.db import Base

def new_id() -> str:
    return secrets.token_hex(12)

class Event(Base):
    __tablename__ = "events"
    
    id = Column(String(64), primary_key=True, index=True, default=new_id)
    title = Column(String(255), nullable=False)
    date = Column(DateTime, nullable=False)
    location = Column(String(255), nullable=False, default="")
    rsvp_form = Column(JSON, nullable=True)  # list of field definitions
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    rsvps = relationship("RSVPResponse", back_populates="event", cascade="all, delete-orphan")
