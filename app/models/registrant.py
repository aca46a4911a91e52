"""
Registrant (member) model
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.core.db import Base
from app.models.event import new_id

class Registrant(Base):
    __tablename__ = "registrants"
    
    id = Column(String(64), primary_key=True, index=True, default=new_id)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=False, index=True)
    mobile_number = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    rsvps = relationship("RSVPResponse", back_populates="registrant")
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
