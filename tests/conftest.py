"""
Shared database fixtures
"""

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import Event, Registrant, RSVPResponse

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_checkin.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def session_factory():
    """Create tables and hand out independent sessions"""
    Base.metadata.create_all(bind=engine)
    sessions = []
    
    def make():
        session = TestingSessionLocal()
        sessions.append(session)
        return session
    
    try:
        yield make
    finally:
        for session in sessions:
            session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(session_factory):
    """Create test database session"""
    return session_factory()

@pytest.fixture
def gala(db_session):
    """Two events, three members and their RSVPs"""
    events = [
        Event(id="evt1", title="Onam Celebration", date=datetime(2030, 9, 7, 17, 0), location="Community Hall",
              rsvp_form=[
                  {"id": "meal", "type": "select", "label": "Meal preference", "required": True,
                   "options": ["Vegetarian", "Non-vegetarian"]},
                  {"id": "volunteer", "type": "checkbox", "label": "Volunteer", "required": False},
                  {"id": "comments", "type": "text", "label": "Comments", "required": False},
              ]),
        Event(id="evt2", title="Christmas Party", date=datetime(2030, 12, 20, 18, 0), location="Grand Ballroom"),
    ]
    registrants = [
        Registrant(id="user7", first_name="Priya", last_name="Nair", email="priya.nair@example.com"),
        Registrant(id="user8", first_name="Arjun", last_name="Menon", email="arjun.menon@example.com"),
        Registrant(id="user9", first_name="Lakshmi", last_name="Pillai", email="lakshmi@example.com"),
    ]
    rsvps = [
        RSVPResponse(id="rsvp1", event_id="evt1", user_id="user7", guest_count=2,
                     payment_reference="ZELLE-4471", payment_confirmed=False,
                     veg_count=2, non_veg_count=1,
                     responses={"meal": {"kind": "choice", "value": "Vegetarian"}}),
        RSVPResponse(id="rsvp2", event_id="evt1", user_id="user8", guest_count=0,
                     payment_reference="ZELLE-4472", payment_confirmed=True,
                     non_veg_count=1,
                     responses={"meal": {"kind": "choice", "value": "Non-vegetarian"},
                                "volunteer": {"kind": "boolean", "value": True}}),
        RSVPResponse(id="rsvp3", event_id="evt2", user_id="user7", guest_count=1, payment_confirmed=True),
    ]
    
    db_session.add_all(events + registrants)
    db_session.flush()
    db_session.add_all(rsvps)
    db_session.commit()
    return events[0]

@pytest.fixture
def confirm_payment(db_session):
    """Mark an RSVP's payment as approved"""
    def confirm(rsvp_id):
        rsvp = db_session.query(RSVPResponse).filter(RSVPResponse.id == rsvp_id).first()
        rsvp.payment_confirmed = True
        db_session.commit()
    return confirm
