"""
Database models package
"""

from .event import Event
from .registrant import Registrant
from .rsvp import RSVPResponse

__all__ = ["Event", "Registrant", "RSVPResponse"]
