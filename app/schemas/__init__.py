"""
Pydantic schemas package
"""

from .common import *
from .rsvp import *
from .event import *
from .checkin import *
from .admin import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventResponse",
    "CheckInStats",
    "RSVPField",
    "Answer",
    "RegistrantCreate",
    "RSVPSubmit",
    "RSVPResponseOut",
    "TokenCheckInRequest",
    "ManualCheckInRequest",
    "SessionScanRequest",
    "FoodTokenRequest",
    "ScanResult",
    "ScanSessionResponse",
    "AdminAction",
    "ApprovePayment",
    "RejectPayment",
    "CheckIn",
    "ManualCheckIn",
]
