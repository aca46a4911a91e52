"""
Domain errors for token decoding, scanning and check-in
"""

from typing import Any, Dict, List, Optional


# -------- Token codec --------

class DecodeError(Exception):
    """Raised when a scanned string cannot be turned into a check-in reference"""

    def __init__(self, message: str, token: Optional[str] = None):
        super().__init__(message)
        self.token = token


class MalformedToken(DecodeError):
    pass


class TypeMismatch(DecodeError):
    pass


class TokenExpired(DecodeError):
    def __init__(self, message: str, token: Optional[str] = None, issued_at: Optional[int] = None):
        super().__init__(message, token)
        self.issued_at = issued_at


# -------- Scan / check-in outcomes --------

class ScanError(Exception):
    """Terminal, operator-facing failure of a scan or check-in attempt"""

    code = "scan_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class InvalidCode(ScanError):
    code = "invalid_code"


class WrongEvent(ScanError):
    code = "wrong_event"

    def __init__(self, expected_event_id: str, actual_event_id: str):
        super().__init__(
            f"This code belongs to event {actual_event_id}, not {expected_event_id}",
            expected_event_id=expected_event_id,
            actual_event_id=actual_event_id,
        )
        self.expected_event_id = expected_event_id
        self.actual_event_id = actual_event_id


class NotFound(ScanError):
    code = "not_found"


class PaymentNotConfirmed(ScanError):
    code = "payment_not_confirmed"


class StoreConflict(ScanError):
    code = "store_conflict"


class EventClosed(ScanError):
    code = "event_closed"


class NotCheckedIn(ScanError):
    code = "not_checked_in"


# -------- RSVP answers --------

class ResponseValidationError(Exception):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
