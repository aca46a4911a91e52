"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.exceptions import ScanError, ResponseValidationError
from app.schemas.common import StandardResponse, ErrorResponse

# ScanError.code -> HTTP status
SCAN_ERROR_STATUS = {
    "invalid_code": status.HTTP_400_BAD_REQUEST,
    "wrong_event": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "payment_not_confirmed": status.HTTP_402_PAYMENT_REQUIRED,
    "store_conflict": status.HTTP_409_CONFLICT,
    "event_closed": status.HTTP_410_GONE,
    "not_checked_in": status.HTTP_409_CONFLICT,
}

def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200
) -> JSONResponse:
    """Create standardized success response"""
    response = StandardResponse(
        success=True,
        message=message,
        data=data
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Any = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error_code=error_code,
        details=details
    )
    return JSONResponse(
        content=jsonable_encoder(response),
        status_code=status_code
    )

def scan_error_response(exc: ScanError) -> JSONResponse:
    """Report a failed scan back to the operator"""
    return error_response(
        message=exc.message,
        error_code=exc.code,
        details=exc.details or None,
        status_code=SCAN_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    )

def answers_error_response(exc: ResponseValidationError) -> JSONResponse:
    return error_response(
        message="RSVP answers do not match the event form",
        error_code="invalid_responses",
        details=exc.errors,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )

def not_found_error(resource: str = "Resource"):
    """Create not found error"""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} not found"
    )
