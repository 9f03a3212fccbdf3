"""
Domain errors raised by the service layer.

Each error carries the HTTP status it maps to and a stable machine-readable
code. They never cross the wire as exceptions: the handler registered in
falconair.main renders them as {"detail": ..., "code": ...}.
"""

from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class DomainError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "domain_error"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    code = "validation_error"
    default_message = "Invalid request"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class AlreadyCancelled(DomainError):
    code = "already_cancelled"
    default_message = "Booking is already cancelled"


class AlreadyCheckedIn(DomainError):
    code = "already_checked_in"
    default_message = "Booking is already checked in"


class InvalidStateTransition(DomainError):
    code = "invalid_state_transition"
    default_message = "Booking cannot move to the requested state"


class SeatUnavailable(DomainError):
    code = "seat_unavailable"
    default_message = "No seats available in the requested class"


class CheckInNotOpen(DomainError):
    code = "checkin_not_open"
    default_message = "Check-in opens 24 hours before departure"


class FlightDeparted(DomainError):
    code = "flight_departed"
    default_message = "Check-in is closed, the flight has already departed"


class Unauthorized(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Could not validate credentials"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "Not allowed to access this resource"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Request conflicts with the current state"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )
