"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from falconair.models.enums import BookingStatus, SeatClass
from falconair.schemas.flight import FlightResponse

SEAT_NUMBER_PATTERN = r"^[0-9]{1,3}[A-Za-z]$"


class BookingCreate(BaseModel):
    flight_id: int
    passenger_name: str = Field(..., min_length=1, max_length=255)
    passenger_email: EmailStr
    passport_number: str = Field(..., min_length=1, max_length=50)
    seat_class: SeatClass
    seat_number: str = Field(..., pattern=SEAT_NUMBER_PATTERN)
    total_price: float = Field(..., ge=0)

    model_config = {"str_strip_whitespace": True}


class BookingReschedule(BaseModel):
    new_flight_id: int
    seat_class: Optional[SeatClass] = None
    seat_number: Optional[str] = Field(None, pattern=SEAT_NUMBER_PATTERN)

    model_config = {"str_strip_whitespace": True}


class BookingResponse(BaseModel):
    id: int
    booking_reference: str
    user_id: int
    flight_id: int
    flight: FlightResponse
    passenger_name: str
    passenger_email: str
    passport_number: str
    seat_class: SeatClass
    seat_number: str
    total_price: float
    booking_date: datetime
    booking_status: BookingStatus
    checked_in_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    refund_amount: Optional[float]
    rescheduled_from_id: Optional[int]

    model_config = {"from_attributes": True}


class RefundInfo(BaseModel):
    amount: float
    processing_window: str


class BookingCancelResponse(BaseModel):
    message: str
    booking: BookingResponse
    refund: RefundInfo


class BookingRescheduleResponse(BaseModel):
    message: str
    old_booking: BookingResponse
    new_booking: BookingResponse
