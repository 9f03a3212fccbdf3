"""
Booking lifecycle endpoints: create, read, cancel, reschedule, check in.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.db.session import call_after_commit, get_db
from falconair.schemas.booking import (
    BookingCreate,
    BookingReschedule,
    BookingResponse,
    BookingCancelResponse,
    BookingRescheduleResponse,
    RefundInfo,
)
from falconair.schemas.loyalty import CheckInResponse, LoyaltyStatus
from falconair.services import booking_service, checkin_service
from falconair.services.cache_service import invalidate_flight_cache
from falconair.services.loyalty_service import loyalty_snapshot
from falconair.core.config import get_settings
from falconair.core.security import get_current_user_id
from falconair.core.metrics import track_booking_operation
from falconair.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Book one seat on a flight.

    Seat inventory uses optimistic locking; a conflicting concurrent booking
    is retried up to MAX_RETRY_ATTEMPTS times before a 409 is returned.
    """
    with track_booking_operation("create"):
        booking = await booking_service.create_booking(
            db,
            user_id=user_id,
            **booking_data.model_dump(),
        )
    call_after_commit(db, invalidate_flight_cache)
    return booking


@router.get("", response_model=list[BookingResponse])
async def list_user_bookings(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """All bookings for the authenticated user, cancelled ones included."""
    return await booking_service.get_user_bookings(db, user_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_user_booking(db, booking_id, user_id)


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking, release its seat and record the refund."""
    with track_booking_operation("cancel"):
        booking = await booking_service.cancel_booking(db, booking_id, user_id)
    call_after_commit(db, invalidate_flight_cache)
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking=BookingResponse.model_validate(booking),
        refund=RefundInfo(
            amount=booking.refund_amount,
            processing_window=settings.REFUND_PROCESSING_WINDOW,
        ),
    )


@router.post("/{booking_id}/reschedule", response_model=BookingRescheduleResponse)
async def reschedule_booking(
    booking_id: int,
    reschedule_data: BookingReschedule,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Move a booking to another flight (cancels it and books the new flight)."""
    with track_booking_operation("reschedule"):
        old_booking, new_booking = await booking_service.reschedule_booking(
            db,
            booking_id,
            user_id,
            new_flight_id=reschedule_data.new_flight_id,
            seat_class=reschedule_data.seat_class,
            seat_number=reschedule_data.seat_number,
        )
    call_after_commit(db, invalidate_flight_cache)
    return BookingRescheduleResponse(
        message="Booking rescheduled successfully",
        old_booking=BookingResponse.model_validate(old_booking),
        new_booking=BookingResponse.model_validate(new_booking),
    )


@router.post("/{booking_id}/checkin", response_model=CheckInResponse)
async def check_in(
    booking_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Check in within 24 hours of departure and collect Falcon Flyer miles and
    points. The response carries the reward breakdown and tier change.
    """
    with track_booking_operation("checkin"):
        result = await checkin_service.check_in(db, booking_id, user_id)
    return CheckInResponse(
        message="Check-in successful",
        booking=BookingResponse.model_validate(result.booking),
        loyalty_rewards=result.reward.loyalty_rewards(),
        tier_upgrade=result.reward.tier_upgrade(),
        loyalty=LoyaltyStatus(**loyalty_snapshot(result.user)),
    )
