"""
Booking lifecycle with concurrency-safe seat inventory.

STATE MACHINE
=============

  confirmed --checkin--> checked_in
  confirmed --cancel---> cancelled            (terminal)
  confirmed --reschedule--> cancelled + new confirmed booking
  checked_in --cancel/reschedule--> rejected (InvalidStateTransition)
  cancelled  --anything--> rejected (AlreadyCancelled)

Every status change is a conditional UPDATE guarded by the expected current
status (`WHERE booking_status = 'confirmed'`). If two requests race on the
same booking only one UPDATE matches a row; the loser re-reads the booking
and reports the state the winner left behind.

SEAT INVENTORY: Optimistic Locking with Retry
=============================================

  1. Read the flight's current version
  2. UPDATE flights SET available_<class>_seats = available_<class>_seats - 1,
                        version = version + 1
     WHERE id = :flight_id AND version = :version AND available_<class>_seats >= 1
  3. rows_affected == 0 means someone else changed the flight -> re-read, retry

The CHECK constraints on flights are the final safety net against
overselling. All statements of one operation run in the request's
transaction, so reschedule's cancel + create is all-or-nothing.
"""

import secrets
import string
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.config import get_settings
from falconair.core.errors import (
    AlreadyCancelled,
    AlreadyCheckedIn,
    Conflict,
    Forbidden,
    InvalidStateTransition,
    NotFound,
    SeatUnavailable,
    ValidationError,
)
from falconair.core.logging import get_logger
from falconair.core.metrics import record_db_retry
from falconair.db.base import utcnow
from falconair.models.booking import Booking
from falconair.models.enums import BookingStatus, FlightStatus, SeatClass
from falconair.models.flight import Flight
from falconair.services.flight_service import get_flight

logger = get_logger(__name__)
settings = get_settings()

REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
REFERENCE_LENGTH = 6
UNBOOKABLE_FLIGHT_STATUSES = (FlightStatus.DEPARTED, FlightStatus.ARRIVED, FlightStatus.CANCELLED)


def _seat_column(seat_class: SeatClass) -> str:
    return f"available_{SeatClass(seat_class).value}_seats"


def _total_column(seat_class: SeatClass) -> str:
    return f"total_{SeatClass(seat_class).value}_seats"


async def generate_booking_reference(db: AsyncSession) -> str:
    """Random 6-character PNR-style code not yet used by any booking."""
    for _ in range(10):
        reference = "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
        exists = await db.execute(select(Booking.id).where(Booking.booking_reference == reference))
        if exists.scalar_one_or_none() is None:
            return reference
    raise Conflict("Could not allocate a booking reference. Please try again.")


async def reserve_seat(db: AsyncSession, flight_id: int, seat_class: SeatClass) -> Flight:
    """
    Take one seat of `seat_class` on a flight with optimistic locking.
    Retries up to MAX_RETRY_ATTEMPTS on version conflicts.
    """
    column = _seat_column(seat_class)

    for attempt in range(1, settings.MAX_RETRY_ATTEMPTS + 1):
        flight = await get_flight(db, flight_id, refresh=True)

        if flight.status in UNBOOKABLE_FLIGHT_STATUSES:
            raise ValidationError(f"Flight {flight.flight_number} is {flight.status.value} and cannot be booked")

        available = flight.available_seats_for(seat_class)
        if available < 1:
            logger.warning(
                "booking_failed_no_seats",
                flight_id=flight_id,
                seat_class=SeatClass(seat_class).value,
            )
            raise SeatUnavailable(f"No {SeatClass(seat_class).value} seats available on flight {flight.flight_number}")

        update_result = await db.execute(
            update(Flight)
            .where(
                Flight.id == flight_id,
                Flight.version == flight.version,
                getattr(Flight, column) >= 1,
            )
            .values({column: getattr(Flight, column) - 1, "version": Flight.version + 1})
            .execution_options(synchronize_session=False)
        )

        if update_result.rowcount == 1:
            await db.refresh(flight)
            return flight

        record_db_retry("flight")
        logger.info(
            "seat_reservation_retry",
            flight_id=flight_id,
            attempt=attempt,
            reason="version_conflict",
        )

    raise Conflict("Booking failed due to high demand. Please try again.")


async def release_seat(db: AsyncSession, flight_id: int, seat_class: SeatClass) -> None:
    """Give one seat back, never above the class total."""
    column = _seat_column(seat_class)
    total = _total_column(seat_class)
    result = await db.execute(
        update(Flight)
        .where(Flight.id == flight_id, getattr(Flight, column) < getattr(Flight, total))
        .values({column: getattr(Flight, column) + 1, "version": Flight.version + 1})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("seat_release_skipped", flight_id=flight_id, seat_class=SeatClass(seat_class).value)


async def transition_booking(
    db: AsyncSession,
    booking_id: int,
    from_status: BookingStatus,
    to_status: BookingStatus,
    **values,
) -> bool:
    """Conditionally move a booking between states. False when it was not in `from_status`."""
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.booking_status == from_status)
        .values(booking_status=to_status, updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def ensure_mutable(booking: Booking, action: str) -> None:
    """Reject cancel/reschedule on bookings that are no longer confirmed."""
    if booking.booking_status == BookingStatus.CANCELLED:
        raise AlreadyCancelled(f"Cannot {action} a cancelled booking: booking is already cancelled")
    if booking.booking_status == BookingStatus.CHECKED_IN:
        raise InvalidStateTransition(f"Cannot {action} a checked-in booking")


async def get_booking(db: AsyncSession, booking_id: int, refresh: bool = False) -> Booking:
    query = select(Booking).where(Booking.id == booking_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    booking = result.scalar_one_or_none()

    if not booking:
        raise NotFound("Booking not found")
    return booking


async def get_user_booking(db: AsyncSession, booking_id: int, user_id: int, refresh: bool = False) -> Booking:
    """Fetch a booking and check it belongs to the caller."""
    booking = await get_booking(db, booking_id, refresh=refresh)
    if booking.user_id != user_id:
        logger.warning("booking_access_denied", booking_id=booking_id, user_id=user_id)
        raise Forbidden("You do not have access to this booking")
    return booking


async def get_user_bookings(db: AsyncSession, user_id: int) -> list[Booking]:
    """All bookings for a user, every status, newest first."""
    result = await db.execute(
        select(Booking)
        .where(Booking.user_id == user_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def create_booking(
    db: AsyncSession,
    user_id: int,
    flight_id: int,
    passenger_name: str,
    passenger_email: str,
    passport_number: str,
    seat_class: SeatClass,
    seat_number: str,
    total_price: float,
    rescheduled_from_id: Optional[int] = None,
) -> Booking:
    """Reserve a seat and persist a confirmed booking with a fresh reference."""
    if total_price < 0:
        raise ValidationError("total_price must not be negative")

    flight = await reserve_seat(db, flight_id, seat_class)

    booking = Booking(
        booking_reference=await generate_booking_reference(db),
        user_id=user_id,
        flight=flight,
        passenger_name=passenger_name,
        passenger_email=passenger_email,
        passport_number=passport_number,
        seat_class=SeatClass(seat_class),
        seat_number=seat_number.upper(),
        total_price=total_price,
        booking_status=BookingStatus.CONFIRMED,
        rescheduled_from_id=rescheduled_from_id,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)

    logger.info(
        "booking_created",
        booking_id=booking.id,
        booking_reference=booking.booking_reference,
        user_id=user_id,
        flight_id=flight_id,
        seat_class=booking.seat_class.value,
    )
    return booking


async def raise_for_lost_race(db: AsyncSession, booking: Booking, action: str) -> None:
    await db.refresh(booking)
    if booking.booking_status == BookingStatus.CHECKED_IN and action == "check in":
        raise AlreadyCheckedIn()
    ensure_mutable(booking, action)
    raise Conflict("Booking was modified concurrently. Please try again.")


async def _cancel(db: AsyncSession, booking: Booking, now: datetime, action: str) -> None:
    ensure_mutable(booking, action)

    cancelled = await transition_booking(
        db,
        booking.id,
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED,
        cancelled_at=now,
        refund_amount=Booking.total_price,
    )
    if not cancelled:
        await raise_for_lost_race(db, booking, action)

    await release_seat(db, booking.flight_id, booking.seat_class)
    await get_flight(db, booking.flight_id, refresh=True)
    await db.refresh(booking)


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> Booking:
    """
    Cancel a confirmed booking, release its seat and record the refund owed
    (the full total_price).
    """
    booking = await get_user_booking(db, booking_id, user_id)
    await _cancel(db, booking, now or utcnow(), "cancel")

    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        user_id=user_id,
        flight_id=booking.flight_id,
        refund_amount=booking.refund_amount,
    )
    return booking


async def reschedule_booking(
    db: AsyncSession,
    booking_id: int,
    user_id: int,
    new_flight_id: int,
    seat_class: Optional[SeatClass] = None,
    seat_number: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Booking, Booking]:
    """
    Move a confirmed booking to another flight as cancel-old + create-new.

    The new booking gets its own id and reference, carries the passenger over,
    is priced at the new flight's fare for the chosen class and points back to
    the old booking through rescheduled_from_id. Returns (old, new).
    """
    booking = await get_user_booking(db, booking_id, user_id)
    ensure_mutable(booking, "reschedule")

    if new_flight_id == booking.flight_id:
        raise ValidationError("New flight must differ from the current flight")

    seat_class = SeatClass(seat_class or booking.seat_class)
    seat_number = seat_number or booking.seat_number
    new_flight = await get_flight(db, new_flight_id)

    new_booking = await create_booking(
        db,
        user_id=user_id,
        flight_id=new_flight.id,
        passenger_name=booking.passenger_name,
        passenger_email=booking.passenger_email,
        passport_number=booking.passport_number,
        seat_class=seat_class,
        seat_number=seat_number,
        total_price=new_flight.price_for(seat_class),
        rescheduled_from_id=booking.id,
    )
    await _cancel(db, booking, now or utcnow(), "reschedule")

    logger.info(
        "booking_rescheduled",
        old_booking_id=booking.id,
        new_booking_id=new_booking.id,
        old_flight_id=booking.flight_id,
        new_flight_id=new_flight.id,
        user_id=user_id,
    )
    return booking, new_booking
