"""
Check-in and Falcon Flyer rewards.

A check-in does two writes in the request's transaction:
  1. booking confirmed -> checked_in (conditional UPDATE, see booking_service)
  2. loyalty totals and tier on the user row (optimistic lock on users.version)

If step 2 cannot be applied the request fails and the transaction rolls back
step 1, so a booking is never checked in without its reward or vice versa.
Two concurrent check-ins of one booking cannot both pass step 1; the loser
gets AlreadyCheckedIn and no second reward.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.config import get_settings
from falconair.core.errors import (
    AlreadyCancelled,
    AlreadyCheckedIn,
    CheckInNotOpen,
    Conflict,
    FlightDeparted,
)
from falconair.core.logging import get_logger
from falconair.core.metrics import record_db_retry, record_reward, record_tier_upgrade
from falconair.db.base import as_utc, utcnow
from falconair.models.booking import Booking
from falconair.models.enums import BookingStatus
from falconair.models.user import User
from falconair.services.booking_service import raise_for_lost_race, get_user_booking, transition_booking
from falconair.services.flight_service import get_route_distance
from falconair.services.loyalty_service import RewardComputation, RewardRules, compute_reward

logger = get_logger(__name__)
settings = get_settings()


@dataclass
class CheckInResult:
    booking: Booking
    reward: RewardComputation
    user: User


def hours_until_departure(departure_time: datetime, now: Optional[datetime] = None) -> float:
    now = as_utc(now or utcnow())
    return (as_utc(departure_time) - now).total_seconds() / 3600


def ensure_checkin_window(hours: float, window_hours: Optional[float] = None) -> None:
    """Check-in is open iff 0 < hours until departure <= window (24h)."""
    window_hours = settings.CHECKIN_WINDOW_HOURS if window_hours is None else window_hours
    if hours <= 0:
        raise FlightDeparted()
    if hours > window_hours:
        raise CheckInNotOpen(
            f"Check-in opens {window_hours:g} hours before departure "
            f"({hours - window_hours:.1f} hours from now)"
        )


async def apply_reward(
    db: AsyncSession,
    user_id: int,
    flight_distance: int,
    seat_class,
    rules: Optional[RewardRules] = None,
) -> tuple[User, RewardComputation]:
    """Add one check-in's miles and points to the user's account."""
    rules = rules or RewardRules.from_settings()

    for attempt in range(1, settings.MAX_RETRY_ATTEMPTS + 1):
        result = await db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalar_one()

        reward = compute_reward(
            flight_distance=flight_distance,
            seat_class=seat_class,
            current_tier=user.loyalty_tier,
            current_miles=user.loyalty_miles,
            current_points=user.loyalty_points,
            rules=rules,
        )

        update_result = await db.execute(
            update(User)
            .where(User.id == user_id, User.version == user.version)
            .values(
                loyalty_miles=reward.total_miles,
                loyalty_points=reward.total_points,
                loyalty_tier=reward.loyalty_tier,
                version=User.version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if update_result.rowcount == 1:
            await db.refresh(user)
            return user, reward

        record_db_retry("user")
        logger.info("loyalty_update_retry", user_id=user_id, attempt=attempt, reason="version_conflict")

    raise Conflict("Loyalty account is busy. Please try again.")


async def check_in(
    db: AsyncSession,
    booking_id: int,
    user_id: int,
    now: Optional[datetime] = None,
) -> CheckInResult:
    now = now or utcnow()
    booking = await get_user_booking(db, booking_id, user_id)

    if booking.booking_status == BookingStatus.CANCELLED:
        raise AlreadyCancelled("Cannot check in a cancelled booking")
    if booking.booking_status == BookingStatus.CHECKED_IN:
        raise AlreadyCheckedIn()

    hours = hours_until_departure(booking.flight.departure_time, now)
    ensure_checkin_window(hours)

    checked_in = await transition_booking(
        db,
        booking.id,
        BookingStatus.CONFIRMED,
        BookingStatus.CHECKED_IN,
        checked_in_at=now,
    )
    if not checked_in:
        logger.info("checkin_lost_race", booking_id=booking.id, user_id=user_id)
        await raise_for_lost_race(db, booking, "check in")

    distance = await get_route_distance(db, booking.flight.departure_airport, booking.flight.arrival_airport)
    user, reward = await apply_reward(db, booking.user_id, distance, booking.seat_class)
    await db.refresh(booking)

    record_reward(reward.seat_class.value, reward.miles_earned, reward.points_earned)
    if reward.upgraded:
        record_tier_upgrade(reward.loyalty_tier.value)
        logger.info(
            "loyalty_tier_upgraded",
            user_id=user.id,
            old_tier=reward.previous_tier.value,
            new_tier=reward.loyalty_tier.value,
        )

    logger.info(
        "checkin_completed",
        booking_id=booking.id,
        user_id=user.id,
        hours_until_departure=round(hours, 2),
        miles_earned=reward.miles_earned,
        points_earned=reward.points_earned,
    )
    return CheckInResult(booking=booking, reward=reward, user=user)
