"""
Race conditions on seats and booking status, replayed deterministically.

Each test opens two sessions the way two API requests would and forces the
losing interleaving: one request reads, the other commits, then the first
one writes on top of its stale read.
"""

import pytest
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.errors import (
    AlreadyCancelled,
    AlreadyCheckedIn,
    Conflict,
    InvalidStateTransition,
    SeatUnavailable,
)
from falconair.models.booking import Booking
from falconair.models.enums import BookingStatus, SeatClass
from falconair.models.flight import Flight
from falconair.models.user import User
from falconair.services import booking_service, checkin_service


async def _take_seat_behind_the_scenes(session_factory, flight_id):
    async with session_factory() as competitor:
        await competitor.execute(
            update(Flight)
            .where(Flight.id == flight_id)
            .values(
                available_economy_seats=Flight.available_economy_seats - 1,
                version=Flight.version + 1,
            )
        )
        await competitor.commit()


async def _load(session_factory, model, pk):
    async with session_factory() as session:
        return (await session.execute(select(model).where(model.id == pk))).scalar_one()


@pytest.mark.asyncio
async def test_seat_reservation_retries_on_version_conflict(session_factory, make_flight, monkeypatch):
    """A competing booking between read and write costs one retry, not a failure."""
    flight = await make_flight(economy_seats=10)
    original_get_flight = booking_service.get_flight
    reads = []

    async def get_flight_with_competitor(db, flight_id, refresh=False):
        loaded = await original_get_flight(db, flight_id, refresh=refresh)
        reads.append(loaded.version)
        if len(reads) == 1:
            await _take_seat_behind_the_scenes(session_factory, flight_id)
        return loaded

    monkeypatch.setattr(booking_service, "get_flight", get_flight_with_competitor)

    async with session_factory() as session:
        reserved = await booking_service.reserve_seat(session, flight.id, SeatClass.ECONOMY)
        await session.commit()

    assert len(reads) == 2
    assert reserved.available_economy_seats == 8
    stored = await _load(session_factory, Flight, flight.id)
    assert stored.available_economy_seats == 8
    assert stored.version == 3


@pytest.mark.asyncio
async def test_seat_reservation_gives_up_after_max_retries(session_factory, make_flight, monkeypatch):
    flight = await make_flight(economy_seats=10)
    monkeypatch.setattr(booking_service.settings, "MAX_RETRY_ATTEMPTS", 1)
    original_get_flight = booking_service.get_flight
    reads = []

    async def always_lose(db, flight_id, refresh=False):
        loaded = await original_get_flight(db, flight_id, refresh=refresh)
        reads.append(loaded.version)
        await _take_seat_behind_the_scenes(session_factory, flight_id)
        return loaded

    monkeypatch.setattr(booking_service, "get_flight", always_lose)

    async with session_factory() as session:
        with pytest.raises(Conflict):
            await booking_service.reserve_seat(session, flight.id, SeatClass.ECONOMY)
        await session.rollback()

    assert len(reads) == 1
    # Only the competitor's seat is gone
    stored = await _load(session_factory, Flight, flight.id)
    assert stored.available_economy_seats == 9


@pytest.mark.asyncio
async def test_last_seat_goes_to_one_booking(session_factory, test_user, other_user, make_flight, make_booking):
    flight = await make_flight(economy_seats=1)
    await make_booking(test_user, flight)

    async with session_factory() as session:
        with pytest.raises(SeatUnavailable):
            await booking_service.reserve_seat(session, flight.id, SeatClass.ECONOMY)

    stored = await _load(session_factory, Flight, flight.id)
    assert stored.available_economy_seats == 0


@pytest.mark.asyncio
async def test_concurrent_checkin_awards_once(session_factory, test_user, make_flight, make_booking):
    booking = await make_booking(test_user, await make_flight(), seat_class=SeatClass.BUSINESS)

    async with session_factory() as slow, session_factory() as fast:
        # Both requests have read the confirmed booking
        await booking_service.get_user_booking(slow, booking.id, test_user.id)

        await checkin_service.check_in(fast, booking.id, test_user.id)
        await fast.commit()

        with pytest.raises(AlreadyCheckedIn):
            await checkin_service.check_in(slow, booking.id, test_user.id)
        await slow.rollback()

    user = await _load(session_factory, User, test_user.id)
    assert user.loyalty_miles == 4500
    assert user.loyalty_points == 45


@pytest.mark.asyncio
async def test_concurrent_cancel_releases_seat_once(session_factory, test_user, make_flight, make_booking):
    flight = await make_flight()
    booking = await make_booking(test_user, flight)

    async with session_factory() as slow, session_factory() as fast:
        await booking_service.get_user_booking(slow, booking.id, test_user.id)

        await booking_service.cancel_booking(fast, booking.id, test_user.id)
        await fast.commit()

        with pytest.raises(AlreadyCancelled):
            await booking_service.cancel_booking(slow, booking.id, test_user.id)
        await slow.rollback()

    stored = await _load(session_factory, Flight, flight.id)
    assert stored.available_economy_seats == 150


@pytest.mark.asyncio
async def test_cancel_racing_checkin(session_factory, test_user, make_flight, make_booking):
    """Check-in wins; the cancel that read a confirmed booking is rejected."""
    flight = await make_flight()
    booking = await make_booking(test_user, flight)

    async with session_factory() as canceller, session_factory() as checker:
        await booking_service.get_user_booking(canceller, booking.id, test_user.id)

        await checkin_service.check_in(checker, booking.id, test_user.id)
        await checker.commit()

        with pytest.raises(InvalidStateTransition):
            await booking_service.cancel_booking(canceller, booking.id, test_user.id)
        await canceller.rollback()

    stored = await _load(session_factory, Booking, booking.id)
    assert stored.booking_status == BookingStatus.CHECKED_IN
    assert (await _load(session_factory, Flight, flight.id)).available_economy_seats == 149


@pytest.mark.asyncio
async def test_loyalty_update_retries_on_version_conflict(engine, session_factory, test_user):
    """A concurrent reward on the same account is re-read, not overwritten."""

    class InterleavedSession(AsyncSession):
        interleave = True

        async def execute(self, statement, *args, **kwargs):
            result = await super().execute(statement, *args, **kwargs)
            if self.interleave and statement.is_select:
                # Another request credits the account right after our first read
                self.interleave = False
                async with session_factory() as other:
                    await other.execute(
                        update(User)
                        .where(User.id == test_user.id)
                        .values(
                            loyalty_miles=User.loyalty_miles + 1000,
                            loyalty_points=User.loyalty_points + 10,
                            version=User.version + 1,
                        )
                    )
                    await other.commit()
            return result

    async with InterleavedSession(bind=engine, expire_on_commit=False) as session:
        user, reward = await checkin_service.apply_reward(session, test_user.id, 1000, SeatClass.ECONOMY)
        await session.commit()

    assert reward.miles_earned == 1000
    assert reward.total_miles == 2000
    assert user.loyalty_miles == 2000
    assert user.loyalty_points == 20
    assert user.version == 3
