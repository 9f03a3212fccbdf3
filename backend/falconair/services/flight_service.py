"""
Fare/seat catalog: flight lookup and route search.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.config import get_settings
from falconair.core.errors import NotFound
from falconair.core.logging import get_logger
from falconair.models.airport import Route
from falconair.models.flight import Flight

logger = get_logger(__name__)
settings = get_settings()


async def get_flight(db: AsyncSession, flight_id: int, refresh: bool = False) -> Flight:
    """Get a single flight by ID. `refresh` bypasses the session identity map."""
    query = select(Flight).where(Flight.id == flight_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    flight = result.scalar_one_or_none()

    if not flight:
        raise NotFound(f"Flight {flight_id} not found")
    return flight


async def list_flights(db: AsyncSession) -> list[Flight]:
    result = await db.execute(select(Flight).order_by(Flight.departure_time.asc()))
    return list(result.scalars().all())


async def search_flights(
    db: AsyncSession,
    departure: str,
    arrival: str,
    on_date: Optional[date] = None,
) -> list[Flight]:
    """
    Flights for an ordered airport pair, earliest first.
    Uses the ix_flights_route_departure composite index.
    """
    query = select(Flight).where(
        Flight.departure_airport == departure.upper(),
        Flight.arrival_airport == arrival.upper(),
    )

    if on_date:
        day_start = datetime.combine(on_date, time.min, tzinfo=timezone.utc)
        query = query.where(
            Flight.departure_time >= day_start,
            Flight.departure_time < day_start + timedelta(days=1),
        )

    result = await db.execute(query.order_by(Flight.departure_time.asc()))
    flights = list(result.scalars().all())
    logger.info("flights_searched", departure=departure, arrival=arrival, date=str(on_date), results=len(flights))
    return flights


async def get_flight_status(db: AsyncSession, flight_number: str) -> Flight:
    """Most recently departing flight operating under `flight_number`."""
    result = await db.execute(
        select(Flight)
        .where(Flight.flight_number == flight_number.upper())
        .order_by(Flight.departure_time.desc())
        .limit(1)
    )
    flight = result.scalar_one_or_none()
    if not flight:
        raise NotFound(f"Flight {flight_number} not found")
    return flight


async def get_route_distance(db: AsyncSession, departure: str, arrival: str) -> int:
    """
    Distance in miles for an airport pair. Falls back to the reverse pair,
    then to DEFAULT_FLIGHT_DISTANCE_MILES when the route is not registered.
    """
    for origin, destination in ((departure, arrival), (arrival, departure)):
        result = await db.execute(
            select(Route.distance_miles).where(
                Route.departure_airport == origin,
                Route.arrival_airport == destination,
            )
        )
        distance = result.scalar_one_or_none()
        if distance is not None:
            return distance

    logger.warning("route_distance_missing", departure=departure, arrival=arrival)
    return settings.DEFAULT_FLIGHT_DISTANCE_MILES
