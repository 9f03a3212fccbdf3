"""
Flight catalog endpoints. Route search results are cached in Redis.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.db.session import get_db
from falconair.schemas.flight import FlightResponse
from falconair.services.flight_service import get_flight, get_flight_status, list_flights, search_flights
from falconair.services.cache_service import get_cached_search, set_cached_search
from falconair.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/flights", tags=["Flights"])


@router.get("", response_model=list[FlightResponse])
async def list_flights_endpoint(db: AsyncSession = Depends(get_db)):
    """All flights, earliest departure first."""
    return await list_flights(db)


@router.get("/search/{departure}/{arrival}", response_model=list[FlightResponse])
async def search_flights_endpoint(
    departure: str,
    arrival: str,
    on_date: Optional[date] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """
    Flights from `departure` to `arrival` (IATA codes), optionally on one date.
    Cached for REDIS_CACHE_TTL; invalidated whenever seat counts change.
    """
    date_key = on_date.isoformat() if on_date else None
    cached = await get_cached_search(departure, arrival, date_key)
    if cached is not None:
        logger.info("flight_search_cache_hit", departure=departure, arrival=arrival)
        return cached

    flights = await search_flights(db, departure, arrival, on_date)
    payload = [FlightResponse.model_validate(f).model_dump(mode="json") for f in flights]
    await set_cached_search(departure, arrival, date_key, payload)
    return payload


@router.get("/status/{flight_number}", response_model=FlightResponse)
async def flight_status_endpoint(flight_number: str, db: AsyncSession = Depends(get_db)):
    return await get_flight_status(db, flight_number)


@router.get("/{flight_id}", response_model=FlightResponse)
async def get_flight_endpoint(flight_id: int, db: AsyncSession = Depends(get_db)):
    """Single flight with real-time seat counts. Not cached."""
    return await get_flight(db, flight_id)
