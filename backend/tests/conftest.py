"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite file database; every HTTP request runs in its
own session and transaction, exactly like get_db in production.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from falconair.main import app
from falconair.db.base import Base, utcnow
from falconair.db.session import commit_session, get_db, rollback_session
from falconair.core.security import create_access_token, hash_password
from falconair.models import Airport, Booking, Flight, Route, User
from falconair.models.enums import FlightStatus, LoyaltyTier, SeatClass
from falconair.services import booking_service

AIRPORTS = [
    ("JFK", "John F. Kennedy International Airport", "New York", "United States"),
    ("LHR", "Heathrow Airport", "London", "United Kingdom"),
    ("SFO", "San Francisco International Airport", "San Francisco", "United States"),
    ("HNL", "Daniel K. Inouye International Airport", "Honolulu", "United States"),
    ("LAX", "Los Angeles International Airport", "Los Angeles", "United States"),
]

ROUTES = [
    ("JFK", "LHR", 3000),
    ("SFO", "HNL", 2400),
    ("JFK", "LAX", 2475),
]


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh schema per test in a throwaway SQLite file."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'falconair_test.db'}", echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await commit_session(session)
            except Exception:
                await rollback_session(session)
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> None:
    """Airports and route distances used by the reward formula."""
    for code, name, city, country in AIRPORTS:
        db_session.add(Airport(code=code, name=name, city=city, country=country))
    for departure, arrival, distance in ROUTES:
        db_session.add(Route(departure_airport=departure, arrival_airport=arrival, distance_miles=distance))
    await db_session.commit()


async def _create_user(db_session: AsyncSession, **overrides) -> User:
    fields = {
        "email": "test@example.com",
        "username": "testuser",
        "first_name": "Test",
        "last_name": "Flyer",
        "hashed_password": hash_password("testpassword123"),
        "membership_number": "FF00000001",
        "loyalty_miles": 0,
        "loyalty_points": 0,
        "loyalty_tier": LoyaltyTier.BLUE,
    }
    fields.update(overrides)
    user = User(**fields)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session)


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(
        db_session,
        email="other@example.com",
        username="otheruser",
        first_name="Other",
        membership_number="FF00000002",
    )


@pytest_asyncio.fixture
async def silver_user(db_session: AsyncSession) -> User:
    """Twenty points short of GOLD."""
    return await _create_user(
        db_session,
        email="silver@example.com",
        username="silveruser",
        membership_number="FF00000003",
        loyalty_miles=12000,
        loyalty_points=980,
        loyalty_tier=LoyaltyTier.SILVER,
    )


def make_auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return make_auth_headers(test_user)


@pytest_asyncio.fixture
async def other_auth_headers(other_user: User) -> dict:
    return make_auth_headers(other_user)


@pytest.fixture
def make_flight(db_session: AsyncSession, catalog):
    """Factory for flights departing relative to now (default: in 10 hours)."""

    async def _make_flight(
        flight_number: str = "FA100",
        departure: str = "JFK",
        arrival: str = "LHR",
        departs_in: timedelta = timedelta(hours=10),
        economy_seats: int = 150,
        business_seats: int = 20,
        economy_price: float = 450.0,
        business_price: float = 1800.0,
        status: FlightStatus = FlightStatus.SCHEDULED,
    ) -> Flight:
        departure_time = utcnow() + departs_in
        flight = Flight(
            flight_number=flight_number,
            departure_airport=departure,
            arrival_airport=arrival,
            departure_time=departure_time,
            arrival_time=departure_time + timedelta(hours=7),
            aircraft_type="Boeing 787-9",
            economy_price=economy_price,
            business_price=business_price,
            total_economy_seats=economy_seats,
            total_business_seats=business_seats,
            available_economy_seats=economy_seats,
            available_business_seats=business_seats,
            status=status,
        )
        db_session.add(flight)
        await db_session.commit()
        await db_session.refresh(flight)
        return flight

    return _make_flight


@pytest.fixture
def make_booking(db_session: AsyncSession):
    """Factory that books through the service layer and commits."""

    async def _make_booking(
        user: User,
        flight: Flight,
        seat_class: SeatClass = SeatClass.ECONOMY,
        seat_number: str = "12A",
    ) -> Booking:
        booking = await booking_service.create_booking(
            db_session,
            user_id=user.id,
            flight_id=flight.id,
            passenger_name=f"{user.first_name} {user.last_name}",
            passenger_email=user.email,
            passport_number="X1234567",
            seat_class=seat_class,
            seat_number=seat_number,
            total_price=flight.price_for(seat_class),
        )
        await db_session.commit()
        return booking

    return _make_booking


@pytest.fixture
def booking_payload():
    def _payload(flight: Flight, seat_class: str = "economy", seat_number: str = "14C") -> dict:
        return {
            "flight_id": flight.id,
            "passenger_name": "Test Flyer",
            "passenger_email": "test@example.com",
            "passport_number": "X1234567",
            "seat_class": seat_class,
            "seat_number": seat_number,
            "total_price": flight.price_for(SeatClass(seat_class)),
        }

    return _payload


@pytest_asyncio.fixture
async def silver_auth_headers(silver_user: User) -> dict:
    return make_auth_headers(silver_user)
