#!/usr/bin/env python3
"""
Seed the catalog: the Bahrain hub network, route distances and a rolling
schedule of flights for the next few days.

    python seed_data.py            # insert if the catalog is empty
    python seed_data.py --reset    # wipe bookings, flights and catalog first
"""

import argparse
import asyncio
from datetime import datetime, time, timedelta, timezone

from sqlalchemy import delete, func, select

from falconair.core.logging import get_logger, setup_logging
from falconair.db.session import AsyncSessionLocal, engine
from falconair.models import Airport, Booking, Flight, Route
from falconair.models.enums import FlightStatus

logger = get_logger(__name__)

HUB = "BAH"

# code, name, city, country, distance from BAH in miles
DESTINATIONS = [
    ("DXB", "Dubai International Airport", "Dubai", "United Arab Emirates", 303),
    ("DOH", "Hamad International Airport", "Doha", "Qatar", 87),
    ("KWI", "Kuwait International Airport", "Kuwait", "Kuwait", 262),
    ("RUH", "King Khalid International Airport", "Riyadh", "Saudi Arabia", 265),
    ("JED", "King Abdulaziz International Airport", "Jeddah", "Saudi Arabia", 771),
    ("CAI", "Cairo International Airport", "Cairo", "Egypt", 1230),
    ("BEY", "Beirut Rafic Hariri International Airport", "Beirut", "Lebanon", 1047),
    ("AMM", "Queen Alia International Airport", "Amman", "Jordan", 905),
    ("LHR", "Heathrow Airport", "London", "United Kingdom", 3166),
    ("CDG", "Charles de Gaulle Airport", "Paris", "France", 2995),
    ("FRA", "Frankfurt Airport", "Frankfurt", "Germany", 2713),
    ("MAD", "Adolfo Suárez Madrid-Barajas Airport", "Madrid", "Spain", 3331),
    ("FCO", "Leonardo da Vinci International Airport", "Rome", "Italy", 2536),
    ("ATH", "Athens International Airport", "Athens", "Greece", 1935),
    ("BOM", "Chhatrapati Shivaji Maharaj International Airport", "Mumbai", "India", 1524),
    ("DEL", "Indira Gandhi International Airport", "Delhi", "India", 1721),
    ("BKK", "Suvarnabhumi Airport", "Bangkok", "Thailand", 3282),
    ("KUL", "Kuala Lumpur International Airport", "Kuala Lumpur", "Malaysia", 3962),
    ("SIN", "Singapore Changi Airport", "Singapore", "Singapore", 4146),
    ("HKG", "Hong Kong International Airport", "Hong Kong", "Hong Kong", 4108),
    ("NBO", "Jomo Kenyatta International Airport", "Nairobi", "Kenya", 2413),
    ("JNB", "O.R. Tambo International Airport", "Johannesburg", "South Africa", 4121),
    ("ADD", "Addis Ababa Bole International Airport", "Addis Ababa", "Ethiopia", 1623),
]

# Narrow-body under 2000 miles, wide-body beyond
NARROW_BODY = ("Airbus A320neo", 138, 12)
WIDE_BODY = ("Boeing 787-9", 256, 26)
CRUISE_MPH = 500


def aircraft_for(distance: int) -> tuple[str, int, int]:
    return NARROW_BODY if distance < 2000 else WIDE_BODY


def fares_for(distance: int) -> tuple[float, float]:
    economy = round(80 + distance * 0.11, 2)
    return economy, round(economy * 3.5, 2)


def build_flights(days: int) -> list[Flight]:
    today = datetime.now(timezone.utc).date()
    flights = []

    for index, (code, _, _, _, distance) in enumerate(DESTINATIONS):
        aircraft, economy_seats, business_seats = aircraft_for(distance)
        economy_price, business_price = fares_for(distance)
        duration = timedelta(hours=distance / CRUISE_MPH + 0.5)
        outbound_number = f"FA{100 + index * 2}"
        return_number = f"FA{101 + index * 2}"

        for day in range(days):
            departs = datetime.combine(today + timedelta(days=day), time(6 + index % 12), tzinfo=timezone.utc)
            returns = departs + duration + timedelta(hours=2)
            for number, origin, destination, departure_time in (
                (outbound_number, HUB, code, departs),
                (return_number, code, HUB, returns),
            ):
                flights.append(Flight(
                    flight_number=number,
                    departure_airport=origin,
                    arrival_airport=destination,
                    departure_time=departure_time,
                    arrival_time=departure_time + duration,
                    aircraft_type=aircraft,
                    economy_price=economy_price,
                    business_price=business_price,
                    total_economy_seats=economy_seats,
                    total_business_seats=business_seats,
                    available_economy_seats=economy_seats,
                    available_business_seats=business_seats,
                    status=FlightStatus.SCHEDULED,
                ))
    return flights


async def seed(days: int, reset: bool) -> None:
    async with AsyncSessionLocal() as db:
        if reset:
            logger.warning("seed_reset", tables=["bookings", "flights", "routes", "airports"])
            for model in (Booking, Flight, Route, Airport):
                await db.execute(delete(model))

        existing = await db.scalar(select(func.count()).select_from(Airport))
        if existing and not reset:
            logger.info("seed_skipped", reason="catalog_not_empty", airports=existing)
            return

        db.add(Airport(code=HUB, name="Bahrain International Airport", city="Bahrain", country="Bahrain"))
        for code, name, city, country, distance in DESTINATIONS:
            db.add(Airport(code=code, name=name, city=city, country=country))
        await db.flush()

        # One row per direction keeps the lookup a single indexed hit
        for code, _, _, _, distance in DESTINATIONS:
            db.add(Route(departure_airport=HUB, arrival_airport=code, distance_miles=distance))
            db.add(Route(departure_airport=code, arrival_airport=HUB, distance_miles=distance))

        flights = build_flights(days)
        db.add_all(flights)
        await db.commit()

        logger.info(
            "seed_completed",
            airports=len(DESTINATIONS) + 1,
            routes=len(DESTINATIONS) * 2,
            flights=len(flights),
        )

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Falcon Air flight catalog")
    parser.add_argument("--days", type=int, default=7, help="days of schedule to generate")
    parser.add_argument("--reset", action="store_true", help="delete existing catalog and bookings first")
    args = parser.parse_args()

    setup_logging()
    asyncio.run(seed(args.days, args.reset))


if __name__ == "__main__":
    main()
