"""
Flight model with per-class seat inventory tracking.

Key design decisions:
- `available_*_seats` are denormalized counters (avoid COUNT over bookings)
- Composite index on (departure_airport, arrival_airport, departure_time)
  serves route search, optionally narrowed to a date
- `version` column enables optimistic locking for concurrent seat changes
- CHECK constraints are the last line of defence against overselling
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, Index, CheckConstraint

from falconair.db.base import Base, TimestampMixin
from falconair.models.enums import FlightStatus, SeatClass, enum_values


class Flight(Base, TimestampMixin):
    __tablename__ = "flights"

    id = Column(Integer, primary_key=True, index=True)
    flight_number = Column(String(10), nullable=False, index=True)
    departure_airport = Column(String(3), nullable=False)
    arrival_airport = Column(String(3), nullable=False)
    departure_time = Column(DateTime(timezone=True), nullable=False)
    arrival_time = Column(DateTime(timezone=True), nullable=False)
    aircraft_type = Column(String(50), nullable=True)

    economy_price = Column(Float, nullable=False)
    business_price = Column(Float, nullable=False)
    total_economy_seats = Column(Integer, nullable=False)
    total_business_seats = Column(Integer, nullable=False)
    available_economy_seats = Column(Integer, nullable=False)
    available_business_seats = Column(Integer, nullable=False)

    status = Column(
        Enum(
            FlightStatus,
            name="flight_status",
            native_enum=False,
            create_constraint=True,
            values_callable=enum_values,
            length=20,
        ),
        nullable=False,
        default=FlightStatus.SCHEDULED,
    )

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("arrival_time > departure_time", name="check_arrival_after_departure"),
        CheckConstraint("available_economy_seats >= 0", name="check_economy_seats_non_negative"),
        CheckConstraint("available_business_seats >= 0", name="check_business_seats_non_negative"),
        CheckConstraint(
            "available_economy_seats <= total_economy_seats", name="check_economy_available_lte_total"
        ),
        CheckConstraint(
            "available_business_seats <= total_business_seats", name="check_business_available_lte_total"
        ),
        CheckConstraint("economy_price >= 0 AND business_price >= 0", name="check_prices_non_negative"),
        Index("ix_flights_route_departure", "departure_airport", "arrival_airport", "departure_time"),
    )

    def price_for(self, seat_class: SeatClass) -> float:
        if seat_class == SeatClass.BUSINESS:
            return self.business_price
        return self.economy_price

    def available_seats_for(self, seat_class: SeatClass) -> int:
        if seat_class == SeatClass.BUSINESS:
            return self.available_business_seats
        return self.available_economy_seats

    def __repr__(self) -> str:
        return (
            f"<Flight(id={self.id}, {self.flight_number} {self.departure_airport}->{self.arrival_airport}, "
            f"economy={self.available_economy_seats}, business={self.available_business_seats})>"
        )
