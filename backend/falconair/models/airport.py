"""
Catalog reference data: airports and the routes between them.

Route distance feeds the check-in reward formula, so it lives on the route
(an ordered airport pair), not on individual flights.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint

from falconair.db.base import Base, TimestampMixin


class Airport(Base, TimestampMixin):
    __tablename__ = "airports"

    code = Column(String(3), primary_key=True)
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Airport(code={self.code}, city={self.city})>"


class Route(Base, TimestampMixin):
    __tablename__ = "routes"

    id = Column(Integer, primary_key=True, index=True)
    departure_airport = Column(String(3), ForeignKey("airports.code"), nullable=False)
    arrival_airport = Column(String(3), ForeignKey("airports.code"), nullable=False)
    distance_miles = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("departure_airport", "arrival_airport", name="uq_route_airport_pair"),
        CheckConstraint("distance_miles > 0", name="check_route_distance_positive"),
        CheckConstraint("departure_airport <> arrival_airport", name="check_route_distinct_airports"),
    )

    def __repr__(self) -> str:
        return f"<Route({self.departure_airport}->{self.arrival_airport}, {self.distance_miles}mi)>"
