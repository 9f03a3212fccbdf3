"""
Pydantic schemas for the flight catalog.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from falconair.models.enums import FlightStatus


class FlightResponse(BaseModel):
    id: int
    flight_number: str
    departure_airport: str
    arrival_airport: str
    departure_time: datetime
    arrival_time: datetime
    aircraft_type: Optional[str]
    economy_price: float
    business_price: float
    available_economy_seats: int
    available_business_seats: int
    status: FlightStatus

    model_config = {"from_attributes": True}
