from falconair.models.enums import SeatClass, BookingStatus, FlightStatus, LoyaltyTier
from falconair.models.user import User
from falconair.models.airport import Airport, Route
from falconair.models.flight import Flight
from falconair.models.booking import Booking

__all__ = [
    "SeatClass", "BookingStatus", "FlightStatus", "LoyaltyTier",
    "User", "Airport", "Route", "Flight", "Booking",
]
