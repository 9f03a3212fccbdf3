"""
Enumerated states shared by the ORM models, schemas and services.
"""

from enum import Enum


class SeatClass(str, Enum):
    ECONOMY = "economy"
    BUSINESS = "business"  # marketed as "Falcon Gold"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"


class FlightStatus(str, Enum):
    SCHEDULED = "scheduled"
    DELAYED = "delayed"
    BOARDING = "boarding"
    DEPARTED = "departed"
    ARRIVED = "arrived"
    CANCELLED = "cancelled"


class LoyaltyTier(str, Enum):
    BLUE = "BLUE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


def enum_values(enum_cls) -> list[str]:
    """Persist enum values ("checked_in"), not member names ("CHECKED_IN")."""
    return [member.value for member in enum_cls]
