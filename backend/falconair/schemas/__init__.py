from falconair.schemas.user import UserCreate, UserResponse, UserLogin, Token, LogoutResponse
from falconair.schemas.flight import FlightResponse
from falconair.schemas.booking import (
    BookingCreate, BookingReschedule, BookingResponse, BookingCancelResponse, BookingRescheduleResponse,
)
from falconair.schemas.loyalty import LoyaltyStatus, TierInfo, LoyaltyRewards, TierUpgrade, CheckInResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "LogoutResponse",
    "FlightResponse",
    "BookingCreate", "BookingReschedule", "BookingResponse", "BookingCancelResponse", "BookingRescheduleResponse",
    "LoyaltyStatus", "TierInfo", "LoyaltyRewards", "TierUpgrade", "CheckInResponse",
]
