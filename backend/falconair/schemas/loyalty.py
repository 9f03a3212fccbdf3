"""
Pydantic schemas for Falcon Flyer responses.
"""

from typing import Optional
from pydantic import BaseModel, model_serializer

from falconair.models.enums import LoyaltyTier, SeatClass
from falconair.schemas.booking import BookingResponse


class LoyaltyStatus(BaseModel):
    membership_number: str
    first_name: str
    last_name: str
    loyalty_miles: int
    loyalty_points: int
    loyalty_tier: LoyaltyTier
    next_tier: Optional[LoyaltyTier] = None
    next_tier_threshold: Optional[int] = None
    points_to_next_tier: Optional[int] = None


class LoyaltyEnrollment(BaseModel):
    message: str
    enrolled: bool
    loyalty: LoyaltyStatus


class TierInfo(BaseModel):
    tier: LoyaltyTier
    rank: int
    min_points: int
    max_points: Optional[int] = None


class LoyaltyRewards(BaseModel):
    miles_earned: int
    points_earned: int
    flight_distance: int
    seat_class: SeatClass
    seat_class_multiplier: float
    tier_multiplier: float
    loyalty_tier: LoyaltyTier
    total_miles: int
    total_points: int


class TierUpgrade(BaseModel):
    upgraded: bool
    old_tier: Optional[LoyaltyTier] = None
    new_tier: Optional[LoyaltyTier] = None
    next_tier_threshold: Optional[int] = None

    @model_serializer(mode="wrap")
    def _omit_missing(self, handler):
        # upgrade -> old/new tier only; no upgrade -> threshold, absent at PLATINUM
        return {key: value for key, value in handler(self).items() if value is not None}


class CheckInResponse(BaseModel):
    message: str
    booking: BookingResponse
    loyalty_rewards: LoyaltyRewards
    tier_upgrade: TierUpgrade
    loyalty: LoyaltyStatus
