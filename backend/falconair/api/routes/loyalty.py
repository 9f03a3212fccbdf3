"""
Falcon Flyer endpoints.
"""

from fastapi import APIRouter, Depends

from falconair.core.logging import get_logger
from falconair.core.security import get_current_user
from falconair.models.user import User
from falconair.schemas.loyalty import LoyaltyEnrollment, LoyaltyStatus, TierInfo
from falconair.services.loyalty_service import list_tiers, loyalty_snapshot

logger = get_logger(__name__)
router = APIRouter(prefix="/api/loyalty", tags=["Loyalty"])


@router.get("/status", response_model=LoyaltyStatus)
async def loyalty_status(user: User = Depends(get_current_user)):
    """Membership number, balances, tier and progress to the next tier."""
    return LoyaltyStatus(**loyalty_snapshot(user))


@router.post("/enroll", response_model=LoyaltyEnrollment)
async def enroll(user: User = Depends(get_current_user)):
    """
    Confirm Falcon Flyer membership.

    Every account is enrolled at registration, so this never changes the
    account; repeated calls return the same snapshot.
    """
    logger.info("loyalty_enroll_requested", user_id=user.id, membership_number=user.membership_number)
    return LoyaltyEnrollment(
        message="Falcon Flyer membership is active",
        enrolled=True,
        loyalty=LoyaltyStatus(**loyalty_snapshot(user)),
    )


@router.get("/tiers", response_model=list[TierInfo])
async def loyalty_tiers():
    return list_tiers()
