"""
Falcon Flyer tier table and reward arithmetic.

TIER_THRESHOLDS is the only place tier boundaries are defined. The rewards
engine, the loyalty status endpoint and the public tier listing all read it,
so display and computation cannot drift apart.

Reward formulas (all factors come from settings):

  miles  = round(distance * seat_miles[seat_class] * tier_miles[tier])
  points = round(distance / points_divisor * seat_points[seat_class] * tier_points[tier])

The tier multiplier uses the tier held *before* the check-in; the tier after
the check-in is recomputed from the new point total.
"""

from dataclasses import dataclass
from typing import Mapping, Optional

from falconair.core.config import Settings, get_settings
from falconair.models.enums import LoyaltyTier, SeatClass

TIER_THRESHOLDS: tuple[tuple[LoyaltyTier, int], ...] = (
    (LoyaltyTier.BLUE, 0),
    (LoyaltyTier.SILVER, 500),
    (LoyaltyTier.GOLD, 1000),
    (LoyaltyTier.PLATINUM, 2000),
)

_TIER_RANK = {tier: rank for rank, (tier, _) in enumerate(TIER_THRESHOLDS)}


def tier_for_points(points: int) -> LoyaltyTier:
    """Highest tier whose threshold does not exceed `points`."""
    current = TIER_THRESHOLDS[0][0]
    for tier, threshold in TIER_THRESHOLDS:
        if points >= threshold:
            current = tier
    return current


def tier_rank(tier: LoyaltyTier) -> int:
    return _TIER_RANK[LoyaltyTier(tier)]


def next_tier(tier: LoyaltyTier) -> Optional[tuple[LoyaltyTier, int]]:
    """The tier above `tier` and its threshold, or None at the top."""
    rank = tier_rank(tier)
    if rank + 1 >= len(TIER_THRESHOLDS):
        return None
    return TIER_THRESHOLDS[rank + 1]


def list_tiers() -> list[dict]:
    tiers = []
    for rank, (tier, threshold) in enumerate(TIER_THRESHOLDS):
        upper = next_tier(tier)
        tiers.append({
            "tier": tier.value,
            "rank": rank,
            "min_points": threshold,
            "max_points": upper[1] - 1 if upper else None,
        })
    return tiers


@dataclass(frozen=True)
class RewardRules:
    seat_miles_multipliers: Mapping[str, float]
    seat_points_multipliers: Mapping[str, float]
    tier_miles_multipliers: Mapping[str, float]
    tier_points_multipliers: Mapping[str, float]
    points_distance_divisor: float

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RewardRules":
        settings = settings or get_settings()
        return cls(
            seat_miles_multipliers=settings.SEAT_CLASS_MILES_MULTIPLIERS,
            seat_points_multipliers=settings.SEAT_CLASS_POINTS_MULTIPLIERS,
            tier_miles_multipliers=settings.TIER_MILES_MULTIPLIERS,
            tier_points_multipliers=settings.TIER_POINTS_MULTIPLIERS,
            points_distance_divisor=settings.POINTS_DISTANCE_DIVISOR,
        )

    def seat_multiplier(self, seat_class: SeatClass) -> float:
        return self.seat_miles_multipliers.get(SeatClass(seat_class).value, 1.0)

    def tier_multiplier(self, tier: LoyaltyTier) -> float:
        return self.tier_miles_multipliers.get(LoyaltyTier(tier).value, 1.0)


@dataclass(frozen=True)
class RewardComputation:
    miles_earned: int
    points_earned: int
    flight_distance: int
    seat_class: SeatClass
    seat_class_multiplier: float
    tier_multiplier: float
    previous_tier: LoyaltyTier
    loyalty_tier: LoyaltyTier
    total_miles: int
    total_points: int

    @property
    def upgraded(self) -> bool:
        return tier_rank(self.loyalty_tier) > tier_rank(self.previous_tier)

    def loyalty_rewards(self) -> dict:
        return {
            "miles_earned": self.miles_earned,
            "points_earned": self.points_earned,
            "flight_distance": self.flight_distance,
            "seat_class": self.seat_class.value,
            "seat_class_multiplier": self.seat_class_multiplier,
            "tier_multiplier": self.tier_multiplier,
            "loyalty_tier": self.loyalty_tier.value,
            "total_miles": self.total_miles,
            "total_points": self.total_points,
        }

    def tier_upgrade(self) -> dict:
        if self.upgraded:
            return {
                "upgraded": True,
                "old_tier": self.previous_tier.value,
                "new_tier": self.loyalty_tier.value,
            }
        summary = {"upgraded": False}
        upper = next_tier(self.loyalty_tier)
        if upper:
            summary["next_tier_threshold"] = upper[1]
        return summary


def compute_reward(
    flight_distance: int,
    seat_class: SeatClass,
    current_tier: LoyaltyTier,
    current_miles: int,
    current_points: int,
    rules: Optional[RewardRules] = None,
) -> RewardComputation:
    rules = rules or RewardRules.from_settings()
    seat_class = SeatClass(seat_class)
    current_tier = LoyaltyTier(current_tier)

    seat_miles = rules.seat_multiplier(seat_class)
    tier_miles = rules.tier_multiplier(current_tier)
    seat_points = rules.seat_points_multipliers.get(seat_class.value, 1.0)
    tier_points = rules.tier_points_multipliers.get(current_tier.value, 1.0)

    miles_earned = int(round(flight_distance * seat_miles * tier_miles))
    points_earned = int(round(flight_distance / rules.points_distance_divisor * seat_points * tier_points))

    total_miles = current_miles + miles_earned
    total_points = current_points + points_earned
    new_tier = tier_for_points(total_points)

    return RewardComputation(
        miles_earned=miles_earned,
        points_earned=points_earned,
        flight_distance=flight_distance,
        seat_class=seat_class,
        seat_class_multiplier=seat_miles,
        tier_multiplier=tier_miles,
        previous_tier=current_tier,
        loyalty_tier=new_tier,
        total_miles=total_miles,
        total_points=total_points,
    )


def loyalty_snapshot(user) -> dict:
    """Loyalty account view of a user row, with progress to the next tier."""
    tier = LoyaltyTier(user.loyalty_tier)
    snapshot = {
        "membership_number": user.membership_number,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "loyalty_miles": user.loyalty_miles,
        "loyalty_points": user.loyalty_points,
        "loyalty_tier": tier.value,
        "next_tier": None,
        "next_tier_threshold": None,
        "points_to_next_tier": None,
    }
    upper = next_tier(tier)
    if upper:
        snapshot["next_tier"] = upper[0].value
        snapshot["next_tier_threshold"] = upper[1]
        snapshot["points_to_next_tier"] = max(upper[1] - user.loyalty_points, 0)
    return snapshot
