"""
Tests for Falcon Flyer tiers and reward arithmetic.
"""

import pytest
from httpx import AsyncClient

from falconair.models.enums import LoyaltyTier, SeatClass
from falconair.services.loyalty_service import (
    RewardRules,
    compute_reward,
    list_tiers,
    loyalty_snapshot,
    next_tier,
    tier_for_points,
)


@pytest.mark.parametrize("points, tier", [
    (0, LoyaltyTier.BLUE),
    (499, LoyaltyTier.BLUE),
    (500, LoyaltyTier.SILVER),
    (999, LoyaltyTier.SILVER),
    (1000, LoyaltyTier.GOLD),
    (1999, LoyaltyTier.GOLD),
    (2000, LoyaltyTier.PLATINUM),
    (5000, LoyaltyTier.PLATINUM),
])
def test_tier_for_points(points, tier):
    assert tier_for_points(points) == tier


def test_next_tier():
    assert next_tier(LoyaltyTier.BLUE) == (LoyaltyTier.SILVER, 500)
    assert next_tier(LoyaltyTier.GOLD) == (LoyaltyTier.PLATINUM, 2000)
    assert next_tier(LoyaltyTier.PLATINUM) is None


def test_business_reward_for_blue_member():
    reward = compute_reward(
        flight_distance=3000,
        seat_class=SeatClass.BUSINESS,
        current_tier=LoyaltyTier.BLUE,
        current_miles=0,
        current_points=0,
    )
    assert reward.miles_earned == 4500
    assert reward.points_earned == 45
    assert reward.seat_class_multiplier == 1.5
    assert reward.tier_multiplier == 1.0
    assert reward.loyalty_tier == LoyaltyTier.BLUE
    assert not reward.upgraded
    assert reward.tier_upgrade() == {"upgraded": False, "next_tier_threshold": 500}


def test_reward_crossing_gold_threshold():
    reward = compute_reward(
        flight_distance=2400,
        seat_class=SeatClass.ECONOMY,
        current_tier=LoyaltyTier.SILVER,
        current_miles=12000,
        current_points=980,
    )
    assert reward.points_earned == 30
    assert reward.total_points == 1010
    assert reward.total_miles == 15000
    assert reward.upgraded
    assert reward.tier_upgrade() == {"upgraded": True, "old_tier": "SILVER", "new_tier": "GOLD"}


def test_tier_multiplier_uses_tier_before_checkin():
    """The SILVER member who lands on GOLD earns at the SILVER rate."""
    reward = compute_reward(
        flight_distance=1000,
        seat_class=SeatClass.ECONOMY,
        current_tier=LoyaltyTier.SILVER,
        current_miles=0,
        current_points=995,
    )
    assert reward.loyalty_tier == LoyaltyTier.GOLD
    assert reward.tier_multiplier == 1.25
    assert reward.miles_earned == 1250


def test_platinum_has_no_next_threshold():
    reward = compute_reward(
        flight_distance=1000,
        seat_class=SeatClass.ECONOMY,
        current_tier=LoyaltyTier.PLATINUM,
        current_miles=50000,
        current_points=3000,
    )
    assert reward.miles_earned == 2000
    assert reward.tier_upgrade() == {"upgraded": False}


def test_reward_rules_are_configurable():
    rules = RewardRules(
        seat_miles_multipliers={"economy": 1.0, "business": 2.0},
        seat_points_multipliers={"economy": 1.0, "business": 3.0},
        tier_miles_multipliers={"BLUE": 1.0},
        tier_points_multipliers={"BLUE": 1.0},
        points_distance_divisor=50.0,
    )
    reward = compute_reward(
        flight_distance=1000,
        seat_class=SeatClass.BUSINESS,
        current_tier=LoyaltyTier.BLUE,
        current_miles=0,
        current_points=0,
        rules=rules,
    )
    assert reward.miles_earned == 2000
    assert reward.points_earned == 60
    assert reward.loyalty_tier == LoyaltyTier.BLUE


def test_list_tiers():
    assert list_tiers() == [
        {"tier": "BLUE", "rank": 0, "min_points": 0, "max_points": 499},
        {"tier": "SILVER", "rank": 1, "min_points": 500, "max_points": 999},
        {"tier": "GOLD", "rank": 2, "min_points": 1000, "max_points": 1999},
        {"tier": "PLATINUM", "rank": 3, "min_points": 2000, "max_points": None},
    ]


@pytest.mark.asyncio
async def test_loyalty_snapshot(silver_user):
    snapshot = loyalty_snapshot(silver_user)
    assert snapshot["membership_number"] == "FF00000003"
    assert snapshot["loyalty_tier"] == "SILVER"
    assert snapshot["next_tier"] == "GOLD"
    assert snapshot["next_tier_threshold"] == 1000
    assert snapshot["points_to_next_tier"] == 20


@pytest.mark.asyncio
async def test_loyalty_status_endpoint(client: AsyncClient, silver_auth_headers):
    response = await client.get("/api/loyalty/status", headers=silver_auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["loyalty_points"] == 980
    assert data["loyalty_miles"] == 12000
    assert data["loyalty_tier"] == "SILVER"
    assert data["points_to_next_tier"] == 20


@pytest.mark.asyncio
async def test_loyalty_status_requires_auth(client: AsyncClient):
    response = await client.get("/api/loyalty/status")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_loyalty_tiers_endpoint(client: AsyncClient):
    response = await client.get("/api/loyalty/tiers")
    assert response.status_code == 200
    assert [t["tier"] for t in response.json()] == ["BLUE", "SILVER", "GOLD", "PLATINUM"]


@pytest.mark.asyncio
async def test_enroll_returns_existing_membership(client: AsyncClient, silver_auth_headers):
    """Enrolment is idempotent and leaves balances alone."""
    for _ in range(2):
        response = await client.post("/api/loyalty/enroll", headers=silver_auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["enrolled"] is True
        assert data["loyalty"]["membership_number"] == "FF00000003"
        assert data["loyalty"]["loyalty_points"] == 980
        assert data["loyalty"]["loyalty_tier"] == "SILVER"

    status_response = await client.get("/api/loyalty/status", headers=silver_auth_headers)
    assert status_response.json()["loyalty_miles"] == 12000


@pytest.mark.asyncio
async def test_enroll_requires_auth(client: AsyncClient):
    response = await client.post("/api/loyalty/enroll")
    assert response.status_code == 401
