"""
Authentication service: registration, login (email or Falcon Flyer number)
and token revocation at logout.
"""

import secrets
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.errors import Conflict, Forbidden, Unauthorized
from falconair.core.logging import get_logger
from falconair.core.security import create_access_token, hash_password, verify_password
from falconair.models.enums import LoyaltyTier
from falconair.models.user import User
from falconair.schemas.user import UserCreate, UserLogin
from falconair.services.cache_service import revoke_token

logger = get_logger(__name__)

MEMBERSHIP_PREFIX = "FF"
MEMBERSHIP_DIGITS = 8


async def generate_membership_number(db: AsyncSession) -> str:
    for _ in range(10):
        number = MEMBERSHIP_PREFIX + "".join(secrets.choice("0123456789") for _ in range(MEMBERSHIP_DIGITS))
        exists = await db.execute(select(User.id).where(User.membership_number == number))
        if exists.scalar_one_or_none() is None:
            return number
    raise Conflict("Could not allocate a membership number. Please try again.")


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user and enrol them in Falcon Flyer at BLUE tier.
    Raises 409 if email or username already exists.
    """
    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=email)
        raise Conflict("Email already registered")

    result = await db.execute(select(User).where(User.username == user_data.username))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="username_exists", username=user_data.username)
        raise Conflict("Username already taken")

    user = User(
        email=email,
        username=user_data.username,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone_number=user_data.phone_number,
        hashed_password=hash_password(user_data.password),
        membership_number=await generate_membership_number(db),
        loyalty_miles=0,
        loyalty_points=0,
        loyalty_tier=LoyaltyTier.BLUE,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, membership_number=user.membership_number)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, User]:
    """
    Authenticate by email or Falcon Flyer number and return (JWT, user).
    Raises 401 if credentials are invalid.
    """
    if login_data.falcon_flyer_number:
        identifier = login_data.falcon_flyer_number.upper()
        query = select(User).where(User.membership_number == identifier)
    else:
        identifier = login_data.email.lower()
        query = select(User).where(User.email == identifier)

    user = (await db.execute(query)).scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", identifier=identifier)
        raise Unauthorized("Invalid credentials")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    token = create_access_token(data={"sub": str(user.id)})
    logger.info("user_logged_in", user_id=user.id)
    return token, user


async def logout_user(payload: dict) -> bool:
    """Revoke the presented token for the rest of its lifetime."""
    remaining = int(payload.get("exp", 0) - datetime.now(timezone.utc).timestamp())
    revoked = await revoke_token(payload.get("jti"), remaining)
    logger.info("user_logged_out", user_id=payload.get("sub"), revoked=revoked)
    return revoked
