"""
Password hashing, JWT issuing/verification and the bearer-auth dependencies.

Tokens are HS256 JWTs carrying `sub` (user id) and a `jti` so a single token
can be revoked at logout without invalidating the user's other sessions.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.core.config import get_settings
from falconair.core.errors import Forbidden, Unauthorized
from falconair.core.logging import get_logger
from falconair.db.session import get_db
from falconair.models.user import User
from falconair.services.cache_service import is_token_revoked

logger = get_logger(__name__)
settings = get_settings()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return pwd_context.verify(password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        **data,
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")

    if not payload.get("sub"):
        raise Unauthorized("Invalid token payload")
    return payload


async def get_token_payload(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    if creds is None or creds.scheme.lower() != "bearer":
        raise Unauthorized("Not authenticated")

    payload = decode_access_token(creds.credentials)
    if await is_token_revoked(payload.get("jti")):
        logger.info("revoked_token_rejected", user_id=payload["sub"])
        raise Unauthorized("Token has been revoked")
    return payload


async def get_current_user_id(payload: dict = Depends(get_token_payload)) -> int:
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload")


async def get_current_user(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return user
