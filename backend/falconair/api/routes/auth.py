"""
Authentication endpoints: register, login, logout and profile.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from falconair.db.session import get_db
from falconair.core.errors import Unauthorized
from falconair.core.logging import get_logger
from falconair.core.security import bearer_scheme, decode_access_token, get_current_user
from falconair.models.user import User
from falconair.schemas.user import UserCreate, UserResponse, UserLogin, Token, LogoutResponse
from falconair.services.auth_service import register_user, authenticate_user, logout_user

logger = get_logger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new account. Every account is enrolled in Falcon Flyer."""
    user = await register_user(db, user_data)
    return user


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate with email or Falcon Flyer number and receive a JWT."""
    token, user = await authenticate_user(db, login_data)
    return Token(token=token, user=UserResponse.model_validate(user))


@router.post("/logout", response_model=LogoutResponse)
async def logout(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)):
    """
    Best-effort logout: revokes the presented token when it is valid and the
    revocation store is reachable. Always succeeds so clients can drop their
    session unconditionally.
    """
    revoked = False
    if creds is not None:
        try:
            payload = decode_access_token(creds.credentials)
        except Unauthorized:
            logger.info("logout_with_invalid_token")
        else:
            revoked = await logout_user(payload)
    return LogoutResponse(message="Logged out successfully", revoked=revoked)


@router.get("/profile", response_model=UserResponse)
async def profile(user: User = Depends(get_current_user)):
    """Current user's profile including Falcon Flyer balances."""
    return user
