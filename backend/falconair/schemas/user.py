"""
Pydantic schemas for user-related request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, model_validator

from falconair.models.enums import LoyaltyTier


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=100, pattern=r"^[a-zA-Z0-9_.\-]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=30)
    password: str = Field(..., min_length=6, max_length=128)

    model_config = {"str_strip_whitespace": True}


class UserLogin(BaseModel):
    falcon_flyer_number: Optional[str] = Field(None, min_length=1, max_length=20)
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=1)

    model_config = {"str_strip_whitespace": True}

    @model_validator(mode="after")
    def require_one_identifier(self):
        if bool(self.falcon_flyer_number) == bool(self.email):
            raise ValueError("Provide exactly one of falcon_flyer_number or email")
        return self


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str]
    is_active: bool
    membership_number: str
    loyalty_miles: int
    loyalty_points: int
    loyalty_tier: LoyaltyTier
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class LogoutResponse(BaseModel):
    message: str
    revoked: bool
