"""Pydantic v2 request/response schemas for user endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from subscription_api.models.user import Role
from subscription_api.schemas.auth import TokenResponse


class UserCreate(BaseModel):
    """Schema for registering an account (user or admin)."""

    name: str = Field(..., min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    address: str = Field(..., min_length=5, max_length=512)


class UserResponse(BaseModel):
    """Public user profile information."""

    id: uuid.UUID
    name: str
    email: str
    address: str
    role: Role
    is_verified: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RegisterResponse(BaseModel):
    """Created user plus the access token that logs them in."""

    user: UserResponse
    tokens: TokenResponse
