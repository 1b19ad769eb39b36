"""Email/password login."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.api.deps import get_db
from subscription_api.auth.jwt import create_user_token
from subscription_api.errors import UnauthenticatedError
from subscription_api.schemas.auth import LoginRequest, TokenResponse
from subscription_api.services.user_service import authenticate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)) -> TokenResponse:
    """Authenticate with email and password and return an access token."""
    user = await authenticate(db, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt for %s", body.email)
        raise UnauthenticatedError("Invalid credentials")

    return TokenResponse(access_token=create_user_token(str(user.id), user.name, user.role.value))
