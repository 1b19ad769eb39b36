"""Registration and admin account creation."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.api.deps import get_db, require_role
from subscription_api.auth.jwt import create_user_token
from subscription_api.models.user import Role
from subscription_api.schemas.auth import TokenResponse
from subscription_api.schemas.user import RegisterResponse, UserCreate, UserResponse
from subscription_api.services.user_service import create_account

router = APIRouter(prefix="/api/user", tags=["users"])


@router.post("", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, db: AsyncSession = Depends(get_db)) -> RegisterResponse:
    """Register a user account and log it in."""
    user = await create_account(db, body.name, body.email, body.password, body.address)
    token = create_user_token(str(user.id), user.name, user.role.value)
    return RegisterResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(access_token=token),
    )


@router.post(
    "/admin",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
async def create_admin(body: UserCreate, db: AsyncSession = Depends(get_db)) -> UserResponse:
    """Create another admin account (admin only)."""
    user = await create_account(
        db, body.name, body.email, body.password, body.address, role=Role.ADMIN
    )
    return UserResponse.model_validate(user)
