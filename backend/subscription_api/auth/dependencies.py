"""FastAPI authentication dependencies for route protection."""

import uuid
from collections.abc import Awaitable, Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.auth.jwt import decode_token
from subscription_api.database import get_db
from subscription_api.errors import UnauthenticatedError, UnauthorizedError
from subscription_api.models.user import Role, User

# auto_error=False so a missing header is reported as 401 rather than 403
_bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the Bearer token, then return the authenticated user.

    Raises:
        UnauthenticatedError: If the token is missing, invalid, expired, or the
            user no longer exists.
    """
    if credentials is None:
        raise UnauthenticatedError("Authorization token required!")

    try:
        payload = decode_token(credentials.credentials)
    except JWTError:
        raise UnauthenticatedError("Invalid or expired token!") from None

    if payload.get("type") != "access":
        raise UnauthenticatedError("Invalid or expired token!")

    sub: str | None = payload.get("sub")
    if sub is None:
        raise UnauthenticatedError("Invalid or expired token!")

    try:
        user_id = uuid.UUID(sub)
    except ValueError:
        raise UnauthenticatedError("Invalid or expired token!") from None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise UnauthenticatedError("Invalid or expired token!")

    return user


def require_role(role: Role) -> Callable[..., Awaitable[User]]:
    """Build a dependency that only lets principals with ``role`` through.

    Usage::

        @router.post("", dependencies=[Depends(require_role(Role.ADMIN))])
    """

    async def _check_role(user: User = Depends(get_current_user)) -> User:
        if user.role != role:
            raise UnauthorizedError(f"Access denied: {role.value} only!")
        return user

    return _check_role
