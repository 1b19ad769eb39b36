"""Account registration and credential checks."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subscription_api.auth.passwords import hash_password, verify_password
from subscription_api.errors import ConflictError
from subscription_api.models.user import Role, User

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_account(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    address: str,
    role: Role = Role.USER,
) -> User:
    """Create a user account.

    Emails are stored lower-cased so lookups are case-insensitive.

    Raises:
        ConflictError: If an account with this email already exists.
    """
    email = email.strip().lower()
    if await get_user_by_email(db, email) is not None:
        raise ConflictError("User already exists")

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(password),
        address=address,
        role=role,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Created %s account %s (%s)", role.value, user.id, email)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User | None:
    """Return the user if ``password`` matches, else None."""
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        return None
    return user
